from .base import ResponseBase, ErrorResponse
from .adverts import (
    AdvertCreate, AdvertUpdate, AdvertRead, AdvertPage,
    ApproveRequest, ExtendRequest, DeclineRequest,
    AdminActionRead, SweepRead,
)
from .slots import (
    TimeSlotRead, ConflictRead, AvailabilityRead,
    ScheduledAdvert, SlotScheduleRead, DayScheduleRead, VacancyRead,
)

__all__ = [
    # Base
    "ResponseBase",
    "ErrorResponse",

    # Adverts
    "AdvertCreate",
    "AdvertUpdate",
    "AdvertRead",
    "AdvertPage",
    "ApproveRequest",
    "ExtendRequest",
    "DeclineRequest",
    "AdminActionRead",
    "SweepRead",

    # Slots
    "TimeSlotRead",
    "ConflictRead",
    "AvailabilityRead",
    "ScheduledAdvert",
    "SlotScheduleRead",
    "DayScheduleRead",
    "VacancyRead",
]
