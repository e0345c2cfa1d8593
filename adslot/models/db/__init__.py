from .users import User
from .time_slots import TimeSlot
from .adverts import Advert
from .slot_assignments import DailySlotAssignment
from .invoices import Invoice
from .notifications import Notification
from .admin_actions import AdminAction

__all__ = [
    "User",
    "TimeSlot",
    "Advert",
    "DailySlotAssignment",
    "Invoice",
    "Notification",
    "AdminAction",
]
