"""
Pydantic schemas for the slot grid, availability and schedule views.
"""
from datetime import date, time
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from adslot.models.db.enums import AdvertCategory, AdvertStatus, ConflictKind


class TimeSlotRead(BaseModel):
    id: int
    slot_time: time
    slot_label: str

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("slot_time")
    def _hh_mm(self, value: time) -> str:
        return value.strftime("%H:%M")


class ConflictRead(BaseModel):
    date: date
    kind: ConflictKind
    detail: str
    conflicting_client: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityRead(BaseModel):
    advert_id: int
    slot_id: int
    start_date: date
    day_count: int
    available: bool
    conflicts: List[ConflictRead] = Field(default_factory=list)


class ScheduledAdvert(BaseModel):
    advert_id: int
    client_name: str
    category: AdvertCategory
    caption: str
    media_url: Optional[str]
    status: AdvertStatus


class SlotScheduleRead(BaseModel):
    slot_id: int
    slot_time: str
    slot_label: str
    capacity: int
    available: int
    adverts: List[ScheduledAdvert]


class DayScheduleRead(BaseModel):
    date: date
    slots: List[SlotScheduleRead]


class VacancyRead(BaseModel):
    date: date
    slot_id: int
    slot_time: str
    slot_label: str
    occupied: int
    available_capacity: int
