from __future__ import annotations
"""SQLAlchemy model for the fixed daily broadcast slots (reference data)."""
from datetime import datetime, time
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Time
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .slot_assignments import DailySlotAssignment
from sqlalchemy.sql import func
from adslot.database import Base

class TimeSlot(Base):
    __tablename__ = "time_slots"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    slot_time: Mapped[time] = mapped_column(Time, unique=True, nullable=False)
    slot_label: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    assignments: Mapped[list["DailySlotAssignment"]] = relationship("DailySlotAssignment", back_populates="slot")
