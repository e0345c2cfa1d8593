from __future__ import annotations
"""One row per (advert, slot, calendar date) the advert occupies."""
from datetime import date, datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .adverts import Advert
    from .time_slots import TimeSlot
from sqlalchemy.sql import func
from adslot.database import Base

class DailySlotAssignment(Base):
    __tablename__ = "daily_slot_assignments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    advert_id: Mapped[int] = mapped_column(Integer, ForeignKey("adverts.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_id: Mapped[int] = mapped_column(Integer, ForeignKey("time_slots.id"), nullable=False)
    assignment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    advert: Mapped["Advert"] = relationship("Advert", back_populates="assignments")
    slot: Mapped["TimeSlot"] = relationship("TimeSlot", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("slot_id", "assignment_date", "advert_id", name="uq_assignment_slot_date_advert"),
        Index("ix_assignment_slot_date", "slot_id", "assignment_date"),
    )
