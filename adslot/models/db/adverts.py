from __future__ import annotations
"""SQLAlchemy model for adverts (one paid booking of a client's creative)."""
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Text, Date, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .time_slots import TimeSlot
    from .slot_assignments import DailySlotAssignment
from sqlalchemy.sql import func
from adslot.database import Base
from .enums import AdvertStatus, AdvertCategory, SCHEDULED_STATUSES, enum_column

class Advert(Base):
    __tablename__ = "adverts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Descriptive
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[AdvertCategory] = mapped_column(enum_column(AdvertCategory, "advert_category"), nullable=False, index=True)
    caption: Mapped[str] = mapped_column(Text, nullable=False)
    media_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Commercial
    days_paid: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False, default="cash")

    # Scheduling; end_date, assigned slot and remaining_days are set on approval
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    assigned_slot_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("time_slots.id"), nullable=True, index=True)
    remaining_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[AdvertStatus] = mapped_column(
        enum_column(AdvertStatus, "advert_status"), default=AdvertStatus.PENDING, nullable=False, index=True
    )

    # Ownership
    sales_rep_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approved_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    sales_rep: Mapped["User"] = relationship("User", back_populates="adverts", foreign_keys=[sales_rep_id])
    approver: Mapped["User | None"] = relationship("User", foreign_keys=[approved_by])
    assigned_slot: Mapped["TimeSlot | None"] = relationship("TimeSlot")
    assignments: Mapped[list["DailySlotAssignment"]] = relationship(
        "DailySlotAssignment",
        back_populates="advert",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("days_paid > 0", name="advert_days_paid_positive"),
        CheckConstraint("amount_paid >= 0", name="advert_amount_non_negative"),
        CheckConstraint("remaining_days IS NULL OR remaining_days >= 0", name="advert_remaining_days_non_negative"),
        # A slot and an end date exist exactly while the advert is scheduled.
        CheckConstraint(
            "(status IN ('active', 'expired') AND assigned_slot_id IS NOT NULL AND end_date IS NOT NULL)"
            " OR (status NOT IN ('active', 'expired') AND assigned_slot_id IS NULL AND end_date IS NULL)",
            name="advert_schedule_matches_status",
        ),
    )

    @property
    def is_scheduled(self) -> bool:
        return self.status in SCHEDULED_STATUSES
