from __future__ import annotations
"""Audit trail of admin decisions on adverts (declines, hard deletes)."""
from datetime import datetime
from sqlalchemy import Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from adslot.database import Base
from .enums import AdminActionType, enum_column

class AdminAction(Base):
    __tablename__ = "admin_actions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # No FK: the audit row must outlive a permanently deleted advert.
    advert_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    admin_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    action_type: Mapped[AdminActionType] = mapped_column(enum_column(AdminActionType, "admin_action_type"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
