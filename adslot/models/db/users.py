from __future__ import annotations
"""SQLAlchemy model for users (admins and sales reps)."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .adverts import Advert
from sqlalchemy.sql import func
from adslot.database import Base
from .enums import UserRole, enum_column

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    api_key: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    role: Mapped[UserRole] = mapped_column(enum_column(UserRole, "user_role"), default=UserRole.SALES_REP, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    adverts: Mapped[list["Advert"]] = relationship(
        "Advert", back_populates="sales_rep", foreign_keys="Advert.sales_rep_id"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
