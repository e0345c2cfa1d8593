"""
Pydantic schemas for adverts and their admin actions.

Request bodies accept both snake_case and the camelCase names used by the
web client (``slotId``, ``additionalDays`` ...).
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_serializer, field_validator

from adslot.models.db.enums import AdvertCategory, AdvertStatus, AdminActionType


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class AdvertCreate(_Request):
    client_name: str = Field(alias="clientName", min_length=1, max_length=255)
    category: AdvertCategory
    caption: str = Field(min_length=1)
    media_url: Optional[HttpUrl] = Field(None, alias="mediaUrl")
    days_paid: int = Field(alias="daysPaid", ge=1)
    payment_date: date = Field(alias="paymentDate")
    amount_paid: Decimal = Field(alias="amountPaid", ge=0, max_digits=10, decimal_places=2)
    payment_method: Optional[str] = Field(None, alias="paymentMethod", max_length=50)
    start_date: date = Field(alias="startDate")


class AdvertUpdate(_Request):
    """Partial update; only fields present in the body are applied."""
    client_name: Optional[str] = Field(None, alias="clientName", min_length=1, max_length=255)
    category: Optional[AdvertCategory] = None
    caption: Optional[str] = Field(None, min_length=1)
    media_url: Optional[HttpUrl] = Field(None, alias="mediaUrl")
    days_paid: Optional[int] = Field(None, alias="daysPaid", ge=1)
    payment_date: Optional[date] = Field(None, alias="paymentDate")
    amount_paid: Optional[Decimal] = Field(None, alias="amountPaid", ge=0, max_digits=10, decimal_places=2)
    payment_method: Optional[str] = Field(None, alias="paymentMethod", max_length=50)
    start_date: Optional[date] = Field(None, alias="startDate")

    @field_validator(
        "client_name",
        "category",
        "caption",
        "days_paid",
        "payment_date",
        "amount_paid",
        "payment_method",
        "start_date",
        mode="before",
    )
    @classmethod
    def _not_null(cls, value):
        # Omit a field to leave it unchanged; only mediaUrl may be cleared.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ApproveRequest(_Request):
    slot_id: int = Field(alias="slotId", ge=1)


class ExtendRequest(_Request):
    # Range checks happen in the service so they share the domain error shape.
    additional_days: int = Field(alias="additionalDays")
    amount_paid: Decimal = Field(Decimal("0"), alias="amountPaid")


class DeclineRequest(_Request):
    # Validated by the service: missing or short reasons are a 400, not a 422.
    reason: Optional[str] = None
    notes: Optional[str] = None


class AdvertRead(BaseModel):
    id: int
    client_name: str
    category: AdvertCategory
    caption: str
    media_url: Optional[str]
    days_paid: int
    payment_date: date
    amount_paid: Decimal
    payment_method: str
    start_date: date
    end_date: Optional[date]
    assigned_slot_id: Optional[int]
    remaining_days: Optional[int]
    status: AdvertStatus
    sales_rep_id: int
    approved_by: Optional[int]
    approved_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("amount_paid")
    def _money(self, value: Decimal) -> str:
        return f"{value:.2f}"


class AdvertPage(BaseModel):
    items: List[AdvertRead]
    total: int
    page: int
    limit: int
    pages: int


class AdminActionRead(BaseModel):
    id: int
    advert_id: int
    admin_id: int
    action_type: AdminActionType
    reason: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class SweepRead(BaseModel):
    today: date
    checked: int
    updated: int
    expired: int
    failed: int
