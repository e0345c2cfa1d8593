"""Central Enum definitions for advert booking states.

Stored by value (see ``enum_column``) so raw SQL, check constraints and
JSON payloads all see the same lowercase strings.
"""
from __future__ import annotations
import enum

from sqlalchemy import Enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SALES_REP = "sales_rep"


class AdvertStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# Statuses that hold a slot (assigned_slot_id and end_date are set).
SCHEDULED_STATUSES = (AdvertStatus.ACTIVE, AdvertStatus.EXPIRED)


class AdvertCategory(str, enum.Enum):
    AUTOMOTIVE = "automotive"
    BALES = "bales"
    BEAUTY = "beauty"
    BOREHOLES = "boreholes"
    BUILDING_MATERIALS = "building_materials"
    CHURCH = "church"
    CLOTHING = "clothing"
    COMPANY_REGISTRATION = "company_registration"
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    FARMING = "farming"
    FASHION = "fashion"
    FINANCE = "finance"
    FOOD_BEVERAGE = "food_beverage"
    HEALTH_WELLNESS = "health_wellness"
    HERBS = "herbs"
    HOME_GARDEN = "home_garden"
    LOANS = "loans"
    MOTOR = "motor"
    PHONES = "phones"
    REAL_ESTATE = "real_estate"
    SOLAR = "solar"
    SPORTS = "sports"
    TECHNOLOGY = "technology"
    TRAVEL = "travel"
    VEHICLE_SPARES = "vehicle_spares"
    OTHER = "other"


class ConflictKind(str, enum.Enum):
    CAPACITY = "capacity"
    CATEGORY = "category"


class NotificationSeverity(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class InvoiceStatus(str, enum.Enum):
    PAID = "paid"
    VOID = "void"


class AdminActionType(str, enum.Enum):
    DECLINED = "declined"
    DELETED = "deleted"


def enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    """SQLAlchemy Enum type persisting member values rather than names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


__all__ = [
    "UserRole",
    "AdvertStatus",
    "SCHEDULED_STATUSES",
    "AdvertCategory",
    "ConflictKind",
    "NotificationSeverity",
    "InvoiceStatus",
    "AdminActionType",
    "enum_column",
]
