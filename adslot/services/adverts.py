"""Advert submission, editing and the non-scheduling state transitions.

Transitions handled here:

* create: new adverts start pending with no slot
* update: admin edits, pending adverts only
* decline: pending -> cancelled, with a mandatory reason
* delete: owner (pending only) or admin removes an advert
* permanent delete: admin hard delete with an optional audit reason

Approval and extension live in ``reservations`` and ``extensions``.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from adslot.config import BOOKING_SETTINGS
from adslot.errors import InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from adslot.models.db.admin_actions import AdminAction
from adslot.models.db.adverts import Advert
from adslot.models.db.enums import AdminActionType, AdvertCategory, AdvertStatus, NotificationSeverity
from adslot.models.db.users import User
from adslot.services.notifications import notify, notify_admins
from adslot.utils import get_logger

logger = get_logger(__name__)

# Fields an admin may change while an advert is still pending.
EDITABLE_FIELDS = frozenset({
    "client_name",
    "category",
    "caption",
    "media_url",
    "days_paid",
    "payment_date",
    "amount_paid",
    "payment_method",
    "start_date",
})
NULLABLE_FIELDS = frozenset({"media_url"})


def get_advert(session: Session, advert_id: int) -> Advert:
    advert = session.get(Advert, advert_id)
    if advert is None:
        raise NotFoundError("advert", advert_id)
    return advert


def get_visible_advert(session: Session, advert_id: int, actor: User) -> Advert:
    """Admins see every advert; sales reps only their own."""
    advert = get_advert(session, advert_id)
    if not actor.is_admin and advert.sales_rep_id != actor.id:
        raise PermissionDeniedError("You can only view your own adverts", details={"advert_id": advert_id})
    return advert


def _check_text(value: Optional[str], field: str, *, min_length: int = 0, max_length: Optional[int] = None) -> Optional[str]:
    text = value.strip() if value else ""
    if len(text) < min_length:
        raise ValidationError(
            f"{field.capitalize()} must be at least {min_length} characters",
            details={"field": field, "min_length": min_length},
        )
    if max_length is not None and len(text) > max_length:
        raise ValidationError(
            f"{field.capitalize()} must be at most {max_length} characters",
            details={"field": field, "max_length": max_length},
        )
    return text or None


def create_advert(
    session: Session,
    *,
    sales_rep: User,
    client_name: str,
    category: AdvertCategory | str,
    caption: str,
    days_paid: int,
    payment_date: date,
    amount_paid: Decimal,
    start_date: date,
    media_url: Optional[str] = None,
    payment_method: Optional[str] = None,
) -> Advert:
    if days_paid < 1:
        raise ValidationError("Days paid must be at least 1", details={"days_paid": days_paid})
    if Decimal(str(amount_paid)) < 0:
        raise ValidationError("Amount paid cannot be negative", details={"amount_paid": str(amount_paid)})
    advert = Advert(
        client_name=client_name.strip(),
        category=AdvertCategory(category),
        caption=caption,
        media_url=media_url,
        days_paid=days_paid,
        payment_date=payment_date,
        amount_paid=Decimal(str(amount_paid)),
        payment_method=payment_method or str(BOOKING_SETTINGS["default_payment_method"]),
        start_date=start_date,
        status=AdvertStatus.PENDING,
        sales_rep_id=sales_rep.id,
    )
    session.add(advert)
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(advert)
    logger.info("Advert submitted", advert_id=advert.id, sales_rep_id=sales_rep.id, category=advert.category.value)
    notify_admins(
        session,
        title="New Pending Advert",
        message=f'{sales_rep.full_name} submitted an advert for "{advert.client_name}" awaiting approval.',
        severity=NotificationSeverity.INFO,
        related_advert_id=advert.id,
    )
    return advert


def update_advert(session: Session, advert_id: int, changes: Dict[str, Any]) -> Advert:
    """Apply whitelisted field changes to a pending advert."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError("Fields cannot be edited", details={"fields": sorted(unknown)})
    if not changes:
        raise ValidationError("No fields to update")
    nulled = sorted(name for name, value in changes.items() if value is None and name not in NULLABLE_FIELDS)
    if nulled:
        raise ValidationError("Fields cannot be cleared", details={"fields": nulled})
    try:
        advert = get_advert(session, advert_id)
        if advert.status != AdvertStatus.PENDING:
            raise InvalidStateError(
                "Only pending adverts can be edited",
                details={"advert_id": advert_id, "status": advert.status.value},
            )
        if "days_paid" in changes and changes["days_paid"] < 1:
            raise ValidationError("Days paid must be at least 1", details={"days_paid": changes["days_paid"]})
        if "amount_paid" in changes and Decimal(str(changes["amount_paid"])) < 0:
            raise ValidationError("Amount paid cannot be negative")
        for name, value in changes.items():
            if name == "category":
                value = AdvertCategory(value)
            elif name == "amount_paid":
                value = Decimal(str(value))
            setattr(advert, name, value)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(advert)
    logger.info("Advert updated", advert_id=advert_id, fields=sorted(changes))
    return advert


def decline_advert(
    session: Session,
    advert_id: int,
    *,
    reason: Optional[str],
    notes: Optional[str] = None,
    admin_id: int,
) -> Advert:
    """Cancel a pending advert and tell its sales rep why."""
    reason_text = _check_text(
        reason, "reason", min_length=int(BOOKING_SETTINGS["decline_reason_min_length"])
    )
    notes_text = _check_text(notes, "notes", max_length=int(BOOKING_SETTINGS["notes_max_length"]))
    try:
        advert = get_advert(session, advert_id)
        if advert.status != AdvertStatus.PENDING:
            raise InvalidStateError(
                "Only pending adverts can be declined",
                details={"advert_id": advert_id, "status": advert.status.value},
            )
        advert.status = AdvertStatus.CANCELLED
        session.add(AdminAction(
            advert_id=advert.id,
            admin_id=admin_id,
            action_type=AdminActionType.DECLINED,
            reason=reason_text,
            notes=notes_text,
        ))
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Advert declined", advert_id=advert_id, admin_id=admin_id)
    notify(
        session,
        user_id=advert.sales_rep_id,
        title="Advert Declined",
        message=f'Your advert for "{advert.client_name}" was declined. Reason: {reason_text}',
        severity=NotificationSeverity.ERROR,
        related_advert_id=advert.id,
    )
    return advert


def _remove(session: Session, advert: Advert) -> int:
    rows = len(advert.assignments)
    session.delete(advert)
    return rows


def delete_advert(session: Session, advert_id: int, *, actor: User) -> Tuple[int, int]:
    """Delete an advert. Returns ``(advert_id, assignment_rows_removed)``.

    Sales reps may only remove their own pending adverts; admins any advert.
    """
    try:
        advert = get_advert(session, advert_id)
        if not actor.is_admin:
            if advert.sales_rep_id != actor.id:
                raise PermissionDeniedError("You can only delete your own adverts", details={"advert_id": advert_id})
            if advert.status != AdvertStatus.PENDING:
                raise PermissionDeniedError(
                    "Only pending adverts can be deleted by sales reps",
                    details={"advert_id": advert_id, "status": advert.status.value},
                )
        rows = _remove(session, advert)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Advert deleted", advert_id=advert_id, actor_id=actor.id, assignments_removed=rows)
    return advert_id, rows


def permanently_delete_advert(
    session: Session,
    advert_id: int,
    *,
    admin_id: int,
    reason: Optional[str] = None,
) -> Tuple[int, int]:
    """Admin hard delete, recorded in the admin action log."""
    reason_text = _check_text(reason, "reason", max_length=int(BOOKING_SETTINGS["notes_max_length"]))
    try:
        advert = get_advert(session, advert_id)
        session.add(AdminAction(
            advert_id=advert.id,
            admin_id=admin_id,
            action_type=AdminActionType.DELETED,
            reason=reason_text or "No reason provided",
        ))
        rows = _remove(session, advert)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Advert permanently deleted", advert_id=advert_id, admin_id=admin_id, assignments_removed=rows)
    return advert_id, rows


def list_adverts(
    session: Session,
    *,
    actor: User,
    status: Optional[AdvertStatus] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> Tuple[List[Advert], int]:
    """Newest first; sales reps only see their own. Returns ``(items, total)``."""
    limit = limit or int(BOOKING_SETTINGS["default_page_size"])
    query = session.query(Advert)
    if not actor.is_admin:
        query = query.filter(Advert.sales_rep_id == actor.id)
    if status is not None:
        query = query.filter(Advert.status == status)
    total = query.count()
    items = (
        query.order_by(Advert.created_at.desc(), Advert.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def list_pending_adverts(session: Session) -> List[Advert]:
    return (
        session.query(Advert)
        .filter(Advert.status == AdvertStatus.PENDING)
        .order_by(Advert.created_at.asc(), Advert.id.asc())
        .all()
    )


def advert_history(session: Session, advert_id: int) -> List[AdminAction]:
    """Newest first. Audit rows outlive a permanent delete; unknown ids are 404."""
    actions = (
        session.query(AdminAction)
        .filter(AdminAction.advert_id == advert_id)
        .order_by(AdminAction.created_at.desc(), AdminAction.id.desc())
        .all()
    )
    if not actions:
        get_advert(session, advert_id)
    return actions


__all__ = [
    "EDITABLE_FIELDS",
    "get_advert",
    "get_visible_advert",
    "create_advert",
    "update_advert",
    "decline_advert",
    "delete_advert",
    "permanently_delete_advert",
    "list_adverts",
    "list_pending_adverts",
    "advert_history",
]
