"""Advert lifecycle: remaining-days recomputation, expiry and housekeeping.

Everything here is an explicitly invoked function taking ``today`` so the
scheduler, the manual trigger endpoint and tests all drive the same code.
Day arithmetic is on calendar dates only; datetimes are truncated first.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from adslot.config import LIFECYCLE_SETTINGS
from adslot.errors import ValidationError
from adslot.models.db.adverts import Advert
from adslot.models.db.enums import AdvertStatus, NotificationSeverity
from adslot.models.db.slot_assignments import DailySlotAssignment
from adslot.services.notifications import notify
from adslot.utils import get_logger, log_business_event
from adslot.utils.time import as_date, today as current_date

logger = get_logger(__name__)


def remaining_days(end_date: date | datetime, today: date | datetime) -> int:
    """Days left before ``end_date``, clamped at zero."""
    return max(0, (as_date(end_date) - as_date(today)).days)


def remaining_days_from_start(start_date: date | datetime, days_paid: int, today: date | datetime) -> int:
    """Paid days not yet elapsed since ``start_date``, clamped at zero.

    Used when the paid run length changes (extension); before the run starts
    this is simply ``days_paid``.
    """
    elapsed = max(0, (as_date(today) - as_date(start_date)).days)
    return max(0, days_paid - elapsed)


@dataclass
class SweepResult:
    checked: int = 0
    updated: int = 0
    expired: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def apply_remaining_days(advert: Advert, today: date) -> Optional[str]:
    """Recompute one advert in memory. Returns 'expired', 'updated' or None.

    A zero counter and the expired status are always written together.
    """
    if advert.end_date is None:
        raise ValueError(f"Active advert {advert.id} has no end date")
    new_value = remaining_days(advert.end_date, today)
    if new_value == 0:
        advert.remaining_days = 0
        advert.status = AdvertStatus.EXPIRED
        return "expired"
    if new_value != advert.remaining_days:
        advert.remaining_days = new_value
        return "updated"
    return None


def run_lifecycle_sweep(session: Session, today: Optional[date] = None) -> SweepResult:
    """Walk active adverts one by one, committing each change on its own.

    A failing advert is rolled back, logged and counted; the walk continues.
    Re-running the sweep for the same day is a no-op.
    """
    today = today or current_date()
    result = SweepResult()
    advert_ids = [
        row.id
        for row in session.query(Advert.id).filter(Advert.status == AdvertStatus.ACTIVE).order_by(Advert.id).all()
    ]
    logger.info("Lifecycle sweep started", today=today.isoformat(), candidates=len(advert_ids))

    for advert_id in advert_ids:
        result.checked += 1
        try:
            advert = session.get(Advert, advert_id)
            if advert is None or advert.status != AdvertStatus.ACTIVE:
                continue  # deleted or changed since the id list was read
            outcome = apply_remaining_days(advert, today)
            if outcome is None:
                continue
            session.commit()
            if outcome == "expired":
                result.expired += 1
                logger.info("Advert expired", advert_id=advert_id, end_date=str(advert.end_date))
            else:
                result.updated += 1
        except Exception as e:
            session.rollback()
            result.failed += 1
            logger.error("Lifecycle update failed for advert", advert_id=advert_id, error=str(e), exc_info=True)

    log_business_event("lifecycle_sweep_completed", {"today": today.isoformat(), **result.as_dict()})
    return result


def cleanup_old_assignments(
    session: Session,
    today: Optional[date] = None,
    retention_days: Optional[int] = None,
) -> int:
    """Delete assignment rows dated before ``today - retention_days``.

    Rows for today or later are never touched.
    """
    today = today or current_date()
    if retention_days is None:
        retention_days = int(LIFECYCLE_SETTINGS["assignment_retention_days"])
    if retention_days < 1:
        raise ValidationError("Retention must be at least 1 day", details={"retention_days": retention_days})
    cutoff = today - timedelta(days=retention_days)
    try:
        outcome = session.execute(
            delete(DailySlotAssignment)
            .where(DailySlotAssignment.assignment_date < cutoff)
            .execution_options(synchronize_session=False)
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    deleted = outcome.rowcount or 0
    logger.info("Old slot assignments pruned", cutoff=cutoff.isoformat(), deleted=deleted)
    return deleted


def notify_expiring_adverts(session: Session, today: Optional[date] = None) -> int:
    """Warn sales reps whose active adverts run their last day tomorrow."""
    today = today or current_date()
    tomorrow = today + timedelta(days=1)
    adverts = (
        session.query(Advert)
        .filter(Advert.status == AdvertStatus.ACTIVE, Advert.end_date == tomorrow)
        .order_by(Advert.id)
        .all()
    )
    sent = 0
    for advert in adverts:
        note_id = notify(
            session,
            user_id=advert.sales_rep_id,
            title="Advert Expiring Soon",
            message=(
                f'Your advert for "{advert.client_name}" ends on {tomorrow.isoformat()}. '
                "Contact the client if they want to extend it."
            ),
            severity=NotificationSeverity.WARNING,
            related_advert_id=advert.id,
        )
        if note_id is not None:
            sent += 1
    logger.info("Expiry reminders sent", ending_on=tomorrow.isoformat(), adverts=len(adverts), sent=sent)
    return sent


def sweep_summary(result: SweepResult, today: date) -> Dict[str, Any]:
    return {"today": today.isoformat(), **result.as_dict()}


__all__ = [
    "remaining_days",
    "remaining_days_from_start",
    "SweepResult",
    "apply_remaining_days",
    "run_lifecycle_sweep",
    "cleanup_old_assignments",
    "notify_expiring_adverts",
    "sweep_summary",
]
