"""Extension: append days to an approved advert's run in its current slot.

The new window is the ``additional_days`` dates right after the current end
date; only those dates are re-checked. Assignment rows are inserted only for
window dates the advert does not already hold, so replaying an extension
whose rows landed earlier never duplicates them. Extending an expired advert
makes it active again.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adslot.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from adslot.models.db.adverts import Advert
from adslot.models.db.enums import AdvertStatus, ConflictKind, SCHEDULED_STATUSES
from adslot.models.db.slot_assignments import DailySlotAssignment
from adslot.services.availability import covered_dates, ensure_available, run_end_date
from adslot.services.lifecycle import remaining_days_from_start
from adslot.services.reservations import lock_slot
from adslot.utils import get_logger
from adslot.utils.time import today as current_date

logger = get_logger(__name__)


@dataclass
class ExtensionResult:
    advert_id: int
    new_end_date: date
    new_days_paid: int
    new_remaining_days: int
    reactivated: bool
    rows_added: int

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["new_end_date"] = self.new_end_date.isoformat()
        return data


def _validate(additional_days: int, extra_amount_paid: Decimal) -> None:
    if additional_days < 1:
        raise ValidationError("Additional days must be at least 1", details={"additional_days": additional_days})
    if extra_amount_paid < 0:
        raise ValidationError("Amount paid cannot be negative", details={"amount_paid": str(extra_amount_paid)})


def _load_extendable(session: Session, advert_id: int, *, refresh: bool = False) -> Advert:
    advert = session.get(Advert, advert_id, populate_existing=refresh)
    if advert is None:
        raise NotFoundError("advert", advert_id)
    if advert.assigned_slot_id is None or advert.status not in SCHEDULED_STATUSES:
        raise InvalidStateError(
            "Advert has no assigned slot; approve it before extending",
            details={"advert_id": advert_id, "status": advert.status.value},
        )
    return advert


def extend_advert(
    session: Session,
    advert_id: int,
    additional_days: int,
    extra_amount_paid: Decimal | int | str = Decimal("0"),
    *,
    today: Optional[date] = None,
) -> ExtensionResult:
    """Extend ``advert_id`` by ``additional_days`` and add ``extra_amount_paid``.

    Raises:
        ValidationError: non-positive day count, negative amount, or a new
            end date that is already in the past
        NotFoundError: advert does not exist
        InvalidStateError: advert was never approved into a slot
        ConflictError: first new date that is full or has a category clash
    """
    extra = Decimal(str(extra_amount_paid))
    _validate(additional_days, extra)
    today = today or current_date()

    try:
        advert = _load_extendable(session, advert_id)
        slot = lock_slot(session, advert.assigned_slot_id)
        if slot is None:
            raise NotFoundError("time_slot", advert.assigned_slot_id)
        # Re-read under the lock; a concurrent extension may have moved the end date.
        advert = _load_extendable(session, advert_id, refresh=True)

        current_end = advert.end_date or run_end_date(advert.start_date, advert.days_paid)
        window_start = current_end + timedelta(days=1)
        window = covered_dates(window_start, additional_days)
        if window[-1] < today:
            raise ValidationError(
                "Extension would end before today; extend by more days",
                details={"new_end_date": window[-1].isoformat(), "today": today.isoformat()},
            )

        ensure_available(
            session,
            category=advert.category,
            slot_id=slot.id,
            start_date=window_start,
            day_count=additional_days,
            exclude_advert_id=advert.id,
        )

        held = {
            row.assignment_date
            for row in session.query(DailySlotAssignment.assignment_date).filter(
                DailySlotAssignment.advert_id == advert.id,
                DailySlotAssignment.slot_id == slot.id,
                DailySlotAssignment.assignment_date.in_(window),
            )
        }
        new_rows = [
            DailySlotAssignment(advert_id=advert.id, slot_id=slot.id, assignment_date=day)
            for day in window
            if day not in held
        ]
        session.add_all(new_rows)

        advert.days_paid += additional_days
        advert.end_date = window[-1]
        advert.remaining_days = remaining_days_from_start(advert.start_date, advert.days_paid, today)
        advert.amount_paid = (advert.amount_paid or Decimal("0")) + extra
        reactivated = advert.status == AdvertStatus.EXPIRED
        advert.status = AdvertStatus.ACTIVE

        result = ExtensionResult(
            advert_id=advert.id,
            new_end_date=advert.end_date,
            new_days_paid=advert.days_paid,
            new_remaining_days=advert.remaining_days,
            reactivated=reactivated,
            rows_added=len(new_rows),
        )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning("Extension lost a race on slot occupancy", advert_id=advert_id, error=str(e))
        raise ConflictError(
            "Slot was booked concurrently; retry the extension",
            kind=ConflictKind.CAPACITY.value,
        ) from e
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Advert extended",
        advert_id=advert_id,
        additional_days=additional_days,
        new_end_date=result.new_end_date.isoformat(),
        rows_added=result.rows_added,
        reactivated=reactivated,
    )
    return result


__all__ = ["ExtensionResult", "extend_advert"]
