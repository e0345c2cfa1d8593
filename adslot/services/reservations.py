"""Approval: move a pending advert into a slot for every day of its run.

One transaction covers the status change, the per-day assignment rows and the
commission invoice. That transaction opens with a no-op UPDATE of the target
``time_slots`` row, so approvals and extensions into the same slot run one
after the other: PostgreSQL holds the row lock, SQLite the database write
lock, until commit. The availability check and the advert read happen after
the lock, so they always see the previous booking's rows. The unique
(slot, date, advert) constraint is the final backstop.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adslot.errors import ConflictError, InvalidStateError, NotFoundError
from adslot.models.db.adverts import Advert
from adslot.models.db.enums import AdvertStatus, ConflictKind, NotificationSeverity
from adslot.models.db.slot_assignments import DailySlotAssignment
from adslot.models.db.time_slots import TimeSlot
from adslot.services.availability import covered_dates, ensure_available, run_end_date
from adslot.services.invoicing import commission_for, create_invoice
from adslot.services.notifications import notify
from adslot.utils import get_logger
from adslot.utils.time import utc_now

logger = get_logger(__name__)


def lock_slot(session: Session, slot_id: int) -> Optional[TimeSlot]:
    """Take the booking lock for ``slot_id`` and return the slot, or None.

    Must be the first statement of the write transaction: pysqlite only opens
    a transaction at the first write, and reads issued before it would not be
    covered by the lock.
    """
    claimed = session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id)
        .values(slot_label=TimeSlot.slot_label)
        .execution_options(synchronize_session=False)
    )
    if not claimed.rowcount:
        return None
    return session.get(TimeSlot, slot_id)


def approve_advert(session: Session, advert_id: int, slot_id: int, approver_id: int) -> Advert:
    """Approve ``advert_id`` into ``slot_id``.

    Raises:
        NotFoundError: advert or slot does not exist
        InvalidStateError: advert is not pending
        ConflictError: first covered date that is full or has a category clash
    """
    try:
        slot = lock_slot(session, slot_id)
        # Re-read under the lock; a concurrent approval may have changed it.
        advert = session.get(Advert, advert_id, populate_existing=True)
        if advert is None:
            raise NotFoundError("advert", advert_id)
        if advert.status != AdvertStatus.PENDING:
            raise InvalidStateError(
                "Only pending adverts can be approved",
                details={"advert_id": advert_id, "status": advert.status.value},
            )
        if slot is None:
            raise NotFoundError("time_slot", slot_id)

        ensure_available(
            session,
            category=advert.category,
            slot_id=slot.id,
            start_date=advert.start_date,
            day_count=advert.days_paid,
            exclude_advert_id=advert.id,
        )

        advert.status = AdvertStatus.ACTIVE
        advert.assigned_slot_id = slot.id
        advert.approved_by = approver_id
        advert.approved_at = utc_now()
        advert.end_date = run_end_date(advert.start_date, advert.days_paid)
        advert.remaining_days = advert.days_paid
        session.add_all(
            DailySlotAssignment(advert_id=advert.id, slot_id=slot.id, assignment_date=day)
            for day in covered_dates(advert.start_date, advert.days_paid)
        )
        invoice = create_invoice(
            session,
            advert_id=advert.id,
            client_name=advert.client_name,
            amount=advert.amount_paid,
            commission_amount=commission_for(advert.amount_paid),
            sales_rep_id=advert.sales_rep_id,
            approver_id=approver_id,
        )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning("Approval lost a race on slot occupancy", advert_id=advert_id, slot_id=slot_id, error=str(e))
        raise ConflictError(
            "Slot was booked concurrently; pick another slot or retry",
            kind=ConflictKind.CAPACITY.value,
            slot_id=slot_id,
        ) from e
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Advert approved",
        advert_id=advert.id,
        slot_id=slot.id,
        start_date=advert.start_date.isoformat(),
        end_date=advert.end_date.isoformat(),
        invoice_number=invoice.invoice_number,
    )
    notify(
        session,
        user_id=advert.sales_rep_id,
        title="Advert Approved",
        message=(
            f'Your advert for "{advert.client_name}" has been approved and scheduled at '
            f"{slot.slot_label} from {advert.start_date.isoformat()} to {advert.end_date.isoformat()}."
        ),
        severity=NotificationSeverity.SUCCESS,
        related_advert_id=advert.id,
    )
    return advert


__all__ = ["lock_slot", "approve_advert"]
