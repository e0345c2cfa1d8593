"""Slot catalog: the fixed hourly grid adverts are booked into.

The grid is reference data. It is seeded once at startup and read at request
time; capacity is a system-wide setting rather than a column.
"""
from __future__ import annotations

from datetime import time
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from adslot.config import SLOT_SETTINGS
from adslot.models.db.time_slots import TimeSlot
from adslot.utils import get_logger

logger = get_logger(__name__)


def slot_capacity() -> int:
    return int(SLOT_SETTINGS["capacity_per_day"])


def slot_label(value: time) -> str:
    """Display label such as ``06:00 AM`` or ``01:00 PM``."""
    return value.strftime("%I:%M %p")


def default_slot_grid() -> List[Tuple[time, str]]:
    first = int(SLOT_SETTINGS["first_hour"])
    last = int(SLOT_SETTINGS["last_hour"])
    return [(time(hour=h), slot_label(time(hour=h))) for h in range(first, last + 1)]


def list_slots(session: Session) -> List[TimeSlot]:
    return session.query(TimeSlot).order_by(TimeSlot.slot_time).all()


def get_slot(session: Session, slot_id: int) -> TimeSlot | None:
    return session.get(TimeSlot, slot_id)


def seed_default_slots(session: Session) -> int:
    """Insert any missing grid slots. Returns how many rows were added.

    Safe to call repeatedly and from several processes at once: a unique
    violation from a concurrent seeder means the rows are already there.
    """
    existing = {row.slot_time for row in session.query(TimeSlot.slot_time).all()}
    missing = [(t, label) for t, label in default_slot_grid() if t not in existing]
    if not missing:
        logger.debug("Slot grid already seeded", slots=len(existing))
        return 0
    session.add_all(TimeSlot(slot_time=t, slot_label=label) for t, label in missing)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info("Slot grid seeded concurrently; keeping existing rows")
        return 0
    logger.info("Slot grid seeded", inserted=len(missing))
    return len(missing)


__all__ = ["slot_capacity", "slot_label", "default_slot_grid", "list_slots", "get_slot", "seed_default_slots"]
