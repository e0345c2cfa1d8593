"""Availability checks for booking an advert into a slot over a run of days.

For each calendar date in the run two rules are evaluated against the
existing assignment rows of that (slot, date):

1. Capacity: occupied rows >= capacity -> ``capacity`` conflict. When the
   date is already full the category rule is not evaluated, so a date never
   reports more than one conflict.
2. Category: another advert of the same category already occupies the
   slot that day -> ``category`` conflict naming that advert's client.

Rows belonging to ``exclude_advert_id`` are ignored by both rules so an
advert never conflicts with itself when it is extended.

``check_availability`` only reads. The commit paths (approval, extension)
call it again inside their own transaction with ``stop_at_first=True``.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from adslot.errors import ConflictError, ValidationError
from adslot.models.db.adverts import Advert
from adslot.models.db.enums import AdvertCategory, ConflictKind
from adslot.models.db.slot_assignments import DailySlotAssignment
from adslot.services.slot_catalog import slot_capacity


@dataclass(frozen=True)
class Occupant:
    advert_id: int
    category: AdvertCategory
    client_name: str


@dataclass(frozen=True)
class SlotConflict:
    date: date
    kind: ConflictKind
    detail: str
    conflicting_client: Optional[str] = None

    def to_error(self, slot_id: Optional[int] = None) -> ConflictError:
        return ConflictError(
            self.detail,
            kind=self.kind.value,
            conflict_date=self.date,
            slot_id=slot_id,
            conflicting_client=self.conflicting_client,
        )


@dataclass
class AvailabilityResult:
    slot_id: int
    start_date: date
    day_count: int
    conflicts: List[SlotConflict] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return not self.conflicts


def covered_dates(start_date: date, day_count: int) -> List[date]:
    """The ``day_count`` consecutive dates starting at ``start_date``."""
    return [start_date + timedelta(days=i) for i in range(day_count)]


def run_end_date(start_date: date, day_count: int) -> date:
    """Last date of a run; a 1-day run ends on its start date."""
    return start_date + timedelta(days=day_count - 1)


def evaluate_day(
    day: date,
    occupants: Sequence[Occupant],
    category: AdvertCategory,
    capacity: int,
) -> Optional[SlotConflict]:
    """Apply the capacity rule, then the category rule, to one date."""
    if len(occupants) >= capacity:
        return SlotConflict(
            date=day,
            kind=ConflictKind.CAPACITY,
            detail=f"Slot is full on {day.isoformat()}. Maximum {capacity} adverts per slot allowed.",
        )
    for occupant in occupants:
        if occupant.category == category:
            return SlotConflict(
                date=day,
                kind=ConflictKind.CATEGORY,
                detail=(
                    f"Category conflict on {day.isoformat()}: a '{category.value}' advert for "
                    f"{occupant.client_name} is already scheduled in this slot."
                ),
                conflicting_client=occupant.client_name,
            )
    return None


def load_occupants(
    session: Session,
    slot_id: int,
    dates: Iterable[date],
    *,
    exclude_advert_id: Optional[int] = None,
) -> dict[date, List[Occupant]]:
    """Occupants of ``slot_id`` on each of ``dates``, in a single query."""
    dates = list(dates)
    if not dates:
        return {}
    query = (
        session.query(
            DailySlotAssignment.assignment_date,
            Advert.id,
            Advert.category,
            Advert.client_name,
        )
        .join(Advert, Advert.id == DailySlotAssignment.advert_id)
        .filter(
            DailySlotAssignment.slot_id == slot_id,
            DailySlotAssignment.assignment_date >= min(dates),
            DailySlotAssignment.assignment_date <= max(dates),
        )
    )
    if exclude_advert_id is not None:
        query = query.filter(DailySlotAssignment.advert_id != exclude_advert_id)

    by_date: dict[date, List[Occupant]] = defaultdict(list)
    for assignment_date, advert_id, category, client_name in query.order_by(DailySlotAssignment.id).all():
        by_date[assignment_date].append(Occupant(advert_id, AdvertCategory(category), client_name))
    return by_date


def check_availability(
    session: Session,
    *,
    category: AdvertCategory | str,
    slot_id: int,
    start_date: date,
    day_count: int,
    exclude_advert_id: Optional[int] = None,
    stop_at_first: bool = False,
) -> AvailabilityResult:
    """Check every date of the run against the slot's current occupancy.

    With ``stop_at_first`` the walk ends at the first conflicting date, which
    is what the commit paths report back to the caller.
    """
    if day_count < 1:
        raise ValidationError("Day count must be at least 1", details={"day_count": day_count})
    category = AdvertCategory(category)
    capacity = slot_capacity()
    dates = covered_dates(start_date, day_count)
    occupancy = load_occupants(session, slot_id, dates, exclude_advert_id=exclude_advert_id)

    result = AvailabilityResult(slot_id=slot_id, start_date=start_date, day_count=day_count)
    for day in dates:
        conflict = evaluate_day(day, occupancy.get(day, []), category, capacity)
        if conflict is None:
            continue
        result.conflicts.append(conflict)
        if stop_at_first:
            break
    return result


def ensure_available(
    session: Session,
    *,
    category: AdvertCategory | str,
    slot_id: int,
    start_date: date,
    day_count: int,
    exclude_advert_id: Optional[int] = None,
) -> None:
    """Commit-time check: raise ``ConflictError`` for the first conflicting date."""
    result = check_availability(
        session,
        category=category,
        slot_id=slot_id,
        start_date=start_date,
        day_count=day_count,
        exclude_advert_id=exclude_advert_id,
        stop_at_first=True,
    )
    if not result.available:
        raise result.conflicts[0].to_error(slot_id)


__all__ = [
    "Occupant",
    "SlotConflict",
    "AvailabilityResult",
    "covered_dates",
    "run_end_date",
    "evaluate_day",
    "load_occupants",
    "check_availability",
    "ensure_available",
]
