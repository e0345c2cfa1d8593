"""Read-only schedule views over the slot grid and its assignment rows."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from adslot.config import SLOT_SETTINGS
from adslot.errors import ValidationError
from adslot.models.db.adverts import Advert
from adslot.models.db.slot_assignments import DailySlotAssignment
from adslot.services.slot_catalog import list_slots, slot_capacity


def day_schedule(session: Session, day: date) -> List[Dict[str, Any]]:
    """Every slot for ``day`` with the adverts occupying it."""
    rows = (
        session.query(DailySlotAssignment.slot_id, Advert)
        .join(Advert, Advert.id == DailySlotAssignment.advert_id)
        .filter(DailySlotAssignment.assignment_date == day)
        .order_by(DailySlotAssignment.id)
        .all()
    )
    by_slot: Dict[int, List[Advert]] = defaultdict(list)
    for slot_id, advert in rows:
        by_slot[slot_id].append(advert)

    capacity = slot_capacity()
    schedule = []
    for slot in list_slots(session):
        adverts = by_slot.get(slot.id, [])
        schedule.append({
            "slot_id": slot.id,
            "slot_time": slot.slot_time.strftime("%H:%M"),
            "slot_label": slot.slot_label,
            "capacity": capacity,
            "available": max(0, capacity - len(adverts)),
            "adverts": [
                {
                    "advert_id": a.id,
                    "client_name": a.client_name,
                    "category": a.category.value,
                    "caption": a.caption,
                    "media_url": a.media_url,
                    "status": a.status.value,
                }
                for a in adverts
            ],
        })
    return schedule


def vacant_slots(session: Session, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    """Each (date, slot) pair in the inclusive range that still has room."""
    if end_date < start_date:
        raise ValidationError("End date must not be before start date")
    span = (end_date - start_date).days + 1
    max_span = int(SLOT_SETTINGS["max_vacancy_range_days"])
    if span > max_span:
        raise ValidationError(
            f"Date range too large; at most {max_span} days",
            details={"requested_days": span, "max_days": max_span},
        )

    counts = {
        (slot_id, day): occupied
        for slot_id, day, occupied in (
            session.query(
                DailySlotAssignment.slot_id,
                DailySlotAssignment.assignment_date,
                func.count(DailySlotAssignment.id),
            )
            .filter(DailySlotAssignment.assignment_date.between(start_date, end_date))
            .group_by(DailySlotAssignment.slot_id, DailySlotAssignment.assignment_date)
            .all()
        )
    }
    capacity = slot_capacity()
    slots = list_slots(session)
    vacancies = []
    for offset in range(span):
        day = start_date + timedelta(days=offset)
        for slot in slots:
            occupied = counts.get((slot.id, day), 0)
            if occupied < capacity:
                vacancies.append({
                    "date": day.isoformat(),
                    "slot_id": slot.id,
                    "slot_time": slot.slot_time.strftime("%H:%M"),
                    "slot_label": slot.slot_label,
                    "occupied": occupied,
                    "available_capacity": capacity - occupied,
                })
    return vacancies


__all__ = ["day_schedule", "vacant_slots"]
