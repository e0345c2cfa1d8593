"""
Slot grid, availability and schedule endpoints.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
import time

from adslot.api.deps import get_db, require_staff
from adslot.errors import AdSlotError, NotFoundError
from adslot.models.db import User
from adslot.models.schemas.slots import (
    AvailabilityRead,
    ConflictRead,
    DayScheduleRead,
    TimeSlotRead,
    VacancyRead,
)
from adslot.services.adverts import get_visible_advert
from adslot.services.availability import check_availability
from adslot.services.schedule import day_schedule, vacant_slots
from adslot.services.slot_catalog import get_slot, list_slots
from adslot.utils import get_logger, log_performance
from adslot.utils.time import today

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=List[TimeSlotRead], summary="List the daily slot grid")
async def get_slots(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> List[TimeSlotRead]:
    return [TimeSlotRead.model_validate(s) for s in list_slots(db)]


@router.get(
    "/check-availability",
    response_model=AvailabilityRead,
    summary="Check whether an advert's run fits a slot",
)
async def get_availability(
    request: Request,
    advert_id: int = Query(..., alias="advertId", ge=1),
    slot_id: int = Query(..., alias="slotId", ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> AvailabilityRead:
    """
    Advisory check over every day of the advert's run. Nothing is locked;
    approval repeats the check inside its own transaction.
    """
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    try:
        advert = get_visible_advert(db, advert_id, current_user)
        if get_slot(db, slot_id) is None:
            raise NotFoundError("time_slot", slot_id)

        result = check_availability(
            db,
            category=advert.category,
            slot_id=slot_id,
            start_date=advert.start_date,
            day_count=advert.days_paid,
            exclude_advert_id=advert.id,
        )

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            operation="check_availability",
            duration_ms=duration_ms,
            additional_data={"advert_id": advert_id, "slot_id": slot_id, "conflicts": len(result.conflicts)}
        )
        logger.info(
            "Availability checked",
            advert_id=advert_id,
            slot_id=slot_id,
            available=result.available,
            request_id=request_id
        )

        return AvailabilityRead(
            advert_id=advert.id,
            slot_id=slot_id,
            start_date=result.start_date,
            day_count=result.day_count,
            available=result.available,
            conflicts=[ConflictRead.model_validate(c) for c in result.conflicts],
        )

    except (AdSlotError, HTTPException):
        raise
    except Exception as e:
        logger.error(
            "Availability check failed",
            advert_id=advert_id,
            slot_id=slot_id,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during availability check"
        )


@router.get("/today", response_model=DayScheduleRead, summary="Today's schedule")
async def get_today_schedule(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> DayScheduleRead:
    day = today()
    return DayScheduleRead(date=day, slots=day_schedule(db, day))


@router.get("/calendar", response_model=DayScheduleRead, summary="Schedule for a given date")
async def get_calendar_schedule(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> DayScheduleRead:
    day = day or today()
    return DayScheduleRead(date=day, slots=day_schedule(db, day))


@router.get("/vacant", response_model=List[VacancyRead], summary="Slots with spare capacity over a date range")
async def get_vacant_slots(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> List[VacancyRead]:
    return [VacancyRead(**row) for row in vacant_slots(db, start_date, end_date)]
