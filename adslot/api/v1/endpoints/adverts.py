"""
Advert endpoints: submission, listing, approval, extension, decline, deletion
and the manual lifecycle trigger.
"""
from math import ceil
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
import time

from adslot.api.deps import get_db, get_pagination_params, require_admin, require_staff
from adslot.errors import AdSlotError
from adslot.models.db import User
from adslot.models.db.enums import AdvertStatus
from adslot.models.schemas.adverts import (
    AdminActionRead,
    AdvertCreate,
    AdvertPage,
    AdvertRead,
    AdvertUpdate,
    ApproveRequest,
    DeclineRequest,
    ExtendRequest,
    SweepRead,
)
from adslot.models.schemas.base import ResponseBase
from adslot.services import adverts as advert_service
from adslot.services.extensions import extend_advert
from adslot.services.lifecycle import run_lifecycle_sweep
from adslot.services.reservations import approve_advert
from adslot.utils import get_logger, log_business_event, log_performance
from adslot.utils.time import today

router = APIRouter()
logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")


def _advert_payload(advert) -> dict:
    return AdvertRead.model_validate(advert).model_dump(mode="json")


@router.post(
    "/",
    response_model=AdvertRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a new advert for approval"
)
async def create_advert(
    payload: AdvertCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> AdvertRead:
    request_id = _request_id(request)
    fields = payload.model_dump()
    if fields.get("media_url") is not None:
        fields["media_url"] = str(fields["media_url"])
    advert = advert_service.create_advert(db, sales_rep=current_user, **fields)
    log_business_event(
        event_type="advert_submitted",
        details={"advert_id": advert.id, "category": advert.category.value, "days_paid": advert.days_paid},
        user_id=current_user.id,
        request_id=request_id,
    )
    return AdvertRead.model_validate(advert)


@router.get("/", response_model=AdvertPage, summary="List adverts (sales reps see their own)")
async def list_adverts(
    status_filter: Optional[AdvertStatus] = Query(None, alias="status"),
    pagination: dict = Depends(get_pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> AdvertPage:
    items, total = advert_service.list_adverts(
        db, actor=current_user, status=status_filter, page=pagination["page"], limit=pagination["limit"]
    )
    return AdvertPage(
        items=[AdvertRead.model_validate(a) for a in items],
        total=total,
        page=pagination["page"],
        limit=pagination["limit"],
        pages=ceil(total / pagination["limit"]) if total else 0,
    )


@router.get("/pending", response_model=List[AdvertRead], summary="Approval queue, oldest first")
async def list_pending_adverts(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> List[AdvertRead]:
    return [AdvertRead.model_validate(a) for a in advert_service.list_pending_adverts(db)]


@router.post(
    "/manual-update",
    response_model=ResponseBase,
    summary="Run the lifecycle sweep now"
)
async def manual_lifecycle_update(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ResponseBase:
    """Recompute remaining days for every active advert and expire finished ones."""
    start_time = time.time()
    request_id = _request_id(request)
    run_date = today()
    logger.info("Manual lifecycle sweep requested", admin_id=current_user.id, request_id=request_id)

    result = run_lifecycle_sweep(db, run_date)

    log_performance(
        operation="manual_lifecycle_sweep",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data=result.as_dict(),
    )
    return ResponseBase(
        success=True,
        message=f"Lifecycle sweep complete: {result.updated} updated, {result.expired} expired",
        data=SweepRead(today=run_date, **result.as_dict()).model_dump(mode="json"),
    )


@router.get("/{advert_id}", response_model=AdvertRead, summary="Get one advert")
async def get_advert(
    advert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> AdvertRead:
    return AdvertRead.model_validate(advert_service.get_visible_advert(db, advert_id, current_user))


@router.patch("/{advert_id}", response_model=AdvertRead, summary="Edit a pending advert")
async def update_advert(
    advert_id: int,
    payload: AdvertUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> AdvertRead:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("media_url") is not None:
        changes["media_url"] = str(changes["media_url"])
    advert = advert_service.update_advert(db, advert_id, changes)
    log_business_event(
        event_type="advert_updated",
        details={"advert_id": advert_id, "fields": sorted(changes)},
        user_id=current_user.id,
        request_id=_request_id(request),
    )
    return AdvertRead.model_validate(advert)


@router.post(
    "/{advert_id}/approve",
    response_model=ResponseBase,
    summary="Approve a pending advert into a slot"
)
async def approve(
    advert_id: int,
    payload: ApproveRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ResponseBase:
    """
    Assign the advert to a slot for every day of its run.

    400 on a capacity/category conflict or a non-pending advert,
    404 when the advert or slot does not exist.
    """
    start_time = time.time()
    request_id = _request_id(request)

    logger.info(
        "Advert approval started",
        advert_id=advert_id,
        slot_id=payload.slot_id,
        admin_id=current_user.id,
        request_id=request_id
    )

    try:
        advert = approve_advert(db, advert_id, payload.slot_id, current_user.id)

        log_business_event(
            event_type="advert_approved",
            details={
                "advert_id": advert.id,
                "slot_id": advert.assigned_slot_id,
                "start_date": advert.start_date.isoformat(),
                "end_date": advert.end_date.isoformat() if advert.end_date else None,
                "days": advert.days_paid,
            },
            user_id=current_user.id,
            request_id=request_id
        )
        log_performance(
            operation="approve_advert",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"advert_id": advert_id, "days": advert.days_paid}
        )

        return ResponseBase(
            success=True,
            message="Advert approved and scheduled successfully",
            data={"advert": _advert_payload(advert)}
        )

    except AdSlotError as e:
        logger.warning(
            "Advert approval rejected",
            advert_id=advert_id,
            slot_id=payload.slot_id,
            error=e.error_code,
            reason=e.message,
            request_id=request_id
        )
        raise
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Advert approval failed",
            advert_id=advert_id,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during advert approval"
        )


@router.post(
    "/{advert_id}/extend",
    response_model=ResponseBase,
    summary="Extend an approved advert's run"
)
async def extend(
    advert_id: int,
    payload: ExtendRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ResponseBase:
    start_time = time.time()
    request_id = _request_id(request)

    logger.info(
        "Advert extension started",
        advert_id=advert_id,
        additional_days=payload.additional_days,
        admin_id=current_user.id,
        request_id=request_id
    )

    try:
        result = extend_advert(db, advert_id, payload.additional_days, payload.amount_paid)

        log_business_event(
            event_type="advert_extended",
            details={**result.as_dict(), "amount_added": str(payload.amount_paid)},
            user_id=current_user.id,
            request_id=request_id
        )
        log_performance(
            operation="extend_advert",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"advert_id": advert_id, "rows_added": result.rows_added}
        )

        return ResponseBase(
            success=True,
            message=f"Advert extended by {payload.additional_days} day(s)",
            data={
                "new_end_date": result.new_end_date.isoformat(),
                "new_days_paid": result.new_days_paid,
                "new_remaining_days": result.new_remaining_days,
                "reactivated": result.reactivated,
            }
        )

    except AdSlotError as e:
        logger.warning(
            "Advert extension rejected",
            advert_id=advert_id,
            error=e.error_code,
            reason=e.message,
            request_id=request_id
        )
        raise
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Advert extension failed",
            advert_id=advert_id,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during advert extension"
        )


@router.post(
    "/{advert_id}/decline",
    response_model=ResponseBase,
    summary="Decline a pending advert"
)
async def decline(
    advert_id: int,
    payload: DeclineRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ResponseBase:
    request_id = _request_id(request)
    advert = advert_service.decline_advert(
        db, advert_id, reason=payload.reason, notes=payload.notes, admin_id=current_user.id
    )
    log_business_event(
        event_type="advert_declined",
        details={"advert_id": advert_id},
        user_id=current_user.id,
        request_id=request_id
    )
    return ResponseBase(
        success=True,
        message="Advert declined",
        data={"advert": _advert_payload(advert)}
    )


@router.get(
    "/{advert_id}/history",
    response_model=List[AdminActionRead],
    summary="Admin actions taken on an advert"
)
async def history(
    advert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> List[AdminActionRead]:
    return [AdminActionRead.model_validate(a) for a in advert_service.advert_history(db, advert_id)]


@router.delete("/{advert_id}", response_model=ResponseBase, summary="Delete an advert")
async def delete(
    advert_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
) -> ResponseBase:
    """Sales reps may delete their own pending adverts; admins any advert."""
    _, rows = advert_service.delete_advert(db, advert_id, actor=current_user)
    log_business_event(
        event_type="advert_deleted",
        details={"advert_id": advert_id, "assignments_removed": rows},
        user_id=current_user.id,
        request_id=_request_id(request)
    )
    return ResponseBase(success=True, message="Advert deleted", data={"advert_id": advert_id})


@router.delete(
    "/{advert_id}/permanent",
    response_model=ResponseBase,
    summary="Permanently delete an advert and its schedule"
)
async def permanent_delete(
    advert_id: int,
    request: Request,
    reason: Optional[str] = Query(None, max_length=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ResponseBase:
    _, rows = advert_service.permanently_delete_advert(db, advert_id, admin_id=current_user.id, reason=reason)
    log_business_event(
        event_type="advert_permanently_deleted",
        details={"advert_id": advert_id, "assignments_removed": rows},
        user_id=current_user.id,
        request_id=_request_id(request)
    )
    return ResponseBase(
        success=True,
        message="Advert permanently deleted",
        data={"advert_id": advert_id, "assignments_removed": rows}
    )
