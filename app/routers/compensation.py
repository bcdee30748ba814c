"""
Compensation Router

HTTP endpoints for compensation-time overviews, compensation-leave requests
and the weekly worked-versus-contract hours report.
All business logic is delegated to the compensation service layer.
"""

from datetime import date

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.exceptions import NotFoundError
from app.core.limiter import limiter, write_limit
from app.core.schemas import ApiResponse
from app.database import get_db
from app.models.time_entry import EntryStatus
from app.models.user import User, ELEVATED_ROLES
from app.routers.auth_deps import get_current_user, ensure_can_view_user, require_role
from app.schemas.compensation import (
    CompensationBalance,
    CompensationEntryResponse,
    CompensationOverview,
    CompensationRequestAction,
    CompensationRequestCreate,
    CompensationRequestResult,
)
from app.schemas.time_entry import WeeklyOvertimeReport
from app.services import compensation_service, time_tracking_service

router = APIRouter(tags=["compensation"])


@router.get("/personnel/{user_id}/compensation", response_model=ApiResponse[CompensationOverview])
def get_personnel_compensation(
    user_id: int,
    period: str = Query("current_month"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Compensation accrual and usage for one employee within a period
    (current_week, current_month, last_month or last_3_months).
    """
    ensure_can_view_user(current_user, user_id)
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return ApiResponse.ok(compensation_service.get_overview(db, user, period))


@router.get("/time-tracking/compensation/balance", response_model=ApiResponse[CompensationBalance])
def get_my_balance(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Full-history balance, the figure new requests are validated against."""
    return ApiResponse.ok(compensation_service.get_balance(db, current_user.id))


@router.post("/time-tracking/compensation/request", response_model=ApiResponse[CompensationRequestResult])
@limiter.limit(write_limit)
def request_compensation(
    request: Request,
    payload: CompensationRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = compensation_service.create_usage_request(db, current_user, payload)
    return ApiResponse.ok(
        result,
        message=f"Compensation leave requested for {payload.date.strftime('%d-%m-%Y')}",
    )


@router.get("/time-tracking/compensation/requests", response_model=ApiResponse[List[CompensationEntryResponse]])
def list_compensation_requests(
    user_id: Optional[int] = None,
    status: Optional[EntryStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Own requests by default; elevated roles may list anyone's (or everyone's)."""
    if current_user.is_elevated:
        target = user_id
    else:
        target = current_user.id
        if user_id is not None:
            ensure_can_view_user(current_user, user_id)
    entries = compensation_service.list_usage_requests(db, target, [status] if status else None)
    return ApiResponse.ok([CompensationEntryResponse.model_validate(e) for e in entries], count=len(entries))


@router.put("/time-tracking/compensation/requests/{request_id}", response_model=ApiResponse[CompensationEntryResponse])
def act_on_compensation_request(
    request_id: int,
    action: CompensationRequestAction = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Approve, reject, cancel or update a pending request (`action` selects which)."""
    entry = compensation_service.apply_action(db, request_id, action, current_user)
    return ApiResponse.ok(CompensationEntryResponse.model_validate(entry), action=action.action)


@router.get("/time-tracking/weekly-overtime", response_model=ApiResponse[WeeklyOvertimeReport])
def get_weekly_overtime(
    week_start: Optional[date] = Query(None, description="Any date in the week; defaults to the current week"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(list(ELEVATED_ROLES)))
):
    """Worked hours against contract hours for every active employee, Monday to Sunday."""
    return ApiResponse.ok(time_tracking_service.weekly_overtime_report(db, week_start))
