from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import get_current_user
from app.schemas.time_entry import ClockInRequest, ClockOutRequest, ClockStatus, TimeEntryResponse
from app.services import time_tracking_service

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.get("/current", response_model=ClockStatus)
def current_status(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return time_tracking_service.clock_status(db, current_user)


@router.post("/clock-in", response_model=TimeEntryResponse)
def clock_in(
    payload: Optional[ClockInRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    description = payload.description if payload else None
    return time_tracking_service.clock_in(db, current_user, description)


@router.post("/clock-out", response_model=ClockStatus)
def clock_out(
    payload: Optional[ClockOutRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    break_minutes = payload.break_minutes if payload else 0
    return time_tracking_service.clock_out(db, current_user, break_minutes)


@router.get("", response_model=List[TimeEntryResponse])
def list_time_entries(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return time_tracking_service.list_entries(db, current_user.id, start, end)
