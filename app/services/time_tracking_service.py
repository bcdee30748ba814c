"""
Clock-in / clock-out for regular work entries, the source of ledger intervals,
and the weekly worked-versus-contract hours report.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.clock import day_bounds, now_local, today_local
from app.core.exceptions import BusinessRuleError
from app.models.time_entry import TimeEntry, WorkType, EntryStatus, INACTIVE_STATUSES
from app.models.user import User, UserRole
from app.schemas.compensation import WorkInterval
from app.schemas.time_entry import (
    ClockStatus,
    TimeEntryResponse,
    WeeklyHours,
    WeeklyHoursStatus,
    WeeklyOvertimeReport,
)
from app.services.compensation_ledger import format_duration, worked_hours

logger = logging.getLogger(__name__)


def get_open_entry(db: Session, user_id: int) -> Optional[TimeEntry]:
    return db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.work_type == WorkType.REGULAR,
        TimeEntry.end_time.is_(None),
    ).first()


def _hours_since(db: Session, user_id: int, since: datetime) -> float:
    entries = db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.work_type == WorkType.REGULAR,
        TimeEntry.start_time >= since,
        TimeEntry.end_time.isnot(None),
    ).all()
    return round(sum(worked_hours(WorkInterval.model_validate(e)) for e in entries), 2)


def clock_status(db: Session, user: User, now: Optional[datetime] = None) -> ClockStatus:
    now = now or now_local()
    today_start = day_bounds(now.date())[0]
    week_start = today_start - timedelta(days=now.weekday())
    current = get_open_entry(db, user.id)
    return ClockStatus(
        is_clocked=current is not None,
        current_entry=TimeEntryResponse.model_validate(current) if current else None,
        today_hours=_hours_since(db, user.id, today_start),
        week_hours=_hours_since(db, user.id, week_start),
    )


def clock_in(db: Session, user: User, description: Optional[str] = None, now: Optional[datetime] = None) -> TimeEntry:
    if get_open_entry(db, user.id):
        raise BusinessRuleError("You are already clocked in", error_code="ALREADY_CLOCKED_IN")

    entry = TimeEntry(
        user_id=user.id,
        start_time=now or now_local(),
        work_type=WorkType.REGULAR,
        description=description,
        total_break_minutes=0,
        # Regular work needs no approval to accrue
        approved=True,
        status=EntryStatus.APPROVED,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"User {user.id} clocked in", extra={"entry_id": entry.id})
    return entry


def clock_out(db: Session, user: User, break_minutes: int = 0, now: Optional[datetime] = None) -> ClockStatus:
    entry = get_open_entry(db, user.id)
    if not entry:
        raise BusinessRuleError("You are not clocked in", error_code="NOT_CLOCKED_IN")

    now = now or now_local()
    entry.end_time = now
    entry.total_break_minutes = break_minutes
    db.commit()
    logger.info(f"User {user.id} clocked out", extra={"entry_id": entry.id})
    return clock_status(db, user, now)


def list_entries(
    db: Session,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[TimeEntry]:
    query = db.query(TimeEntry).filter(TimeEntry.user_id == user_id)
    if start:
        query = query.filter(TimeEntry.start_time >= day_bounds(start)[0])
    if end:
        query = query.filter(TimeEntry.start_time < day_bounds(end)[1])
    return query.order_by(TimeEntry.start_time.desc()).all()


def _weekly_hours(user: User, entries: List[TimeEntry]) -> WeeklyHours:
    worked = round(sum(worked_hours(WorkInterval.model_validate(e)) for e in entries), 2)
    target = user.contract_hours_per_week
    difference = round(worked - target, 2)

    if target == 0:
        status = WeeklyHoursStatus.NO_TARGET
        difference = 0.0
    elif difference > 0:
        status = WeeklyHoursStatus.SURPLUS
    elif difference < 0:
        status = WeeklyHoursStatus.SHORTAGE
    else:
        status = WeeklyHoursStatus.ON_TARGET

    return WeeklyHours(
        user_id=user.id,
        user_name=user.full_name,
        email=user.email,
        contract_hours_per_week=target,
        worked_hours=worked,
        surplus_hours=max(0.0, difference),
        shortage_hours=max(0.0, -difference),
        status=status,
        formatted_difference=("-" if difference < 0 else "") + format_duration(difference),
        entry_count=len(entries),
    )


def weekly_overtime_report(db: Session, week_start: Optional[date] = None) -> WeeklyOvertimeReport:
    """
    Worked hours per active user for one Monday-start week, against the
    weekly contract hours.

    Only closed regular work counts; breaks are subtracted. Any date in the
    week may be passed and is moved back to its Monday.
    """
    day = week_start or today_local()
    monday = day - timedelta(days=day.weekday())
    window_start, window_end = day_bounds(monday)[0], day_bounds(monday + timedelta(days=6))[1]

    users = db.query(User).filter(
        User.is_active.is_(True),
        User.role != UserRole.ADMIN,
    ).order_by(User.full_name, User.id).all()

    entries = db.query(TimeEntry).filter(
        TimeEntry.work_type == WorkType.REGULAR,
        TimeEntry.end_time.isnot(None),
        TimeEntry.status.notin_(INACTIVE_STATUSES),
        TimeEntry.start_time >= window_start,
        TimeEntry.start_time < window_end,
    ).all()
    by_user = {}
    for entry in entries:
        by_user.setdefault(entry.user_id, []).append(entry)

    rows = [_weekly_hours(user, by_user.get(user.id, [])) for user in users]
    logger.info(
        f"Weekly hours report for week of {monday.isoformat()}",
        extra={"user_count": len(rows)},
    )
    return WeeklyOvertimeReport(
        week_start=monday,
        week_end=monday + timedelta(days=6),
        users=rows,
        total_surplus_hours=round(sum(r.surplus_hours for r in rows), 2),
        total_shortage_hours=round(sum(r.shortage_hours for r in rows), 2),
    )
