"""
Compensation Service Layer

Loads work intervals from the database, feeds them to the pure
compensation ledger, and persists compensation-leave requests.

Architecture:
- Router -> Service (this module) -> compensation_ledger / Models
- Balance is always recomputed from the interval log, never stored
- Validate-and-write for one user is serialised: an in-process lock per user
  plus a row lock on the user at the database (no-op on SQLite)
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set
import logging

from sqlalchemy.orm import Session

from app.core.clock import day_bounds, resolve_period, today_local
from app.core.exceptions import AccessDeniedError, BusinessRuleError, NotFoundError
from app.models.time_entry import TimeEntry, WorkType, EntryStatus, INACTIVE_STATUSES
from app.models.user import User
from app.schemas.compensation import (
    ApproveAction,
    CancelAction,
    CompensationBalance,
    CompensationOverview,
    CompensationPolicy,
    CompensationRequestCreate,
    CompensationRequestResult,
    PendingUsagePolicy,
    PeriodInfo,
    RejectAction,
    RequestDayType,
    UpdateAction,
    UsageRejected,
    WorkInterval,
)
from app.services import compensation_ledger as ledger
from app.services.audit import AuditService
from app.services.company_settings_service import get_compensation_policy

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 10
USAGE_START_HOUR = 9

_DAY_TYPE_LABELS = {
    RequestDayType.FULL_DAY: "full day",
    RequestDayType.HALF_DAY: "half day",
    RequestDayType.CUSTOM: "custom",
}

_registry_lock = threading.Lock()
_user_locks = defaultdict(threading.Lock)


@contextmanager
def user_lock(user_id: int):
    """Serialise balance validation and the following write for one user."""
    with _registry_lock:
        lock = _user_locks[user_id]
    with lock:
        yield


# --- Reads ---

def _entries_query(db: Session, user_id: int):
    return db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.status.notin_(INACTIVE_STATUSES),
    )


def load_intervals(
    db: Session,
    user_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    exclude_id: Optional[int] = None,
) -> List[WorkInterval]:
    """Closed and open intervals for a user, optionally limited to [start, end] by start date."""
    query = _entries_query(db, user_id)
    if start is not None:
        query = query.filter(TimeEntry.start_time >= day_bounds(start)[0])
    if end is not None:
        query = query.filter(TimeEntry.start_time < day_bounds(end)[1])
    if exclude_id is not None:
        query = query.filter(TimeEntry.id != exclude_id)
    entries = query.order_by(TimeEntry.start_time.desc()).all()
    return [WorkInterval.model_validate(e) for e in entries]


def existing_usage_dates(db: Session, user_id: int, exclude_id: Optional[int] = None) -> Set[date]:
    query = _entries_query(db, user_id).filter(TimeEntry.work_type == WorkType.COMPENSATION_USED)
    if exclude_id is not None:
        query = query.filter(TimeEntry.id != exclude_id)
    return {e.start_time.date() for e in query.all()}


def get_balance(
    db: Session,
    user_id: int,
    policy: Optional[CompensationPolicy] = None,
    exclude_id: Optional[int] = None,
) -> CompensationBalance:
    """Balance over the user's full interval history."""
    policy = policy or get_compensation_policy(db)
    return ledger.compute_balance(load_intervals(db, user_id, exclude_id=exclude_id), policy)


def get_overview(db: Session, user: User, period: Optional[str] = None) -> CompensationOverview:
    """Dashboard view of accrual and usage within a named period."""
    start, end, label = resolve_period(period)
    policy = get_compensation_policy(db)
    balance = ledger.compute_balance(load_intervals(db, user.id, start, end), policy)

    return CompensationOverview(
        user_id=user.id,
        user_name=user.full_name,
        contract_hours_per_week=user.contract_hours_per_week,
        current_balance=balance.current_balance,
        total_accrued=balance.total_accrued,
        total_used=balance.total_used,
        pending_requests=balance.pending_requests,
        breakdown=balance.breakdown,
        recent_transactions=balance.transactions[:RECENT_TRANSACTIONS_LIMIT],
        projected_balance=balance.current_balance,
        data_quality_issues=balance.data_quality_issues,
        period=PeriodInfo(start=start, end=end, label=label),
    )


# --- Writes ---

def _lock_user_row(db: Session, user_id: int) -> None:
    db.query(User).filter(User.id == user_id).with_for_update().first()


def _raise_rejection(decision: UsageRejected):
    raise BusinessRuleError(decision.message, error_code=decision.code.value)


def _usage_window(day: date, hours: float):
    start = datetime.combine(day, datetime.min.time()).replace(hour=USAGE_START_HOUR)
    return start, start + timedelta(hours=hours)


def _snapshot(entry: TimeEntry) -> dict:
    return {
        "status": entry.status,
        "approved": entry.approved,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "approved_by_id": entry.approved_by_id,
    }


def create_usage_request(
    db: Session,
    user: User,
    data: CompensationRequestCreate,
    today: Optional[date] = None,
) -> CompensationRequestResult:
    """
    Validate a compensation-leave request against the full-history balance and
    store it as a pending COMPENSATION_USED entry.

    Raises:
        BusinessRuleError: with the ledger's rejection code when not accepted
    """
    today = today or today_local()
    policy = get_compensation_policy(db)

    with user_lock(user.id):
        _lock_user_row(db, user.id)
        balance = ledger.compute_balance(load_intervals(db, user.id), policy)
        decision = ledger.validate_usage_request(
            balance,
            data.hours,
            data.date,
            existing_usage_dates(db, user.id),
            today=today,
            policy=policy,
        )
        if not decision.accepted:
            logger.info(
                f"Compensation request rejected for user {user.id}: {decision.code.value}",
                extra={"user_id": user.id, "hours": data.hours},
            )
            _raise_rejection(decision)

        start, end = _usage_window(data.date, data.hours)
        entry = TimeEntry(
            user_id=user.id,
            start_time=start,
            end_time=end,
            total_break_minutes=0,
            work_type=WorkType.COMPENSATION_USED,
            description=data.reason or f"Compensation leave - {_DAY_TYPE_LABELS[data.type]}",
            approved=False,
            status=EntryStatus.PENDING,
        )
        db.add(entry)
        db.flush()
        AuditService.log(
            db,
            action="create_compensation_request",
            entity_type="time_entry",
            entity_id=entry.id,
            user_id=user.id,
            user_role=user.role,
            details={"date": data.date, "hours": data.hours},
        )
        db.commit()
        db.refresh(entry)

    logger.info(
        f"Compensation request {entry.id} created for user {user.id}",
        extra={"user_id": user.id, "hours": data.hours},
    )
    return CompensationRequestResult(
        request_id=entry.id,
        date=data.date,
        hours=data.hours,
        formatted_hours=ledger.format_duration(data.hours),
        remaining_balance=decision.remaining_balance,
        formatted_remaining_balance=ledger.format_duration(decision.remaining_balance),
        status=entry.status.value,
        description=entry.description,
    )


def get_usage_entry(db: Session, entry_id: int) -> TimeEntry:
    entry = db.query(TimeEntry).filter(
        TimeEntry.id == entry_id,
        TimeEntry.work_type == WorkType.COMPENSATION_USED,
    ).first()
    if not entry:
        raise NotFoundError("Compensation request not found")
    return entry


def _require_pending(entry: TimeEntry, message: str):
    if entry.status != EntryStatus.PENDING:
        raise BusinessRuleError(message, error_code="NOT_PENDING")


def apply_action(db: Session, entry_id: int, action, actor: User, today: Optional[date] = None) -> TimeEntry:
    """
    Approve, reject, cancel or update a compensation request.

    The owner's lock is held from the status check through the commit, so a
    concurrent request for the same user validates against the written state.
    """
    entry = get_usage_entry(db, entry_id)
    with user_lock(entry.user_id):
        _lock_user_row(db, entry.user_id)
        db.refresh(entry)
        audit_action, before = _apply(db, entry, action, actor, today or today_local())

        AuditService.log(
            db,
            action=audit_action,
            entity_type="time_entry",
            entity_id=entry.id,
            user_id=actor.id,
            user_role=actor.role,
            details={"owner_id": entry.user_id, "reason": getattr(action, "reason", None)},
            before_state=before,
            after_state=_snapshot(entry),
        )
        db.commit()
        db.refresh(entry)

    logger.info(f"Compensation request {entry.id}: {audit_action} by user {actor.id}")
    return entry


def _apply(db: Session, entry: TimeEntry, action, actor: User, today: date):
    """Check permissions and mutate the entry; caller holds the owner's lock."""
    is_owner = entry.user_id == actor.id
    before = _snapshot(entry)

    if isinstance(action, (ApproveAction, RejectAction)):
        if not actor.is_elevated:
            raise AccessDeniedError("Insufficient permissions to approve/reject compensation requests")
        if is_owner:
            raise BusinessRuleError("You cannot approve/reject your own request", error_code="OWN_REQUEST")
        _require_pending(entry, "Compensation request is not pending")

        if isinstance(action, ApproveAction):
            _approve(db, entry, actor)
            return "approve_compensation_request", before
        entry.status = EntryStatus.REJECTED
        entry.approved = False
        entry.approved_by_id = actor.id
        entry.rejection_reason = action.reason
        return "reject_compensation_request", before

    if isinstance(action, CancelAction):
        if not is_owner:
            raise AccessDeniedError("You can only cancel your own compensation requests")
        _require_pending(entry, "Only pending compensation requests can be cancelled")
        entry.status = EntryStatus.CANCELLED
        return "cancel_compensation_request", before

    if isinstance(action, UpdateAction):
        if not is_owner:
            raise AccessDeniedError("You can only update your own compensation requests")
        _require_pending(entry, "Only pending compensation requests can be updated")
        _update(db, entry, action, today)
        return "update_compensation_request", before

    raise TypeError(f"Unsupported compensation action: {action!r}")


def _approve(db: Session, entry: TimeEntry, actor: User):
    policy = get_compensation_policy(db)
    if policy.pending_usage_policy == PendingUsagePolicy.DEDUCT_ON_APPROVAL:
        # Pending hours were not yet deducted, so the balance must still cover them
        balance = ledger.compute_balance(load_intervals(db, entry.user_id), policy)
        hours = ledger.worked_hours(WorkInterval.model_validate(entry))
        if hours > balance.current_balance:
            raise BusinessRuleError("Insufficient balance to approve now", error_code="INSUFFICIENT_BALANCE")
    entry.status = EntryStatus.APPROVED
    entry.approved = True
    entry.approved_by_id = actor.id
    entry.approved_at = datetime.now(timezone.utc)


def _update(db: Session, entry: TimeEntry, action: UpdateAction, today: date):
    current_hours = ledger.worked_hours(WorkInterval.model_validate(entry))
    new_date = action.date or entry.start_time.date()
    new_hours = action.hours if action.hours is not None else current_hours
    policy = get_compensation_policy(db)

    balance = get_balance(db, entry.user_id, policy, exclude_id=entry.id)
    decision = ledger.validate_usage_request(
        balance,
        new_hours,
        new_date,
        existing_usage_dates(db, entry.user_id, exclude_id=entry.id),
        today=today,
        policy=policy,
    )
    if not decision.accepted:
        _raise_rejection(decision)

    entry.start_time, entry.end_time = _usage_window(new_date, new_hours)
    if action.reason is not None:
        entry.description = action.reason


def list_usage_requests(
    db: Session,
    user_id: Optional[int] = None,
    statuses: Optional[Iterable[EntryStatus]] = None,
) -> List[TimeEntry]:
    query = db.query(TimeEntry).filter(TimeEntry.work_type == WorkType.COMPENSATION_USED)
    if user_id is not None:
        query = query.filter(TimeEntry.user_id == user_id)
    if statuses:
        query = query.filter(TimeEntry.status.in_(list(statuses)))
    return query.order_by(TimeEntry.start_time.desc()).all()
