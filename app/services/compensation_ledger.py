"""
Compensation Ledger

Pure computation over a user's work intervals: accrued compensatory time
(weekend, evening, night, holiday and daily-overtime premiums), compensation
leave used, and validation of new usage requests against the balance.

Architecture:
- Router -> compensation_service (DB access, locking) -> this module
- No I/O, no session, no globals: rates come in through a CompensationPolicy
- Expected rejections are returned as UsageRejected, never raised
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from app.models.time_entry import WorkType
from app.schemas.compensation import (
    CompensationBalance,
    CompensationPolicy,
    DataQualityIssue,
    HoursBucket,
    LedgerTransaction,
    PendingUsagePolicy,
    TransactionType,
    UsageAccepted,
    UsageDecision,
    UsageRejected,
    UsageRejectionCode,
    WorkInterval,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICY = CompensationPolicy()


def format_duration(hours: float) -> str:
    """Render hours as "7u 30m" (sign dropped, minutes rounded)."""
    h = int(abs(hours))
    m = round((abs(hours) - h) * 60)
    if m == 60:
        h, m = h + 1, 0
    return f"{h}u {m}m"


def _local(dt: datetime, tz_name: Optional[str]) -> datetime:
    if dt.tzinfo is not None and tz_name:
        return dt.astimezone(ZoneInfo(tz_name))
    return dt


def _coerce(item: Any) -> WorkInterval:
    if isinstance(item, WorkInterval):
        return item
    return WorkInterval.model_validate(item)


def _add(bucket: HoursBucket, hours: float, premium: float) -> None:
    bucket.total += hours
    bucket.compensation += premium
    bucket.formatted = format_duration(bucket.total)


def worked_hours(interval: WorkInterval, issues: Optional[List[DataQualityIssue]] = None) -> float:
    """
    Hours between start and end minus breaks, clamped at zero.

    Open intervals yield 0. Missing or negative break values and intervals
    that end before they start are recorded in `issues` when given.
    """
    if interval.end_time is None:
        return 0.0

    break_minutes = interval.total_break_minutes
    if break_minutes is None or break_minutes < 0:
        if issues is not None:
            issues.append(DataQualityIssue(
                interval_id=interval.id,
                issue="INVALID_BREAK",
                detail=f"Break minutes {break_minutes!r} treated as 0",
            ))
        break_minutes = 0

    total_minutes = (interval.end_time - interval.start_time).total_seconds() / 60
    hours = (total_minutes - break_minutes) / 60
    if hours < 0:
        if issues is not None:
            issues.append(DataQualityIssue(
                interval_id=interval.id,
                issue="NEGATIVE_DURATION",
                detail=f"Computed {hours:.2f}h clamped to 0",
            ))
        return 0.0
    return hours


def compute_balance(
    intervals: Iterable[Union[WorkInterval, Any]],
    policy: Optional[CompensationPolicy] = None,
) -> CompensationBalance:
    """
    Compute accrued, used and pending compensation hours.

    Premiums are additive: a Saturday night shift earns both the weekend and
    the night premium, plus overtime when longer than the daily threshold.
    Evening premium only applies on weekdays.

    Args:
        intervals: WorkInterval records (or ORM rows with the same attributes)
        policy: Premium rates and thresholds; defaults apply when omitted

    Returns:
        CompensationBalance with totals, breakdown, transactions (newest first)
        and any data-quality issues found.

    Raises:
        TypeError: if intervals is None
    """
    if intervals is None:
        raise TypeError("intervals must be an iterable of WorkInterval, not None")
    policy = policy or DEFAULT_POLICY
    holidays = set(policy.public_holidays)

    balance = CompensationBalance()
    breakdown = balance.breakdown
    issues = balance.data_quality_issues

    for raw in intervals:
        interval = _coerce(raw)
        if interval.end_time is None:
            continue

        hours = worked_hours(interval, issues)
        start = _local(interval.start_time, policy.timezone)
        end = _local(interval.end_time, policy.timezone)

        if interval.work_type == WorkType.COMPENSATION_USED:
            counts_now = interval.approved or policy.pending_usage_policy == PendingUsagePolicy.DEDUCT_IMMEDIATELY
            if counts_now:
                balance.total_used += hours
            if not interval.approved:
                balance.pending_requests += hours
            balance.transactions.append(LedgerTransaction(
                id=interval.id,
                date=start.date(),
                type=TransactionType.USED,
                hours=hours,
                reason=interval.description or "Compensation taken",
                source="LEAVE",
                status="APPROVED" if interval.approved else "PENDING",
            ))
            continue

        is_weekend = start.weekday() >= 5
        is_evening = not is_weekend and (
            start.hour >= policy.evening_start_hour or end.hour >= policy.evening_start_hour
        )
        is_night = any(
            h >= policy.night_start_hour or h < policy.night_end_hour for h in (start.hour, end.hour)
        )
        is_holiday = start.date() in holidays
        overtime = max(0.0, hours - policy.daily_hours_threshold)

        earned = 0.0
        labels = []
        if is_weekend:
            premium = hours * policy.weekend_rate
            _add(breakdown.weekend_hours, hours, premium)
            earned += premium
            labels.append("WEEKEND")
        if is_evening:
            premium = hours * policy.evening_rate
            _add(breakdown.evening_hours, hours, premium)
            earned += premium
            labels.append("EVENING")
        if is_night:
            premium = hours * policy.night_rate
            _add(breakdown.night_hours, hours, premium)
            earned += premium
            labels.append("NIGHT")
        if is_holiday:
            premium = hours * policy.holiday_rate
            _add(breakdown.holiday_hours, hours, premium)
            earned += premium
            labels.append("HOLIDAY")
        if overtime > 0:
            premium = overtime * policy.overtime_rate
            _add(breakdown.overtime_hours, overtime, premium)
            earned += premium
            labels.append("OVERTIME")

        if earned > 0:
            balance.total_accrued += earned
            balance.transactions.append(LedgerTransaction(
                id=interval.id,
                date=start.date(),
                type=TransactionType.ACCRUED,
                hours=earned,
                reason=f"{format_duration(hours)} worked ({', '.join(l.lower() for l in labels)})",
                source=labels[0],
                status="APPROVED",
            ))

    for issue in issues:
        logger.warning(
            f"Data quality issue on interval {issue.interval_id}: {issue.issue}",
            extra={"interval_id": issue.interval_id, "detail": issue.detail},
        )

    balance.transactions.sort(key=lambda t: t.date, reverse=True)
    return balance


def validate_usage_request(
    balance: CompensationBalance,
    requested_hours: float,
    requested_date: date,
    existing_usage_dates: Iterable[date] = (),
    today: Optional[date] = None,
    policy: Optional[CompensationPolicy] = None,
) -> UsageDecision:
    """Check a compensation-leave request against the daily cap, the calendar and the balance."""
    policy = policy or DEFAULT_POLICY
    today = today or date.today()

    if requested_hours <= 0:
        return UsageRejected(
            code=UsageRejectionCode.INVALID_HOURS,
            message="Requested hours must be greater than zero",
        )
    if requested_hours > policy.daily_request_cap:
        return UsageRejected(
            code=UsageRejectionCode.DAILY_CAP_EXCEEDED,
            message=f"A maximum of {format_duration(policy.daily_request_cap)} per day is allowed",
        )
    if requested_date < today:
        return UsageRejected(
            code=UsageRejectionCode.DATE_IN_PAST,
            message="Compensation leave cannot be requested for past dates",
        )
    if requested_date in set(existing_usage_dates):
        return UsageRejected(
            code=UsageRejectionCode.DUPLICATE_DATE,
            message=f"A compensation request already exists for {requested_date.isoformat()}",
        )
    if requested_hours > balance.current_balance:
        return UsageRejected(
            code=UsageRejectionCode.INSUFFICIENT_BALANCE,
            message=(
                f"Insufficient compensation hours. Available: {format_duration(balance.current_balance)}, "
                f"requested: {format_duration(requested_hours)}"
            ),
        )

    return UsageAccepted(
        requested_hours=requested_hours,
        remaining_balance=balance.current_balance - requested_hours,
    )
