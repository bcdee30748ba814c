"""
Company-local time helpers.

Time entries are stored as naive company-local wall time, so "now" and
"today" are always taken in the configured company timezone.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings

PERIODS = ("current_week", "current_month", "last_month", "last_3_months")


def now_local() -> datetime:
    return datetime.now(ZoneInfo(settings.company_timezone)).replace(tzinfo=None)


def today_local() -> date:
    return now_local().date()


def _month_start(d: date) -> date:
    return d.replace(day=1)


def _month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def _shift_months(d: date, months: int) -> date:
    month_index = d.year * 12 + (d.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def resolve_period(label: Optional[str], today: Optional[date] = None) -> Tuple[date, date, str]:
    """
    Map a period label to an inclusive (start, end) date range.
    Weeks start on Monday. Unknown labels fall back to the current month.
    """
    today = today or today_local()
    if label == "current_week":
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6), label
    if label == "last_month":
        last = _shift_months(today, -1)
        return _month_start(last), _month_end(last), label
    if label == "last_3_months":
        return _shift_months(today, -2), _month_end(today), label
    return _month_start(today), _month_end(today), "current_month"


def day_bounds(d: date) -> Tuple[datetime, datetime]:
    """[00:00, next 00:00) for a calendar day."""
    start = datetime.combine(d, datetime.min.time())
    return start, start + timedelta(days=1)
