"""Helper functions for expiry and due-date calculations."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from .errors import RecordValidationError
from .status import Status

DEFAULT_WARNING_DAYS = 30

DateLike = Union[date, str]


@dataclass(frozen=True)
class ExpiryCheck:
    """Classification of one expiry date against a reference day."""

    status: Status
    days: int

    @property
    def is_due(self) -> bool:
        return self.status in (Status.EXPIRED, Status.DUE_SOON)


def as_date(value: DateLike) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string (time part ignored)."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise RecordValidationError(f"Invalid date '{value}'") from exc


def days_until(expiry: DateLike, today: DateLike) -> int:
    """Whole days from today to expiry; negative once past."""
    return (as_date(expiry) - as_date(today)).days


def check_status(days: int, warning_days: int = DEFAULT_WARNING_DAYS) -> Status:
    """
    Determine status from a day count.

    A date expiring today (0 days) is already EXPIRED.
    """
    if days <= 0:
        return Status.EXPIRED
    if days <= warning_days:
        return Status.DUE_SOON
    return Status.VALID


def classify_expiry(
    expiry: DateLike,
    today: Optional[DateLike] = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> ExpiryCheck:
    """Classify an expiry date as expired, due soon or valid."""
    if today is None:
        today = date.today()
    days = days_until(expiry, today)
    return ExpiryCheck(status=check_status(days, warning_days), days=days)


def next_due_date(last: DateLike, interval_months: Optional[float]) -> Optional[date]:
    """Calculate next due date: last + interval months (fraction as 30-day parts)."""
    if interval_months is None:
        return None
    months = int(interval_months)
    days = int((interval_months - months) * 30)
    return as_date(last) + relativedelta(months=months, days=days)


def calc_usage_percent(used: float, available: float) -> float:
    """Storage usage as a percentage of the available quota."""
    if not available:
        return 0.0
    return used / available * 100
