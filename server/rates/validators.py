from datetime import date, datetime, timedelta
from typing import List

from django.utils import timezone

from .exceptions import InvalidDateError, InvertedDateRangeError

SUPPORTED_CURRENCIES = ('USD', 'INR', 'EUR', 'JPY', 'GBP')

DATE_FORMAT = '%Y-%m-%d'
MAX_HISTORY_DAYS = 90


def is_supported_currency(code: str) -> bool:
    return code in SUPPORTED_CURRENCIES


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string. Raises ValueError on anything else."""
    return datetime.strptime(value, DATE_FORMAT).date()


def validate_date(date_str: str, max_history_days: int = MAX_HISTORY_DAYS) -> None:
    """
    Check that ``date_str`` is a well-formed date between ``max_history_days``
    days ago and today (both inclusive). Today is read on every call.
    """
    if not date_str:
        raise InvalidDateError("date cannot be empty")

    try:
        parsed = parse_date(date_str)
    except ValueError:
        raise InvalidDateError("invalid date format, expected YYYY-MM-DD")

    today = timezone.now().date()
    if parsed > today:
        raise InvalidDateError("date cannot be in the future")
    if parsed < today - timedelta(days=max_history_days):
        raise InvalidDateError(
            f"date cannot be more than {max_history_days} days in the past"
        )


def expand_date_range(start: str, end: str) -> List[str]:
    """Every calendar day from ``start`` to ``end`` inclusive, ascending."""
    try:
        start_date = parse_date(start)
    except (TypeError, ValueError):
        raise InvalidDateError("invalid start date format")
    try:
        end_date = parse_date(end)
    except (TypeError, ValueError):
        raise InvalidDateError("invalid end date format")

    if start_date > end_date:
        raise InvertedDateRangeError("start date cannot be after end date")

    days = []
    current = start_date
    while current <= end_date:
        days.append(current.strftime(DATE_FORMAT))
        current += timedelta(days=1)
    return days
