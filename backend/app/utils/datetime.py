import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List, Tuple


# Floor used for the "all" metrics period
EPOCH_DATE = date(2000, 1, 1)

PERIODS = ("week", "month", "year", "all")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utc_now().date()


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD (the storage format for calendar dates)."""
    return value.isoformat()


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string. Raises ValueError on malformed input."""
    return date.fromisoformat(value)


def dates_in_month(month: int, year: int) -> List[str]:
    """Every calendar date of the month, in order, as YYYY-MM-DD strings."""
    _, days = calendar.monthrange(year, month)
    return [format_date(date(year, month, day)) for day in range(1, days + 1)]


def _shift_months(value: date, months: int) -> date:
    """Move a date by whole months, clamping the day to the target month's length."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def date_range_for_period(period: str, reference: date | None = None) -> Tuple[str, str]:
    """
    Resolve a metrics period to an inclusive (start, end) date range.

    - week: the trailing 7 days including the reference day
    - month: same day one calendar month earlier
    - year: same day one calendar year earlier
    - all: fixed floor of 2000-01-01
    """
    end = reference or today()

    if period == "week":
        start = end - timedelta(days=6)
    elif period == "month":
        start = _shift_months(end, -1)
    elif period == "year":
        start = _shift_months(end, -12)
    elif period == "all":
        start = EPOCH_DATE
    else:
        raise ValueError(f"Unknown period: {period}")

    return format_date(start), format_date(end)
