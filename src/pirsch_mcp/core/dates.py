"""
Calendar ranges for named periods and their comparison periods.

All ranges are in local time: start at 00:00:00.000 of the first day,
end at 23:59:59.999 of the last day. Weeks start on Monday.
"""
import logging
from datetime import date, datetime, time, timedelta

from .errors import InvalidArgumentsError
from .models import DateRange

logger = logging.getLogger(__name__)


def _day_range(first: date, last: date) -> DateRange:
    """Build a range covering whole local days from first to last."""
    return DateRange(
        start=datetime.combine(first, time.min),
        end=datetime.combine(last, time(23, 59, 59, 999000)),
    )


def _monday(day: date) -> date:
    """Monday of the week containing day."""
    # isoweekday: Monday=1 ... Sunday=7
    return day - timedelta(days=day.isoweekday() - 1)


def _first_of_previous_month(day: date) -> date:
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)


def _last_of_month(day: date) -> date:
    """Last day of the month containing day."""
    if day.month == 12:
        first_of_next = date(day.year + 1, 1, 1)
    else:
        first_of_next = date(day.year, day.month + 1, 1)
    return first_of_next - timedelta(days=1)


def get_date_range(period: str, now: datetime | None = None) -> DateRange:
    """Resolve a named period to a local date range.

    Args:
        period: One of today, yesterday, week, lastWeek, month, lastMonth.
            Anything else resolves like "today".
        now: Reference time, defaults to the current local time.

    Returns:
        DateRange with start at midnight and end at 23:59:59.999.
    """
    today = (now or datetime.now()).date()

    if period == "today":
        return _day_range(today, today)
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return _day_range(yesterday, yesterday)
    if period == "week":
        monday = _monday(today)
        return _day_range(monday, monday + timedelta(days=6))
    if period == "lastWeek":
        monday = _monday(today) - timedelta(days=7)
        return _day_range(monday, monday + timedelta(days=6))
    if period == "month":
        first = today.replace(day=1)
        return _day_range(first, _last_of_month(first))
    if period == "lastMonth":
        first = _first_of_previous_month(today)
        return _day_range(first, _last_of_month(first))

    logger.warning(f"Unknown period '{period}', using today")
    return _day_range(today, today)


def _minus_one_year(value: datetime) -> datetime:
    """Same month/day/time one year earlier.

    February 29 has no counterpart in the previous year and rolls over
    to March 1, like calendar arithmetic with day overflow does.
    """
    try:
        return value.replace(year=value.year - 1)
    except ValueError:
        return value.replace(year=value.year - 1, month=3, day=1)


def previous_period(current: DateRange) -> DateRange:
    """The equal-length window ending the day before current starts."""
    length_days = (current.end.date() - current.start.date()).days + 1
    prev_end = current.start.date() - timedelta(days=1)
    prev_start = prev_end - timedelta(days=length_days - 1)
    return _day_range(prev_start, prev_end)


def comparison_range(current: DateRange, mode: str | None = "previous") -> DateRange:
    """Derive the range to compare a resolved period against.

    Args:
        current: The resolved current range.
        mode: "year" for the same dates one year earlier, anything else
            for the previous period of equal length. "custom" ranges are
            given explicitly and never derived.

    Raises:
        InvalidArgumentsError: If mode is "custom".
    """
    if mode == "custom":
        raise InvalidArgumentsError(
            "Custom comparison requires from, to, compare_from and compare_to"
        )
    if mode == "year":
        return DateRange(
            start=_minus_one_year(current.start),
            end=_minus_one_year(current.end),
        )
    return previous_period(current)


def iso_date(value: datetime | date) -> str:
    """Format the local calendar date as YYYY-MM-DD."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_iso_date(value: str, field: str) -> date:
    """Parse a YYYY-MM-DD argument.

    Raises:
        InvalidArgumentsError: If the value is not a valid date.
    """
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidArgumentsError(
            f"Invalid date for {field}: {value!r}. Use YYYY-MM-DD (e.g., 2024-01-15)"
        ) from None
