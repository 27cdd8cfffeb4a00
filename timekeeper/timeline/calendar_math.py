"""Calendar arithmetic for in-fiction campaign time.

A virtual moment is a plain ``datetime.date``: totally ordered, hashable and
precise to the day, which is all any timeline operation needs.

Month arithmetic clamps the day-of-month to the last valid day of the target
month. Clamping is one-way, so moving forward and then back by a month does
not always return to the starting day::

    Jan 31 + 1 month = Feb 28 (or Feb 29 in a leap year)
    Feb 28 - 1 month = Jan 28
"""

import calendar
from datetime import MAXYEAR, MINYEAR, date, timedelta
from enum import Enum

from .errors import RangeError, ValidationError


class TimeUnit(Enum):
    """Unit a timeline can be moved by."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Direction(Enum):
    """Direction a timeline is moved in."""

    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def sign(self) -> int:
        """+1 for forward, -1 for backward."""
        return 1 if self is Direction.FORWARD else -1


# Fixed-length units, in days
_UNIT_DAYS = {
    TimeUnit.DAY: 1,
    TimeUnit.WEEK: 7,
}


def parse_unit(value: TimeUnit | str) -> TimeUnit:
    """Resolve a unit name to a TimeUnit.

    Args:
        value: A TimeUnit or its string value ("day", "week", "month")

    Returns:
        The matching TimeUnit

    Raises:
        ValidationError: If the value is not a known unit
    """
    if isinstance(value, TimeUnit):
        return value
    try:
        return TimeUnit(value)
    except (TypeError, ValueError):
        valid = ", ".join(u.value for u in TimeUnit)
        raise ValidationError(f"Invalid unit: {value!r} (expected one of {valid})") from None


def parse_direction(value: Direction | str) -> Direction:
    """Resolve a direction name to a Direction.

    Args:
        value: A Direction or its string value ("forward", "backward")

    Returns:
        The matching Direction

    Raises:
        ValidationError: If the value is not a known direction
    """
    if isinstance(value, Direction):
        return value
    try:
        return Direction(value)
    except (TypeError, ValueError):
        valid = ", ".join(d.value for d in Direction)
        raise ValidationError(f"Invalid direction: {value!r} (expected one of {valid})") from None


def parse_moment(value: date | str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string into a virtual moment.

    Raises:
        ValidationError: If the value is not a valid ISO date
    """
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def format_moment(moment: date | None) -> str | None:
    """Format a virtual moment as an ISO date string (None passes through)."""
    if moment is None:
        return None
    return moment.isoformat()


def add_days(moment: date, days: int) -> date:
    """Add a signed number of days to a moment.

    Raises:
        RangeError: If the result falls outside the supported calendar
    """
    try:
        return moment + timedelta(days=days)
    except OverflowError:
        raise RangeError(f"{moment.isoformat()} {days:+d} days is outside the calendar") from None


def add_months(moment: date, months: int) -> date:
    """Add a signed number of calendar months to a moment.

    The day-of-month is kept where the target month has it, otherwise it is
    clamped to the target month's last day. Year rollover falls out of the
    month count.

    Raises:
        RangeError: If the result falls outside the supported calendar
    """
    total = moment.year * 12 + (moment.month - 1) + months
    year, month_index = divmod(total, 12)
    if not MINYEAR <= year <= MAXYEAR:
        raise RangeError(f"{moment.isoformat()} {months:+d} months is outside the calendar")

    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(moment.day, last_day))


def apply(moment: date, unit: TimeUnit, direction: Direction) -> date:
    """Move a moment by one unit in the given direction.

    Args:
        moment: Current virtual moment
        unit: Day, week or month
        direction: Forward or backward

    Returns:
        The new virtual moment

    Raises:
        RangeError: If the result falls outside the supported calendar
    """
    if unit is TimeUnit.MONTH:
        return add_months(moment, direction.sign)
    return add_days(moment, _UNIT_DAYS[unit] * direction.sign)
