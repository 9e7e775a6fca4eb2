"""
Business-day arithmetic.

This is a pure domain service with no infrastructure dependencies.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

# Monday=0 .. Sunday=6, as returned by date.weekday()
DEFAULT_WORKING_DAYS = frozenset({0, 1, 2, 3, 4})


@dataclass(frozen=True)
class Holiday:
    name: str
    day: date
    is_recurring: bool = False

    def falls_on(self, other: date) -> bool:
        if self.is_recurring:
            return (self.day.month, self.day.day) == (other.month, other.day)
        return self.day == other


class BusinessCalendar:
    """A working-week definition plus a set of holidays."""

    def __init__(
        self,
        working_days: Iterable[int] = DEFAULT_WORKING_DAYS,
        holidays: Iterable[Holiday] = (),
    ) -> None:
        self.working_days = frozenset(working_days)
        if not self.working_days:
            raise ValueError("A calendar needs at least one working day")
        if not self.working_days <= set(range(7)):
            raise ValueError("Working days must be weekday numbers 0-6")
        self.holidays = tuple(holidays)

    def is_business_day(self, day: date) -> bool:
        if day.weekday() not in self.working_days:
            return False
        return not any(holiday.falls_on(day) for holiday in self.holidays)

    def add_business_days(self, start: datetime, days: int) -> datetime:
        """
        Move ``start`` forward by ``days`` business days, keeping the time of day.

        Non-working days and holidays are skipped. Negative values move
        backwards, zero returns ``start`` unchanged.
        """
        step = timedelta(days=1 if days >= 0 else -1)
        remaining = abs(days)
        current = start
        while remaining:
            current += step
            if self.is_business_day(current.date()):
                remaining -= 1
        return current

    def business_days_between(self, start: date, end: date) -> int:
        """Business days in the half-open range (start, end]."""
        count = 0
        day = start
        while day < end:
            day += timedelta(days=1)
            if self.is_business_day(day):
                count += 1
        return count
