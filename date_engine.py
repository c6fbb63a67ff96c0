"""Interchangeable date-arithmetic backends for the grid and bounds logic.

Grid generation and the selection policy only need four capabilities:
add days, day count of a month, weekday of a date, and comparison.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from calendar_date import CalendarDate


class DateEngine(ABC):
    """Minimal calendar capability set."""

    name = "abstract"

    @abstractmethod
    def add_days(self, d: CalendarDate, n: int) -> CalendarDate:
        ...

    @abstractmethod
    def days_in_month(self, year: int, month: int) -> int:
        """Day count of ``month`` (0-based) in ``year``."""

    @abstractmethod
    def weekday(self, d: CalendarDate) -> int:
        """0 = Sunday … 6 = Saturday."""

    def compare(self, a: CalendarDate, b: CalendarDate) -> int:
        """Negative, zero or positive as ``a`` is before, equal to or after ``b``."""
        return a.ordinal - b.ordinal

    def is_before(self, a: CalendarDate, b: CalendarDate) -> bool:
        return self.compare(a, b) < 0

    def is_after(self, a: CalendarDate, b: CalendarDate) -> bool:
        return self.compare(a, b) > 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class StdlibEngine(DateEngine):
    """Ordinal arithmetic on ``datetime.date``."""

    name = "stdlib"

    def add_days(self, d: CalendarDate, n: int) -> CalendarDate:
        return CalendarDate.from_date(d.to_date() + timedelta(days=n))

    def days_in_month(self, year: int, month: int) -> int:
        # Day 0 of the following month is the last day of this one
        return CalendarDate.of(year, month + 1, 0).day

    def weekday(self, d: CalendarDate) -> int:
        return d.to_date().isoweekday() % 7


class RelativeDeltaEngine(DateEngine):
    """Month-aware arithmetic through ``dateutil.relativedelta``."""

    name = "dateutil"

    def add_days(self, d: CalendarDate, n: int) -> CalendarDate:
        return CalendarDate.from_date(d.to_date() + relativedelta(days=n))

    def days_in_month(self, year: int, month: int) -> int:
        first = date(year, month + 1, 1)
        last = first + relativedelta(months=1) - timedelta(days=1)
        return last.day

    def weekday(self, d: CalendarDate) -> int:
        # date.weekday(): Monday = 0
        return (d.to_date().weekday() + 1) % 7


DEFAULT_ENGINE: DateEngine = StdlibEngine()

ENGINES: dict[str, DateEngine] = {
    StdlibEngine.name: DEFAULT_ENGINE,
    RelativeDeltaEngine.name: RelativeDeltaEngine(),
}
