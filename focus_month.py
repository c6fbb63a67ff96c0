"""The month currently on display, kept apart from the selected value."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from calendar_date import CalendarDate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearRange:
    """Navigable years, inclusive on both ends."""

    first: int = 1901
    last: int = 2100

    def __post_init__(self) -> None:
        if self.first > self.last:
            raise ValueError(f"empty year range {self.first}..{self.last}")

    def clamp(self, year: int) -> int:
        return max(self.first, min(self.last, year))

    def __contains__(self, year: int) -> bool:
        return self.first <= year <= self.last


@dataclass(frozen=True)
class FocusMonth:
    year: int
    month: int  # 0-based

    def __post_init__(self) -> None:
        if not 0 <= self.month <= 11:
            raise ValueError(f"month must be 0..11, got {self.month}")

    @classmethod
    def from_date(cls, d: CalendarDate) -> "FocusMonth":
        return cls(d.year, d.month)

    @property
    def first_day(self) -> CalendarDate:
        return CalendarDate(self.year, self.month, 1)

    def shifted(self, delta: int) -> "FocusMonth":
        carry, month = divmod(self.month + delta, 12)
        return FocusMonth(self.year + carry, month)


class FocusMonthController:
    """Holds the displayed (year, month) and moves it around.

    Years outside ``year_range`` are clamped, so the controller always
    sits on a navigable month; stepping past either edge is a no-op, and
    dates in years outside the range are never followed.
    """

    def __init__(
        self,
        initial: CalendarDate | None = None,
        year_range: YearRange | None = None,
        on_change: Callable[[FocusMonth], None] | None = None,
    ) -> None:
        self.year_range = year_range or YearRange()
        self._on_change = on_change
        start = initial or CalendarDate.today()
        self._month = self._clamped(start.year, start.month)

    @property
    def month(self) -> FocusMonth:
        return self._month

    @property
    def month_date(self) -> CalendarDate:
        """First day of the focused month, as handed to the header widget."""
        return self._month.first_day

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> None:
        self._step(1)

    def prev(self) -> None:
        self._step(-1)

    def jump(self, year: int, month: int) -> None:
        if not 0 <= month <= 11:
            raise ValueError(f"month must be 0..11, got {month}")
        self._set(year, month)

    def set_month(self, d: CalendarDate) -> None:
        """Header-widget entry point; the day component is ignored."""
        self.jump(d.year, d.month)

    def covers(self, d: CalendarDate) -> bool:
        """True if ``d`` falls in a navigable month."""
        return d.year in self.year_range

    def follow(self, d: CalendarDate) -> bool:
        """Move focus to ``d``'s month if it is elsewhere. Returns True on change.

        A date outside the navigable range leaves the focus untouched.
        """
        if d.same_month(self._month.first_day):
            return False
        if not self.covers(d):
            logger.debug("not following %s: outside %d..%d",
                         d.key, self.year_range.first, self.year_range.last)
            return False
        return self._set(d.year, d.month)

    # ------------------------------------------------------------------
    def _clamped(self, year: int, month: int) -> FocusMonth:
        if year not in self.year_range:
            clamped = self.year_range.clamp(year)
            logger.debug("year %d outside %d..%d, clamped to %d",
                         year, self.year_range.first, self.year_range.last, clamped)
            year = clamped
        return FocusMonth(year, month)

    def _step(self, delta: int) -> None:
        target = self._month.shifted(delta)
        # Stepping off either end of the range leaves the focus where it is
        if target.year in self.year_range:
            self._set(target.year, target.month)

    def _set(self, year: int, month: int) -> bool:
        new = self._clamped(year, month)
        if new == self._month:
            return False
        self._month = new
        if self._on_change is not None:
            self._on_change(new)
        return True
