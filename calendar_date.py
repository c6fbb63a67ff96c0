"""Immutable calendar-day value: no time-of-day, no timezone."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True, order=True)
class CalendarDate:
    """A single calendar day.

    ``month`` is 0-based (0 = January … 11 = December), ``day`` is 1-based.
    Instances always name a day that exists; use :meth:`of` to build one
    from overflowing fields (day 0, month 12, …).
    Field order makes the generated comparisons chronological.
    """

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        if not 0 <= self.month <= 11:
            raise ValueError(f"month must be 0..11, got {self.month}")
        try:
            date(self.year, self.month + 1, self.day)
        except ValueError as exc:
            raise ValueError(
                f"no such day: {self.year}-{self.month + 1:02d}-{self.day:02d}"
            ) from exc

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def of(cls, year: int, month: int, day: int = 1) -> "CalendarDate":
        """Build a date with rollover: day 0 is the last day of the previous
        month, month 12 is January of the next year, and so on."""
        carry, month = divmod(month, 12)
        first = date(year + carry, month + 1, 1)
        return cls.from_date(first + timedelta(days=day - 1))

    @classmethod
    def from_date(cls, d: date) -> "CalendarDate":
        return cls(d.year, d.month - 1, d.day)

    @classmethod
    def today(cls) -> "CalendarDate":
        return cls.from_date(date.today())

    # ------------------------------------------------------------------
    # Derived accessors
    # ------------------------------------------------------------------
    def to_date(self) -> date:
        return date(self.year, self.month + 1, self.day)

    @property
    def ordinal(self) -> int:
        return self.to_date().toordinal()

    @property
    def weekday(self) -> int:
        """0 = Sunday … 6 = Saturday."""
        return self.to_date().isoweekday() % 7

    @property
    def is_weekend(self) -> bool:
        return self.weekday in (0, 6)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month + 1:02d}-{self.day:02d}"

    def same_month(self, other: "CalendarDate") -> bool:
        return self.year == other.year and self.month == other.month

    # ------------------------------------------------------------------
    # Transforms (each returns a new value)
    # ------------------------------------------------------------------
    def add_days(self, n: int) -> "CalendarDate":
        return self.from_date(self.to_date() + timedelta(days=n))

    def __str__(self) -> str:
        return self.key
