"""Pure calendar calculations, no UI dependencies."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from calendar_date import CalendarDate
from date_engine import DEFAULT_ENGINE, DateEngine
from selection import Bounds, is_disabled

DAY_ABBR_SUN = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DAY_ABBR_MON = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_KEY_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

MonthGrid = list[list[CalendarDate]]


def month_grid(
    year: int,
    month: int,
    monday_start: bool = False,
    engine: DateEngine | None = None,
) -> MonthGrid:
    """Return the weeks covering ``month`` (0-based) of ``year``.

    Each row holds exactly 7 consecutive days. Leading and trailing cells
    spill over from the neighbouring months, so the grid is 4, 5 or 6 rows
    of an unbroken run of days.
    """
    if not 0 <= month <= 11:
        raise ValueError(f"month must be 0..11, got {month}")
    engine = engine or DEFAULT_ENGINE

    first = CalendarDate(year, month, 1)
    days = engine.days_in_month(year, month)
    offset = engine.weekday(first)
    if monday_start:
        offset = (offset + 6) % 7
    weeks = -(-(offset + days) // 7)
    start = engine.add_days(first, -offset)

    return [
        [engine.add_days(start, row * 7 + col) for col in range(7)]
        for row in range(weeks)
    ]


def weekday_labels(monday_start: bool = False) -> list[str]:
    return list(DAY_ABBR_MON if monday_start else DAY_ABBR_SUN)


def canonical_key(d: CalendarDate) -> str:
    """Zero-padded ``YYYY-MM-DD``, used as cell identity and fallback-input format."""
    return d.key


def parse_key(text: str) -> CalendarDate | None:
    """Inverse of :func:`canonical_key`; None for anything malformed."""
    m = _KEY_RE.fullmatch(text.strip())
    if m is None:
        return None
    year, month, day = (int(g) for g in m.groups())
    try:
        return CalendarDate(year, month - 1, day)
    except ValueError:
        return None


def display_format(d: CalendarDate) -> str:
    """Default text-field rendering, e.g. ``5 Mar 24``."""
    return f"{d.day} {MONTH_NAMES[d.month][:3]} {d.year % 100:02d}"


# ------------------------------------------------------------------
# Per-cell view data
# ------------------------------------------------------------------
@dataclass(frozen=True)
class CellFlags:
    """Presentation flags handed to the per-cell style callback."""

    current: bool
    diff_month: bool
    is_weekend: bool
    today: bool


@dataclass(frozen=True)
class GridCell:
    date: CalendarDate
    flags: CellFlags
    disabled: bool

    @property
    def key(self) -> str:
        return canonical_key(self.date)


def grid_cells(
    grid: MonthGrid,
    year: int,
    month: int,
    value: CalendarDate | None,
    today: CalendarDate,
    bounds: Bounds,
    engine: DateEngine | None = None,
) -> Iterator[tuple[int, int, GridCell]]:
    """Yield ``(row, col, cell)`` for every date in ``grid``."""
    for r, week in enumerate(grid):
        for c, d in enumerate(week):
            flags = CellFlags(
                current=value is not None and d == value,
                diff_month=(d.year, d.month) != (year, month),
                is_weekend=d.is_weekend,
                today=d == today,
            )
            yield r, c, GridCell(d, flags, is_disabled(d, bounds, engine))
