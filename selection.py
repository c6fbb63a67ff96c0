"""Which dates may be selected, given optional min/max bounds."""

from __future__ import annotations

from dataclasses import dataclass

from calendar_date import CalendarDate
from date_engine import DEFAULT_ENGINE, DateEngine


@dataclass(frozen=True)
class Bounds:
    """Inclusive selection bounds; either side may be open.

    ``min`` after ``max`` is allowed and simply disables every date.
    """

    min: CalendarDate | None = None
    max: CalendarDate | None = None

    @property
    def is_inverted(self) -> bool:
        return self.min is not None and self.max is not None and self.min > self.max

    def contains(self, candidate: CalendarDate, engine: DateEngine | None = None) -> bool:
        return not is_disabled(candidate, self, engine)


def is_disabled(
    candidate: CalendarDate,
    bounds: Bounds,
    engine: DateEngine | None = None,
) -> bool:
    """True if ``candidate`` lies strictly outside ``bounds``.

    Boundary days themselves are enabled.
    """
    engine = engine or DEFAULT_ENGINE
    if bounds.max is not None and engine.is_after(candidate, bounds.max):
        return True
    if bounds.min is not None and engine.is_before(candidate, bounds.min):
        return True
    return False
