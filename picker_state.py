"""Open/closed state, outside dismissal and selection commit for one picker.

Everything here is synchronous and UI-toolkit agnostic; the tkinter widget
in ``date_picker`` feeds it events and supplies the view callbacks.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable

from calendar_date import CalendarDate
from calendar_logic import canonical_key, display_format, parse_key
from date_engine import DEFAULT_ENGINE, DateEngine
from focus_month import FocusMonthController
from selection import Bounds

logger = logging.getLogger(__name__)

PointerListener = Callable[[Any], None]


class PickerState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"


class PointerDownHub:
    """Document-level pointer-down listeners for one host window.

    The host forwards every pointer-down (with its target) to
    :meth:`dispatch`; pickers register only while they are open.
    """

    def __init__(self) -> None:
        self._listeners: list[PointerListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add(self, listener: PointerListener) -> None:
        self._listeners.append(listener)

    def remove(self, listener: PointerListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def dispatch(self, target: Any) -> None:
        # Listeners may unregister themselves while being called
        for listener in list(self._listeners):
            listener(target)


class PickerStateMachine:
    """CLOSED <-> OPEN transitions plus the commit protocol.

    ``contains(target)`` is the single containment test: it must answer
    True for the popover subtree *and* the trigger input, so the gesture
    that opens the picker is never also read as an outside click.
    """

    def __init__(
        self,
        focus: FocusMonthController,
        hub: PointerDownHub,
        on_change: Callable[[CalendarDate], None] | None = None,
        bounds: Bounds | None = None,
        close_on_select: bool = False,
        contains: Callable[[Any], bool] | None = None,
        formatter: Callable[[CalendarDate], str] | None = None,
        set_text: Callable[[str], None] | None = None,
        focus_today: Callable[[], bool] | None = None,
        on_state: Callable[[PickerState], None] | None = None,
        selected: CalendarDate | None = None,
        engine: DateEngine | None = None,
    ) -> None:
        self.focus = focus
        self.bounds = bounds or Bounds()
        self.engine = engine or DEFAULT_ENGINE
        self.close_on_select = close_on_select
        self.selected = selected
        self._hub = hub
        self._on_change = on_change
        self._contains = contains or (lambda _target: False)
        self._formatter = formatter or display_format
        self._set_text = set_text
        self._focus_today = focus_today
        self._on_state = on_state
        self._state = PickerState.CLOSED
        self._listener: PointerListener | None = None

    @property
    def state(self) -> PickerState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is PickerState.OPEN

    @property
    def listening(self) -> bool:
        return self._listener is not None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def input_focused(self) -> None:
        """The text input gained focus: open and hand focus to today's cell."""
        if self.is_open:
            return
        self._enter_open()
        if self._focus_today is not None:
            self._focus_today()

    def pointer_down(self, target: Any) -> None:
        """Classify a pointer-down; close on anything outside the picker."""
        if not self.is_open:
            return
        if self._contains(target):
            return
        logger.debug("outside pointer-down on %r, closing", target)
        self.close()

    def activate(self, d: CalendarDate) -> bool:
        """A day cell was activated. Returns False if the date is not selectable."""
        if not self.is_selectable(d):
            return False

        chosen = CalendarDate(d.year, d.month, d.day)
        self.selected = chosen
        if self._on_change is not None:
            self._on_change(CalendarDate(chosen.year, chosen.month, chosen.day))
        self.focus.follow(chosen)
        if self._set_text is not None:
            self._set_text(self._formatter(chosen))
        logger.debug("committed %s", chosen.key)

        if self.close_on_select:
            self.close()
        return True

    def is_selectable(self, d: CalendarDate) -> bool:
        """In bounds and inside the navigable year range."""
        return self.bounds.contains(d, self.engine) and self.focus.covers(d)

    def close(self) -> None:
        if self.is_open:
            self._leave_open()

    def teardown(self) -> None:
        """Release the dismissal listener and drop to CLOSED.

        The view is not notified; it is being destroyed.
        """
        self._release()
        self._state = PickerState.CLOSED

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _enter_open(self) -> None:
        self._state = PickerState.OPEN
        self._acquire()
        logger.debug("picker opened on %04d-%02d",
                     self.focus.month.year, self.focus.month.month + 1)
        if self._on_state is not None:
            self._on_state(self._state)

    def _leave_open(self) -> None:
        self._release()
        self._state = PickerState.CLOSED
        logger.debug("picker closed")
        if self._on_state is not None:
            self._on_state(self._state)

    def _acquire(self) -> None:
        if self._listener is None:
            self._listener = self.pointer_down
            self._hub.add(self._listener)

    def _release(self) -> None:
        if self._listener is not None:
            self._hub.remove(self._listener)
            self._listener = None


class FallbackCommitter:
    """Commit policy for the native fallback input.

    The fallback exchanges only canonical ``YYYY-MM-DD`` strings. Text that
    does not parse to an existing, in-bounds day is rejected: it is logged,
    reported through ``on_invalid`` and never forwarded to ``on_change``.
    """

    def __init__(
        self,
        on_change: Callable[[CalendarDate], None] | None = None,
        bounds: Bounds | None = None,
        on_invalid: Callable[[str], None] | None = None,
        value: CalendarDate | None = None,
        engine: DateEngine | None = None,
    ) -> None:
        self.bounds = bounds or Bounds()
        self.engine = engine or DEFAULT_ENGINE
        self.value = value
        self._on_change = on_change
        self._on_invalid = on_invalid

    def submit(self, text: str) -> bool:
        """Returns True if ``text`` produced a new committed value."""
        text = text.strip()
        if not text:
            return False
        parsed = parse_key(text)
        if parsed is None or not self.bounds.contains(parsed, self.engine):
            logger.warning("rejected date input %r", text)
            if self._on_invalid is not None:
                self._on_invalid(text)
            return False
        if parsed == self.value:
            return False
        self.value = parsed
        if self._on_change is not None:
            self._on_change(CalendarDate(parsed.year, parsed.month, parsed.day))
        return True

    def text(self) -> str:
        return canonical_key(self.value) if self.value is not None else ""
