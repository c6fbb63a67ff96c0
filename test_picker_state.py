import logging

import pytest

from calendar_date import CalendarDate
from calendar_logic import month_grid
from date_engine import RelativeDeltaEngine
from focus_month import FocusMonth, FocusMonthController
from picker_state import FallbackCommitter, PickerState, PickerStateMachine, PointerDownHub
from selection import Bounds

INPUT = "input"
POPOVER = "popover"
CELL = "popover.cell.3"
OUTSIDE = "body.other"


def contains(target):
    return target == INPUT or target == POPOVER or target.startswith(POPOVER + ".")


@pytest.fixture
def hub():
    return PointerDownHub()


@pytest.fixture
def changes():
    return []


@pytest.fixture
def texts():
    return []


def make_machine(hub, changes, texts, **kw):
    focus = FocusMonthController(initial=CalendarDate(2024, 5, 1))
    params = dict(
        focus=focus,
        hub=hub,
        on_change=changes.append,
        contains=contains,
        set_text=texts.append,
    )
    params.update(kw)
    return PickerStateMachine(**params)


class TestOpenClose:
    def test_starts_closed_without_listener(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        assert sm.state is PickerState.CLOSED
        assert hub.listener_count == 0

    def test_focus_opens_and_installs_listener(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        sm.input_focused()
        assert sm.state is PickerState.OPEN
        assert hub.listener_count == 1

    def test_focus_hands_off_to_today_cell(self, hub, changes, texts):
        calls = []
        sm = make_machine(hub, changes, texts, focus_today=lambda: calls.append("today") or True)
        sm.input_focused()
        assert calls == ["today"]

    def test_refocus_while_open_keeps_grid_position(self, hub, changes, texts):
        calls = []
        sm = make_machine(hub, changes, texts, focus_today=lambda: calls.append("today") or True)
        sm.input_focused()
        sm.input_focused()
        assert calls == ["today"]
        sm.close()
        sm.input_focused()
        assert calls == ["today", "today"]

    def test_pointer_down_inside_keeps_open(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        sm.input_focused()
        hub.dispatch(CELL)
        hub.dispatch(POPOVER)
        assert sm.is_open
        assert hub.listener_count == 1

    def test_opening_gesture_is_not_an_outside_click(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        # Focus lands first, then the same pointer-down reaches the hub
        sm.input_focused()
        hub.dispatch(INPUT)
        assert sm.is_open

    def test_pointer_down_outside_closes_and_releases(self, hub, changes, texts):
        states = []
        sm = make_machine(hub, changes, texts, on_state=states.append)
        sm.input_focused()
        hub.dispatch(OUTSIDE)
        assert sm.state is PickerState.CLOSED
        assert hub.listener_count == 0
        assert states == [PickerState.OPEN, PickerState.CLOSED]

    def test_listener_does_not_leak_across_cycles(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        for _ in range(5):
            sm.input_focused()
            sm.input_focused()
            assert hub.listener_count == 1
            hub.dispatch(OUTSIDE)
            assert hub.listener_count == 0

    def test_pointer_down_while_closed_is_ignored(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        sm.pointer_down(OUTSIDE)
        assert sm.state is PickerState.CLOSED

    def test_teardown_releases_listener(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        sm.input_focused()
        sm.teardown()
        assert hub.listener_count == 0
        assert not sm.listening

    def test_independent_pickers(self, hub, changes, texts):
        a = make_machine(hub, changes, texts)
        b = make_machine(hub, changes, texts)
        a.input_focused()
        assert not b.is_open
        b.input_focused()
        assert hub.listener_count == 2
        a.close()
        assert b.is_open
        assert hub.listener_count == 1


class TestCommit:
    def test_commit_notifies_once_with_fresh_value(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        sm.input_focused()
        grid = month_grid(2024, 5)
        cell = grid[2][3]
        assert sm.activate(cell)
        assert changes == [cell]
        assert changes[0] is not cell
        assert sm.selected == cell
        assert texts == ["12 Jun 24"]
        assert sm.is_open

    def test_close_on_select(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts, close_on_select=True)
        sm.input_focused()
        assert sm.activate(CalendarDate(2024, 5, 20))
        assert sm.state is PickerState.CLOSED
        assert len(changes) == 1
        assert hub.listener_count == 0

    def test_commit_outside_focus_month_moves_focus(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts)
        spill = month_grid(2024, 5)[-1][-1]
        assert spill == CalendarDate(2024, 6, 6)
        sm.activate(spill)
        assert sm.focus.month == FocusMonth(2024, 6)
        grid = month_grid(sm.focus.month.year, sm.focus.month.month)
        assert grid[0][0] == CalendarDate(2024, 5, 30)

    def test_custom_formatter(self, hub, changes, texts):
        sm = make_machine(hub, changes, texts, formatter=lambda d: d.key)
        sm.activate(CalendarDate(2024, 5, 3))
        assert texts == ["2024-06-03"]

    @pytest.mark.parametrize("bounds", [
        Bounds(min=CalendarDate(2024, 6, 1)),
        Bounds(max=CalendarDate(2024, 4, 30)),
        Bounds(min=CalendarDate(2024, 6, 1), max=CalendarDate(2024, 4, 1)),
    ])
    def test_disabled_cells_are_inert(self, hub, changes, texts, bounds):
        sm = make_machine(hub, changes, texts, bounds=bounds, close_on_select=True)
        sm.input_focused()
        assert not sm.activate(CalendarDate(2024, 5, 15))
        assert not sm.activate(CalendarDate(2024, 4, 15))
        assert changes == []
        assert texts == []
        assert sm.selected is None
        assert sm.focus.month == FocusMonth(2024, 5)
        assert sm.is_open

    @pytest.mark.parametrize("year, month, pick", [
        (2100, 11, lambda grid: grid[-1][-1]),
        (1901, 0, lambda grid: grid[0][0]),
    ])
    def test_spillover_beyond_year_range_is_inert(self, hub, changes, texts, year, month, pick):
        focus = FocusMonthController(initial=CalendarDate(year, month, 1))
        sm = make_machine(hub, changes, texts, focus=focus)
        spill = pick(month_grid(year, month))
        assert spill.year not in focus.year_range
        assert not sm.is_selectable(spill)
        assert not sm.activate(spill)
        assert changes == []
        assert sm.selected is None
        assert focus.month == FocusMonth(year, month)

    def test_engine_is_used_for_bounds(self, hub, changes, texts):
        engine = RelativeDeltaEngine()
        edge = CalendarDate(2024, 5, 10)
        sm = make_machine(hub, changes, texts, bounds=Bounds(max=edge), engine=engine)
        assert sm.engine is engine
        assert sm.activate(edge)
        assert not sm.activate(edge.add_days(1))
        assert changes == [edge]

    def test_boundary_day_is_selectable(self, hub, changes, texts):
        edge = CalendarDate(2024, 5, 10)
        sm = make_machine(hub, changes, texts, bounds=Bounds(min=edge, max=edge))
        assert sm.activate(edge)
        assert changes == [edge]


class TestFallbackCommitter:
    def test_valid_text_commits(self):
        seen = []
        fc = FallbackCommitter(on_change=seen.append)
        assert fc.submit("2024-02-29")
        assert seen == [CalendarDate(2024, 1, 29)]
        assert fc.text() == "2024-02-29"

    def test_same_value_is_not_recommitted(self):
        seen = []
        fc = FallbackCommitter(on_change=seen.append, value=CalendarDate(2024, 1, 29))
        assert not fc.submit("2024-02-29")
        assert seen == []

    def test_blank_is_ignored_silently(self):
        invalid = []
        fc = FallbackCommitter(on_invalid=invalid.append)
        assert not fc.submit("   ")
        assert invalid == []

    @pytest.mark.parametrize("text", ["2023-02-29", "yesterday", "2024-1-5", "2024-13-01", "\u0662\u0660\u0662\u0664-01-05"])
    def test_invalid_text_is_rejected_and_reported(self, text, caplog):
        seen, invalid = [], []
        fc = FallbackCommitter(on_change=seen.append, on_invalid=invalid.append)
        with caplog.at_level(logging.WARNING, logger="picker_state"):
            assert not fc.submit(text)
        assert seen == []
        assert invalid == [text]
        assert fc.value is None
        assert "rejected" in caplog.text

    def test_out_of_bounds_text_is_rejected(self):
        seen, invalid = [], []
        bounds = Bounds(min=CalendarDate(2024, 0, 1), max=CalendarDate(2024, 11, 31))
        fc = FallbackCommitter(seen.append, bounds, invalid.append)
        assert not fc.submit("2025-01-01")
        assert fc.submit("2024-12-31")
        assert seen == [CalendarDate(2024, 11, 31)]
        assert invalid == ["2025-01-01"]
