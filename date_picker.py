"""Date-picker widget (tkinter): text entry plus a month-grid popover.

The widget only wires events and paints cells; grid generation, bounds
and the open/close/commit logic live in the pure modules it composes.
"""

from __future__ import annotations

import enum
import functools
import logging
import tkinter as tk
from tkinter import font as tkfont
from typing import Any, Callable

from PIL import ImageTk

from calendar_date import CalendarDate
from calendar_logic import (
    MONTH_NAMES,
    CellFlags,
    canonical_key,
    display_format,
    grid_cells,
    month_grid,
    weekday_labels,
)
from date_engine import DateEngine
from focus_month import FocusMonth, FocusMonthController, YearRange
from icon_gen import create_icon_image
from picker_state import FallbackCommitter, PickerState, PickerStateMachine
from selection import Bounds
from settings import date_engine as configured_engine
from settings import load_settings, year_range as configured_year_range

logger = logging.getLogger(__name__)

# Colours
ACCENT = "#0078D4"
SEL_BG = "#B3D7F2"
HEADER_BG = "#F3F3F3"
GRID_BG = "white"
DIM_FG = "#AAAAAA"
WEEKEND_FG = "#CC0000"
BORDER = "#888888"

POINTER_DOWN = "<ButtonPress>"
MAX_WEEKS = 6


class RenderMode(enum.Enum):
    DESKTOP = "desktop"
    NATIVE_FALLBACK = "native"


def select_render_mode(is_mobile: bool = False, testing: bool = False) -> RenderMode:
    if is_mobile or testing:
        return RenderMode.NATIVE_FALLBACK
    return RenderMode.DESKTOP


def default_cell_style(flags: CellFlags) -> dict:
    """Tk options for a day cell."""
    if flags.current:
        return {"bg": ACCENT, "fg": "white"}
    fg = "black"
    if flags.diff_month:
        fg = DIM_FG
    elif flags.is_weekend:
        fg = WEEKEND_FG
    if flags.today:
        return {"bg": SEL_BG, "fg": fg}
    return {"bg": GRID_BG, "fg": fg}


def _unbind_all(widget: tk.Misc, sequence: str, funcid: str) -> None:
    """Remove a single ``bind_all(..., add="+")`` script, keeping the rest."""
    script = widget.tk.call("bind", "all", sequence)
    kept = "\n".join(line for line in script.split("\n") if funcid not in line)
    widget.tk.call("bind", "all", sequence, kept)
    widget.deletecommand(funcid)


class TkPointerHub:
    """Application-wide pointer-down listeners on top of ``bind_all``.

    Each registered listener owns exactly one ``all``-tag binding, created
    by :meth:`add` and deleted by :meth:`remove`.
    """

    def __init__(self, widget: tk.Misc) -> None:
        self._widget = widget
        self._bindings: dict[Callable[[Any], None], str] = {}

    @property
    def listener_count(self) -> int:
        return len(self._bindings)

    def add(self, listener: Callable[[Any], None]) -> None:
        if listener in self._bindings:
            return
        funcid = self._widget.bind_all(
            POINTER_DOWN, lambda e: listener(e.widget), add="+",
        )
        self._bindings[listener] = funcid

    def remove(self, listener: Callable[[Any], None]) -> None:
        funcid = self._bindings.pop(listener, None)
        if funcid is not None:
            _unbind_all(self._widget, POINTER_DOWN, funcid)


class MonthHeader(tk.Frame):
    """Default navigation header: ◀  [month]  [year]  ▶.

    Any replacement must accept ``(parent, month, next, prev, set_month)``
    and expose ``update_month(month)``.
    """

    def __init__(
        self,
        parent: tk.Misc,
        month: CalendarDate,
        next: Callable[[], None],
        prev: Callable[[], None],
        set_month: Callable[[CalendarDate], None],
        year_range: YearRange | None = None,
        font: Any = None,
    ) -> None:
        super().__init__(parent, bg=GRID_BG)
        self._set_month = set_month
        self._year_range = year_range or YearRange()
        self._month = month

        btn_prev = tk.Label(self, text="◀", font=font, bg=GRID_BG, cursor="hand2")
        btn_prev.pack(side="left", padx=4)
        btn_prev.bind("<Button-1>", lambda _e: prev())

        btn_next = tk.Label(self, text="▶", font=font, bg=GRID_BG, cursor="hand2")
        btn_next.pack(side="right", padx=4)
        btn_next.bind("<Button-1>", lambda _e: next())

        self._month_var = tk.StringVar(self, MONTH_NAMES[month.month])
        self.month_menu = tk.OptionMenu(
            self, self._month_var, *MONTH_NAMES, command=self._on_month_pick,
        )
        self.month_menu.configure(width=9, bg=GRID_BG, highlightthickness=0)
        self.month_menu.pack(side="left", padx=2)

        self._year_var = tk.StringVar(self, str(month.year))
        self.year_spin = tk.Spinbox(
            self, from_=self._year_range.first, to=self._year_range.last,
            textvariable=self._year_var, width=5, command=self._on_year_entry,
        )
        # Spinbox resets its variable to from_ on creation
        self._year_var.set(str(month.year))
        self.year_spin.pack(side="left", padx=2)
        self.year_spin.bind("<Return>", self._on_year_entry)
        self.year_spin.bind("<FocusOut>", self._on_year_entry)

    def update_month(self, month: CalendarDate) -> None:
        self._month = month
        self._month_var.set(MONTH_NAMES[month.month])
        self._year_var.set(str(month.year))

    def _on_month_pick(self, name: str) -> None:
        self._set_month(CalendarDate(self._month.year, MONTH_NAMES.index(name), 1))

    def _on_year_entry(self, _event: tk.Event | None = None) -> None:
        try:
            year = int(self._year_var.get())
        except ValueError:
            self._year_var.set(str(self._month.year))
            return
        # Out-of-range entries are clamped by the controller
        self._set_month(CalendarDate(self._year_range.clamp(year), self._month.month, 1))
        self._year_var.set(str(self._month.year))


class NativeDateEntry(tk.Entry):
    """Fallback input speaking only the canonical ``YYYY-MM-DD`` string."""

    def __init__(self, parent: tk.Misc, committer: FallbackCommitter, **kw) -> None:
        self._var = tk.StringVar(parent, committer.text())
        super().__init__(parent, textvariable=self._var, **kw)
        self.committer = committer
        self.bind("<Return>", self._commit)
        self.bind("<FocusOut>", self._commit)

    def _commit(self, _event: tk.Event | None = None) -> None:
        self.committer.submit(self._var.get())

    def set_value(self, value: CalendarDate | None) -> None:
        self.committer.value = value
        self._var.set(self.committer.text())


class DatePicker(tk.Frame):
    """Entry that opens a month-grid popover on focus.

    ``value`` stays owned by the caller; picked dates are reported through
    ``on_change`` as fresh values. ``settings`` supplies defaults for any
    option left as None.
    """

    def __init__(
        self,
        parent: tk.Misc,
        value: CalendarDate | None = None,
        on_change: Callable[[CalendarDate], None] | None = None,
        bounds: Bounds | None = None,
        monday_start: bool | None = None,
        close_on_select: bool | None = None,
        is_mobile: bool = False,
        testing: bool = False,
        formatter: Callable[[CalendarDate], str] | None = None,
        header: Callable[..., Any] | None = None,
        cell_style: Callable[[CellFlags], dict] | None = None,
        placeholder: str | None = None,
        year_range: YearRange | None = None,
        settings: dict | None = None,
        on_invalid: Callable[[str], None] | None = None,
        engine: DateEngine | None = None,
    ) -> None:
        super().__init__(parent)
        settings = settings if settings is not None else load_settings()

        self.bounds = bounds or Bounds()
        if self.bounds.is_inverted:
            logger.debug("min %s is after max %s: every date is disabled",
                         self.bounds.min, self.bounds.max)
        self.monday_start = settings["monday_start"] if monday_start is None else monday_start
        self.placeholder = settings["placeholder"] if placeholder is None else placeholder
        self.engine = engine or configured_engine(settings)
        self.mode = select_render_mode(is_mobile, testing)
        self._formatter = formatter or display_format
        self._cell_style = cell_style or default_cell_style
        self._placeholder_shown = False

        if self.mode is RenderMode.NATIVE_FALLBACK:
            self.entry = NativeDateEntry(
                self, FallbackCommitter(on_change, self.bounds, on_invalid, value, self.engine),
            )
            self.entry.pack(side="left", fill="x", expand=True)
            self.state_machine = None
            return

        self._setup_fonts()
        self.focus_month = FocusMonthController(
            initial=value,
            year_range=year_range or configured_year_range(settings),
            on_change=self._on_focus_change,
        )
        self._text_var = tk.StringVar(self)
        self.entry = tk.Entry(self, textvariable=self._text_var, font=self.font_normal)
        self.entry.pack(side="left", fill="x", expand=True)

        self._icon = ImageTk.PhotoImage(create_icon_image(), master=self)
        self.trigger = tk.Button(
            self, image=self._icon, relief="flat", takefocus=0,
            command=self.entry.focus_set,
        )
        self.trigger.pack(side="left", padx=(2, 0))

        self.hub = TkPointerHub(self)
        self.state_machine = PickerStateMachine(
            focus=self.focus_month,
            hub=self.hub,
            on_change=on_change,
            bounds=self.bounds,
            close_on_select=(settings["close_on_select"]
                             if close_on_select is None else close_on_select),
            contains=self._contains,
            formatter=self._formatter,
            set_text=self._set_text,
            focus_today=self._focus_today,
            on_state=self._on_state,
            selected=value,
            engine=self.engine,
        )

        self._build_popover(header)
        self._set_text(self._formatter(value) if value is not None else "")
        self._render()

        self.entry.bind("<FocusIn>", self._on_entry_focus)
        self.entry.bind("<FocusOut>", self._on_entry_blur)
        self.entry.bind("<Button-1>", self._on_entry_click, add="+")
        self.bind("<Destroy>", self._on_destroy)

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self.font_normal = tkfont.Font(self, family=base, size=9)
        self.font_bold = tkfont.Font(self, family=base, size=9, weight="bold")
        self.font_nav = tkfont.Font(self, family=base, size=12, weight="bold")

    # ------------------------------------------------------------------
    # Build popover (once): header, weekday labels, pooled day cells
    # ------------------------------------------------------------------
    def _build_popover(self, header: Callable[..., Any] | None) -> None:
        self.popover = tk.Toplevel(self, bg=GRID_BG, highlightthickness=1,
                                   highlightbackground=BORDER)
        self.popover.overrideredirect(True)
        self.popover.withdraw()
        self.popover.bind("<Escape>", lambda _e: self.close())

        factory = header or functools.partial(
            MonthHeader, year_range=self.focus_month.year_range, font=self.font_nav,
        )
        self.header = factory(
            self.popover,
            month=self.focus_month.month_date,
            next=self.focus_month.next,
            prev=self.focus_month.prev,
            set_month=self.focus_month.set_month,
        )
        self.header.pack(fill="x", padx=4, pady=(4, 2))

        grid = tk.Frame(self.popover, bg=GRID_BG)
        grid.pack(padx=4, pady=(0, 4))
        for col, abbr in enumerate(weekday_labels(self.monday_start)):
            tk.Label(grid, text=abbr, font=self.font_bold, bg=HEADER_BG,
                     fg="#333333", width=3).grid(row=0, column=col)

        self._cells: list[list[tk.Button]] = []
        for r in range(MAX_WEEKS):
            row: list[tk.Button] = []
            for c in range(7):
                cell = tk.Button(
                    grid, width=3, relief="flat", borderwidth=0,
                    font=self.font_normal, takefocus=1,
                    command=functools.partial(self._on_cell, r, c),
                )
                cell.grid(row=r + 1, column=c, padx=1, pady=1)
                cell.bind("<Return>", lambda _e, w=cell: w.invoke())
                for key, dr, dc in (("<Left>", 0, -1), ("<Right>", 0, 1),
                                    ("<Up>", -1, 0), ("<Down>", 1, 0)):
                    cell.bind(key, functools.partial(self._move_focus, r, c, dr, dc))
                row.append(cell)
            self._cells.append(row)

        self._cell_dates: dict[tuple[int, int], CalendarDate] = {}
        self._key_cells: dict[str, tk.Button] = {}
        self._today_cell: tk.Button | None = None
        self._weeks = 0

    # ------------------------------------------------------------------
    # Render the focused month into the pooled cells
    # ------------------------------------------------------------------
    def _render(self) -> None:
        month = self.focus_month.month
        self.header.update_month(month.first_day)

        grid = month_grid(month.year, month.month, self.monday_start, self.engine)
        self._weeks = len(grid)
        self._cell_dates.clear()
        self._key_cells.clear()
        self._today_cell = None
        today = CalendarDate.today()

        for r, c, cell in grid_cells(grid, month.year, month.month,
                                     self.state_machine.selected, today, self.bounds,
                                     self.engine):
            widget = self._cells[r][c]
            disabled = cell.disabled or not self.focus_month.covers(cell.date)
            options = {
                "text": str(cell.date.day),
                "font": self.font_bold if cell.flags.today else self.font_normal,
                "state": "disabled" if disabled else "normal",
                "cursor": "" if disabled else "hand2",
            }
            options.update(self._cell_style(cell.flags))
            widget.configure(**options)
            widget.grid()
            self._cell_dates[(r, c)] = cell.date
            self._key_cells[cell.key] = widget
            if cell.flags.today:
                self._today_cell = widget

        for r in range(self._weeks, MAX_WEEKS):
            for widget in self._cells[r]:
                widget.grid_remove()

    def _on_focus_change(self, _month: FocusMonth) -> None:
        self._render()

    # ------------------------------------------------------------------
    # Event wiring
    # ------------------------------------------------------------------
    def _on_entry_focus(self, _event: tk.Event) -> None:
        self._hide_placeholder()
        self.state_machine.input_focused()

    def _on_entry_blur(self, _event: tk.Event) -> None:
        self._show_placeholder()

    def _on_entry_click(self, _event: tk.Event) -> None:
        # Entry may already hold focus, in which case no FocusIn follows
        if not self.state_machine.is_open:
            self._hide_placeholder()
            self.state_machine.input_focused()

    def _on_cell(self, row: int, col: int) -> None:
        d = self._cell_dates.get((row, col))
        if d is not None and self.state_machine.activate(d):
            self._render()

    def _move_focus(self, row: int, col: int, dr: int, dc: int, _event: tk.Event) -> str:
        r = row + dr
        c = col + dc
        if c < 0:
            r, c = r - 1, 6
        elif c > 6:
            r, c = r + 1, 0
        if 0 <= r < self._weeks:
            self._cells[r][c].focus_set()
        return "break"

    def _contains(self, target: Any) -> bool:
        path = str(target)
        for owner in (self.entry, self.trigger, self.popover):
            root = str(owner)
            if path == root or path.startswith(root + "."):
                return True
        return False

    def _focus_today(self) -> bool:
        if self._today_cell is None:
            return False
        self._today_cell.focus_set()
        return True

    def _on_state(self, state: PickerState) -> None:
        if state is PickerState.OPEN:
            self._position_popover()
            self.popover.deiconify()
            self.popover.lift()
            self.popover.update_idletasks()
        else:
            self.popover.withdraw()

    def _on_destroy(self, event: tk.Event) -> None:
        if event.widget is self and self.state_machine is not None:
            self.state_machine.teardown()

    def _position_popover(self) -> None:
        self.update_idletasks()
        x = self.entry.winfo_rootx()
        y = self.entry.winfo_rooty() + self.entry.winfo_height()
        self.popover.geometry(f"+{x}+{y}")

    # ------------------------------------------------------------------
    # Text field
    # ------------------------------------------------------------------
    def _set_text(self, text: str) -> None:
        self._placeholder_shown = False
        self.entry.configure(fg="black")
        self._text_var.set(text)
        if not text and self.focus_get() is not self.entry:
            self._show_placeholder()

    def _show_placeholder(self) -> None:
        if self.placeholder and not self._text_var.get():
            self._placeholder_shown = True
            self.entry.configure(fg=DIM_FG)
            self._text_var.set(self.placeholder)

    def _hide_placeholder(self) -> None:
        if self._placeholder_shown:
            self._placeholder_shown = False
            self.entry.configure(fg="black")
            self._text_var.set("")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self.state_machine is not None and self.state_machine.is_open

    def get_text(self) -> str:
        if self.mode is RenderMode.NATIVE_FALLBACK:
            return self.entry.get()
        return "" if self._placeholder_shown else self._text_var.get()

    def set_value(self, value: CalendarDate | None) -> None:
        """Adopt a caller-owned value; the focus follows it."""
        if self.mode is RenderMode.NATIVE_FALLBACK:
            self.entry.set_value(value)
            return
        self.state_machine.selected = value
        # follow() re-renders through the focus callback when the month moves
        if value is None or not self.focus_month.follow(value):
            self._render()
        self._set_text(self._formatter(value) if value is not None else "")

    def open(self) -> None:
        if self.state_machine is not None:
            self.entry.focus_set()
            self.state_machine.input_focused()

    def close(self) -> None:
        if self.state_machine is not None:
            self.state_machine.close()

    def cell_for(self, d: CalendarDate) -> tk.Button | None:
        """The day cell currently showing ``d``, if any."""
        return self._key_cells.get(canonical_key(d))
