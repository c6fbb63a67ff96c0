"""Entry point: demo window with a desktop picker and a native-fallback picker."""

import logging
import tkinter as tk

from calendar_date import CalendarDate
from date_picker import DatePicker
from selection import Bounds
from settings import load_settings

logger = logging.getLogger("mini_date_picker")


def main() -> None:
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()

    root = tk.Tk()
    root.title("Mini Date Picker")

    today = CalendarDate.today()
    bounds = Bounds(min=today.add_days(-60), max=today.add_days(60))

    def on_change(d: CalendarDate) -> None:
        logger.info("picked %s", d.key)

    def on_invalid(text: str) -> None:
        status.configure(text=f"Not a valid date: {text}")

    tk.Label(root, text="Desktop").grid(row=0, column=0, sticky="w", padx=8, pady=4)
    DatePicker(root, on_change=on_change, bounds=bounds,
               settings=settings, placeholder="Pick a date").grid(
        row=0, column=1, sticky="we", padx=8, pady=4)

    tk.Label(root, text="Fallback").grid(row=1, column=0, sticky="w", padx=8, pady=4)
    DatePicker(root, on_change=on_change, bounds=bounds, is_mobile=True,
               settings=settings, on_invalid=on_invalid).grid(
        row=1, column=1, sticky="we", padx=8, pady=4)

    status = tk.Label(root, text="", fg="#CC0000")
    status.grid(row=2, column=0, columnspan=2, padx=8, pady=(0, 8))

    root.mainloop()


if __name__ == "__main__":
    main()
