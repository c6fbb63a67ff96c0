"""JSON-based picker defaults (week start, close-on-select, year range, date engine)."""

import json
import logging
import os

from date_engine import DEFAULT_ENGINE, ENGINES, DateEngine
from focus_month import YearRange

logger = logging.getLogger(__name__)

_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".mini-date-picker-settings.json")

_DEFAULTS = {
    "monday_start": False,
    "close_on_select": True,
    "year_min": 1901,
    "year_max": 2100,
    "placeholder": "",
    "engine": DEFAULT_ENGINE.name,
}


def load_settings(path: str | None = None) -> dict:
    """Load settings from disk, returning defaults for missing keys."""
    settings = dict(_DEFAULTS)
    try:
        with open(path or _SETTINGS_PATH, "r", encoding="utf-8") as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            logger.warning("ignoring settings file: expected an object")
            return settings
        for key in ("monday_start", "close_on_select"):
            if key in stored and isinstance(stored[key], bool):
                settings[key] = stored[key]
        for key in ("year_min", "year_max"):
            # bool is an int subclass; reject it explicitly
            if key in stored and isinstance(stored[key], int) and not isinstance(stored[key], bool):
                settings[key] = stored[key]
        for key in ("placeholder", "engine"):
            if key in stored and isinstance(stored[key], str):
                settings[key] = stored[key]
    except FileNotFoundError:
        pass
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("could not read settings: %s", exc)
    return settings


def save_settings(settings: dict, path: str | None = None) -> None:
    """Persist settings to disk."""
    with open(path or _SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)


def year_range(settings: dict) -> YearRange:
    """Build the navigable year range, tolerating a swapped pair."""
    lo, hi = settings["year_min"], settings["year_max"]
    if lo > hi:
        lo, hi = hi, lo
    return YearRange(lo, hi)


def date_engine(settings: dict) -> DateEngine:
    """Resolve the configured engine name, falling back to the default."""
    name = settings.get("engine", DEFAULT_ENGINE.name)
    engine = ENGINES.get(name)
    if engine is None:
        logger.warning("unknown date engine %r, using %s", name, DEFAULT_ENGINE.name)
        return DEFAULT_ENGINE
    return engine
