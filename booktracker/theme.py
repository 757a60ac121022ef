"""Theme preference and status coloring.

The stored flag is "dark" or "". Unless it is "dark" the ambient terminal
preference is read once at startup: BOOKTRACKER_THEME if set, otherwise the
background color from COLORFGBG. Color output is disabled when stdout is not
a TTY or NO_COLOR is set.
"""
from __future__ import annotations
import os, sys
from typing import Callable, Mapping, Optional

from booktracker.models import STATUS_NOT_STARTED, STATUS_READING, STATUS_FINISHED

DARK = "dark"
LIGHT = ""

# xterm background indexes that read as dark
_DARK_BACKGROUNDS = {"0", "1", "2", "3", "4", "5", "6", "8"}

_PALETTES = {
    DARK: {
        STATUS_NOT_STARTED: "\033[38;5;250m",
        STATUS_READING: "\033[38;5;228m",
        STATUS_FINISHED: "\033[38;5;150m",
    },
    LIGHT: {
        STATUS_NOT_STARTED: "\033[38;5;240m",
        STATUS_READING: "\033[38;5;130m",
        STATUS_FINISHED: "\033[38;5;28m",
    },
}
RESET = "\033[0m"


def detect_prefers_dark(environ: Mapping[str, str] = os.environ) -> bool:
    """Best guess at whether the terminal uses a dark color scheme."""
    explicit = (environ.get("BOOKTRACKER_THEME") or "").strip().lower()
    if explicit in {"dark", "light"}:
        return explicit == "dark"
    colorfgbg = environ.get("COLORFGBG", "")
    if colorfgbg:
        return colorfgbg.split(";")[-1] in _DARK_BACKGROUNDS
    return False


def init_theme(store, prefers_dark: Callable[[], bool] = detect_prefers_dark) -> str:
    """Stored "dark" wins; an empty or missing flag falls back to the ambient preference."""
    stored: Optional[str] = store.load_theme()
    if stored == DARK:
        return DARK
    return DARK if prefers_dark() else LIGHT


def set_theme(store, theme: str) -> str:
    theme = DARK if theme == DARK else LIGHT
    store.save_theme(theme)
    return theme


def toggle_theme(store, current: str) -> str:
    """Flip between dark and light and persist the choice."""
    return set_theme(store, LIGHT if current == DARK else DARK)


def color_enabled(stream=None, environ: Mapping[str, str] = os.environ) -> bool:
    if stream is None:
        stream = sys.stdout
    if environ.get("NO_COLOR") is not None:
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def color_status(status: str, theme: str, enabled: bool = True) -> str:
    """Status label wrapped in the theme's ANSI color."""
    code = _PALETTES.get(theme, _PALETTES[LIGHT]).get(status)
    if not enabled or not code:
        return status
    return f"{code}{status}{RESET}"
