"""Persistent JSON config helpers.

Stores the preferred shell, default modes, redraw interval and user-defined
modes. Malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "cmdpager"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_REFRESH_INTERVAL_MS = 100
MIN_REFRESH_INTERVAL_MS = 10
MAX_REFRESH_INTERVAL_MS = 5_000


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _load_nonempty_string(key: str) -> str | None:
    value = load_config().get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_shell() -> str | None:
    """Return the configured shell binary, or ``None`` to use ``$SHELL``."""
    return _load_nonempty_string("shell")


def load_default_modes() -> str:
    """Return the comma-separated modes used when the CLI names none."""
    return _load_nonempty_string("default_modes") or ""


def load_refresh_interval_ms() -> int:
    """Input poll timeout between redraws, clamped to a sane range.

    Booleans and non-integers fall back to the default.
    """
    value = load_config().get("refresh_interval_ms")
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_REFRESH_INTERVAL_MS
    return max(MIN_REFRESH_INTERVAL_MS, min(MAX_REFRESH_INTERVAL_MS, value))


def load_mode_definitions() -> dict[str, object]:
    """Return the raw ``modes`` object; validation happens when modes are built."""
    value = load_config().get("modes")
    return value if isinstance(value, dict) else {}
