"""Key identities and the compact textual key notation.

``C-r`` is ctrl+r, ``S-g`` is shift+g, ``M-x`` is alt+x. Named keys use short
lowercase names (``down``, ``pgdn``). An uppercase letter is the same key as
``S-`` plus its lowercase form, so both spellings hit one listener.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import KeyParseError

CTRL = "ctrl"
ALT = "alt"
SHIFT = "shift"

_MODIFIER_PREFIXES = {"C": CTRL, "M": ALT, "A": ALT, "S": SHIFT}
_MODIFIER_ORDER = (CTRL, ALT, SHIFT)
_MODIFIER_NOTATION = {CTRL: "C", ALT: "M", SHIFT: "S"}

NAMED_KEYS: frozenset[str] = frozenset(
    {
        "up",
        "down",
        "left",
        "right",
        "pgup",
        "pgdn",
        "home",
        "end",
        "insert",
        "delete",
        "enter",
        "tab",
        "esc",
        "backspace",
        "space",
    }
)

_KEY_ALIASES = {
    "pageup": "pgup",
    "pagedown": "pgdn",
    "return": "enter",
    "escape": "esc",
    "del": "delete",
    " ": "space",
}

# Terminals send these ctrl chords as the bytes of the named key.
_CTRL_KEY_EQUIVALENTS = {"h": "backspace", "i": "tab", "j": "enter", "m": "enter"}


@dataclass(frozen=True)
class KeyEvent:
    """Hashable key identity: a base key plus a modifier set."""

    key: str
    modifiers: frozenset[str] = frozenset()

    def __str__(self) -> str:
        return format_key(self)


def make_key(key: str, *modifiers: str) -> KeyEvent:
    """Build a normalized ``KeyEvent`` from a base key and modifiers."""
    mods = set(modifiers)
    if len(key) == 1 and key.isalpha() and key.isupper():
        mods.add(SHIFT)
        key = key.lower()
    lowered = key.lower() if len(key) > 1 else key
    key = _KEY_ALIASES.get(lowered, lowered)
    if CTRL in mods and key in _CTRL_KEY_EQUIVALENTS:
        mods.discard(CTRL)
        key = _CTRL_KEY_EQUIVALENTS[key]
    if len(key) > 1 and key not in NAMED_KEYS:
        raise KeyParseError(f"unknown key name: {key!r}")
    return KeyEvent(key=key, modifiers=frozenset(mods))


def parse_key(notation: str) -> KeyEvent:
    """Parse key notation such as ``C-r``, ``S-g``, ``pgdn`` or ``q``."""
    if not isinstance(notation, str) or not notation:
        raise KeyParseError(f"empty key notation: {notation!r}")
    if len(notation) == 1:
        return make_key(notation)

    modifiers: list[str] = []
    rest = notation
    while len(rest) > 2 and rest[1] == "-" and rest[0] in _MODIFIER_PREFIXES:
        modifiers.append(_MODIFIER_PREFIXES[rest[0]])
        rest = rest[2:]
    if len(rest) == 2 and rest[1] == "-" and rest[0] in _MODIFIER_PREFIXES:
        raise KeyParseError(f"missing key after modifier in {notation!r}")
    return make_key(rest, *modifiers)


def as_key_event(key: KeyEvent | str) -> KeyEvent:
    """Accept either a ``KeyEvent`` or key notation."""
    if isinstance(key, KeyEvent):
        return key
    return parse_key(key)


def format_key(event: KeyEvent) -> str:
    """Render ``event`` back into canonical key notation."""
    prefix = "".join(f"{_MODIFIER_NOTATION[mod]}-" for mod in _MODIFIER_ORDER if mod in event.modifiers)
    return f"{prefix}{event.key}"
