"""Input-layer public API for key identities and terminal key decoding."""

from .keys import ALT, CTRL, SHIFT, KeyEvent, as_key_event, format_key, make_key, parse_key
from .reader import ESC_SEQUENCE_TIMEOUT_MS, _PENDING_BYTES, read_key

__all__ = [
    "ALT",
    "CTRL",
    "SHIFT",
    "KeyEvent",
    "as_key_event",
    "format_key",
    "make_key",
    "parse_key",
    "read_key",
    "_PENDING_BYTES",
    "ESC_SEQUENCE_TIMEOUT_MS",
]
