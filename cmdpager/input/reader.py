"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into ``KeyEvent`` values.
Handles ESC-sequence timing, CSI/SS3 navigation keys, modifiers and UTF-8.
"""

from __future__ import annotations

import os
import select

from .keys import ALT, CTRL, SHIFT, KeyEvent, make_key

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_CSI_FINAL_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}
_CSI_TILDE_KEYS = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pgup",
    "6": "pgdn",
    "7": "home",
    "8": "end",
}
# xterm modifier parameter: value - 1 is a bitmask of shift=1, alt=2, ctrl=4.
_MODIFIER_BITS = ((1, SHIFT), (2, ALT), (4, CTRL))


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    if _PENDING_BYTES:
        return _PENDING_BYTES.pop(0)
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_modifiers(param: str) -> tuple[str, ...]:
    try:
        mask = int(param) - 1
    except ValueError:
        return ()
    return tuple(name for bit, name in _MODIFIER_BITS if mask & bit)


def _decode_control_byte(ch: bytes) -> KeyEvent | None:
    code = ch[0]
    if ch in {b"\r", b"\n"}:
        return make_key("enter")
    if ch == b"\t":
        return make_key("tab")
    if ch in {b"\x08", b"\x7f"}:
        return make_key("backspace")
    if code == 0:
        return make_key("space", CTRL)
    if 1 <= code <= 26:
        return make_key(chr(code + ord("a") - 1), CTRL)
    return None


def _read_csi(fd: int) -> KeyEvent | None:
    params: list[str] = []
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return None
        value = part.decode("latin-1")
        if "@" <= value <= "~":
            break
        params.append(value)
        if len(params) > 16:
            return None
    fields = "".join(params).split(";")
    modifiers = _decode_modifiers(fields[1]) if len(fields) > 1 else ()
    if value == "~":
        name = _CSI_TILDE_KEYS.get(fields[0])
    else:
        name = _CSI_FINAL_KEYS.get(value)
        if value == "Z":
            return make_key("tab", SHIFT)
    if name is None:
        return None
    return make_key(name, *modifiers)


def read_key(fd: int, timeout_ms: int | None = None) -> KeyEvent | None:
    """Read one key press; return ``None`` on timeout, EOF or unknown sequences."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return None

        ch = os.read(fd, 1)
        if not ch:
            return None

    if ch != b"\x1b":
        control = _decode_control_byte(ch)
        if control is not None:
            return control
        data = ch
        for _ in range(_utf8_length(ch[0]) - 1):
            more = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if more is None:
                break
            data += more
        text = data.decode("utf-8", errors="replace")[:1]
        return make_key("space") if text == " " else make_key(text)

    # Escape, alt-prefixed keys, and CSI/SS3 sequences.
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return make_key("esc")
    if seq == b"[":
        return _read_csi(fd)
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            return make_key("O", ALT)
        name = _CSI_FINAL_KEYS.get(final.decode("latin-1"))
        return make_key(name) if name is not None else None
    if seq == b"\x1b":
        _PENDING_BYTES.append(seq)
        return make_key("esc")
    control = _decode_control_byte(seq)
    if control is not None:
        return KeyEvent(control.key, control.modifiers | {ALT})
    text = seq.decode("utf-8", errors="replace")
    if not text.isprintable():
        _PENDING_BYTES.append(seq)
        return make_key("esc")
    return make_key("space", ALT) if text == " " else make_key(text, ALT)
