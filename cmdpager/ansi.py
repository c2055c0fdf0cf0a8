"""ANSI-aware text measurement and cell splitting.

Command output often carries color codes. These helpers turn a styled line into
screen cells while keeping the active SGR state attached to each character.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
# OSC sequences (window titles, hyperlinks) terminated by BEL or ST.
OSC_ESCAPE_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
SGR_RESET = "\x1b[0m"
TAB_STOP = 8


@dataclass(frozen=True)
class StyledCell:
    """One visible character with the SGR prefix active when it was emitted."""

    char: str
    style: str = ""
    width: int = 1


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    """Remove CSI and OSC escape sequences from ``text``."""
    if "\x1b" not in text:
        return text
    return ANSI_ESCAPE_RE.sub("", OSC_ESCAPE_RE.sub("", text))


def _is_sgr_reset(seq: str) -> bool:
    params = seq[2:-1]
    return params in {"", "0"}


def styled_cells(text: str, max_cols: int | None = None) -> list[StyledCell]:
    """Split a styled line into display cells.

    SGR sequences accumulate into the style of following characters until a
    reset. Other escape sequences are dropped. Tabs become spaces up to the next
    tab stop, and control characters render as ``?`` so they cannot move the
    terminal cursor.
    """
    text = OSC_ESCAPE_RE.sub("", text) if "\x1b" in text else text
    cells: list[StyledCell] = []
    style = ""
    col = 0
    i = 0
    n = len(text)
    while i < n:
        if max_cols is not None and col >= max_cols:
            break
        ch = text[i]
        if ch == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                seq = match.group(0)
                if seq.endswith("m"):
                    style = "" if _is_sgr_reset(seq) else style + seq
                i = match.end()
                continue
            i += 1
            continue
        w = char_display_width(ch, col)
        if ch == "\t":
            for _ in range(w):
                cells.append(StyledCell(" ", style))
            col += w
            i += 1
            continue
        if w == 0:
            i += 1
            continue
        if ch < " " or ch == "\x7f":
            ch = "?"
        cells.append(StyledCell(ch, style, w))
        col += w
        i += 1
    return cells
