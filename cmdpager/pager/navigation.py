"""Cursor and viewport arithmetic.

Pure functions only. The pager applies a clamp and then exactly one
cross-correction per mutation, so cursor and scroll updates never call back
into each other.
"""

from __future__ import annotations


def effective_height(content_height: int) -> int:
    """Viewport height used for navigation; never below one row."""
    return max(1, content_height)


def max_scroll_offset(total_lines: int, content_height: int) -> int:
    """Return the largest valid first-visible line."""
    return max(0, total_lines - effective_height(content_height))


def clamp_cursor(target: int, total_lines: int) -> int:
    """Clamp a requested cursor line to ``[0, total_lines - 1]``."""
    if total_lines <= 0:
        return 0
    return max(0, min(target, total_lines - 1))


def clamp_scroll(target: int, total_lines: int, content_height: int) -> int:
    """Clamp a requested scroll offset; short buffers always scroll to 0."""
    return max(0, min(target, max_scroll_offset(total_lines, content_height)))


def scroll_following_cursor(cursor: int, scroll: int, content_height: int, total_lines: int) -> int:
    """Return the scroll offset that keeps ``cursor`` visible.

    A cursor above the viewport becomes the first row; below it, the last row.
    """
    height = effective_height(content_height)
    if cursor < scroll:
        scroll = cursor
    elif cursor > scroll + height - 1:
        scroll = cursor - (height - 1)
    return clamp_scroll(scroll, total_lines, height)


def cursor_following_scroll(scroll: int, cursor: int, content_height: int, total_lines: int) -> int:
    """Return the cursor line snapped to the nearer edge of the viewport."""
    height = effective_height(content_height)
    if cursor < scroll:
        cursor = scroll
    elif cursor > scroll + height - 1:
        cursor = scroll + height - 1
    return clamp_cursor(cursor, total_lines)
