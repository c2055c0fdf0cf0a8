"""Pager state machine, key dispatch, and render coordination."""

from .navigation import (
    clamp_cursor,
    clamp_scroll,
    cursor_following_scroll,
    max_scroll_offset,
    scroll_following_cursor,
)
from .pager import Pager

__all__ = [
    "Pager",
    "clamp_cursor",
    "clamp_scroll",
    "cursor_following_scroll",
    "max_scroll_offset",
    "scroll_following_cursor",
]
