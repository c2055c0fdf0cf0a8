"""Tests for cursor/viewport arithmetic.

Covers clamps for empty, short and long buffers, and the single-step
cross-corrections used after cursor and scroll moves.
"""

from __future__ import annotations

import unittest

from cmdpager.pager import navigation


class ClampTests(unittest.TestCase):
    def test_clamp_cursor_matches_bounds_for_all_sizes(self) -> None:
        for total in range(0, 6):
            for target in range(-3, 9):
                expected = 0 if total == 0 else max(0, min(target, total - 1))
                self.assertEqual(navigation.clamp_cursor(target, total), expected, (target, total))

    def test_clamp_scroll_matches_bounds_for_all_sizes(self) -> None:
        height = 4
        for total in range(0, 10):
            for target in range(-3, 12):
                expected = max(0, min(target, max(0, total - height)))
                self.assertEqual(navigation.clamp_scroll(target, total, height), expected, (target, total))

    def test_short_buffer_always_scrolls_to_top(self) -> None:
        self.assertEqual(navigation.clamp_scroll(5, 3, 10), 0)
        self.assertEqual(navigation.clamp_scroll(5, 10, 10), 0)

    def test_zero_height_viewport_is_treated_as_one_row(self) -> None:
        self.assertEqual(navigation.max_scroll_offset(5, 0), 4)
        self.assertEqual(navigation.scroll_following_cursor(3, 0, 0, 5), 3)


class CrossCorrectionTests(unittest.TestCase):
    def test_cursor_below_viewport_lands_on_last_visible_row(self) -> None:
        self.assertEqual(navigation.scroll_following_cursor(25, 10, 10, 100), 16)

    def test_cursor_above_viewport_becomes_first_row(self) -> None:
        self.assertEqual(navigation.scroll_following_cursor(4, 10, 10, 100), 4)

    def test_visible_cursor_keeps_scroll(self) -> None:
        self.assertEqual(navigation.scroll_following_cursor(15, 10, 10, 100), 10)

    def test_scroll_past_cursor_snaps_cursor_to_top_edge(self) -> None:
        self.assertEqual(navigation.cursor_following_scroll(10, 0, 10, 100), 10)

    def test_scroll_above_cursor_snaps_cursor_to_bottom_edge(self) -> None:
        self.assertEqual(navigation.cursor_following_scroll(0, 30, 10, 100), 9)

    def test_cursor_snap_respects_short_buffer(self) -> None:
        self.assertEqual(navigation.cursor_following_scroll(0, 30, 10, 4), 3)

    def test_empty_buffer_keeps_cursor_at_zero(self) -> None:
        self.assertEqual(navigation.cursor_following_scroll(0, 7, 10, 0), 0)


if __name__ == "__main__":
    unittest.main()
