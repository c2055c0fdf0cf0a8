"""Tests for context folding and command template interpolation."""

from __future__ import annotations

import unittest

from cmdpager.annotation import (
    Annotation,
    context_from_annotations,
    interpolate_context,
    parse_context_assignments,
)


class ContextTests(unittest.TestCase):
    def test_context_maps_class_to_value(self) -> None:
        ctx = context_from_annotations(
            [Annotation(3, "url", "http://x"), Annotation(3, "path", "/tmp/a")]
        )
        self.assertEqual(ctx, {"url": "http://x", "path": "/tmp/a"})

    def test_later_annotation_of_same_class_wins(self) -> None:
        ctx = context_from_annotations([Annotation(0, "path", "a"), Annotation(0, "path", "b")])
        self.assertEqual(ctx, {"path": "b"})

    def test_base_context_is_copied_and_overlaid(self) -> None:
        base = {"repo": "/src", "path": "old"}
        ctx = context_from_annotations([Annotation(0, "path", "new")], base=base)
        self.assertEqual(ctx, {"repo": "/src", "path": "new"})
        self.assertEqual(base["path"], "old")


class InterpolateTests(unittest.TestCase):
    def test_known_names_are_substituted(self) -> None:
        self.assertEqual(interpolate_context("git show {sha}", {"sha": "abc1234"}), "git show abc1234")

    def test_values_are_shell_quoted(self) -> None:
        self.assertEqual(
            interpolate_context("cat -- {path}", {"path": "my file; rm -rf ~"}),
            "cat -- 'my file; rm -rf ~'",
        )

    def test_unknown_names_are_left_as_written(self) -> None:
        self.assertEqual(interpolate_context("echo {missing} {sha}", {"sha": "1"}), "echo {missing} 1")

    def test_doubled_braces_are_literal(self) -> None:
        self.assertEqual(
            interpolate_context("awk '{{print $1}}' {path}", {"path": "f"}),
            "awk '{print $1}' f",
        )

    def test_template_without_placeholders_is_unchanged(self) -> None:
        self.assertEqual(interpolate_context("ls -la | head", {"sha": "x"}), "ls -la | head")


class ParseAssignmentsTests(unittest.TestCase):
    def test_parses_key_value_pairs(self) -> None:
        self.assertEqual(
            parse_context_assignments(["sha=abc", "query=a=b", "empty="]),
            {"sha": "abc", "query": "a=b", "empty": ""},
        )

    def test_rejects_missing_separator_or_key(self) -> None:
        for raw in ("noequals", "=value", "  =x"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    parse_context_assignments([raw])


if __name__ == "__main__":
    unittest.main()
