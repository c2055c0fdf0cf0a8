"""Annotations attached to buffer lines and the context built from them.

A context maps annotation class labels to values. It seeds command templates
(``git show {sha}``) and is handed to annotation-aware key handlers.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Iterable
from dataclasses import dataclass

Context = dict[str, str]

_PLACEHOLDER_RE = re.compile(r"\{\{|\}\}|\{([A-Za-z_][A-Za-z0-9_-]*)\}")


@dataclass(frozen=True)
class Annotation:
    """A classified fact about one output line."""

    line: int
    klass: str
    value: str


def context_from_annotations(annotations: Iterable[Annotation], base: Context | None = None) -> Context:
    """Fold annotations into a context; later entries of one class win."""
    ctx: Context = dict(base) if base else {}
    for annotation in annotations:
        ctx[annotation.klass] = annotation.value
    return ctx


def interpolate_context(template: str, ctx: Context) -> str:
    """Substitute ``{name}`` placeholders with shell-quoted context values.

    Unknown names are left as written. ``{{`` and ``}}`` produce literal braces.
    """

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "{{":
            return "{"
        if token == "}}":
            return "}"
        name = match.group(1)
        if name not in ctx:
            return token
        return shlex.quote(ctx[name])

    return _PLACEHOLDER_RE.sub(replace, template)


def parse_context_assignments(assignments: Iterable[str]) -> Context:
    """Parse ``KEY=VALUE`` strings into a context.

    Raises ``ValueError`` for entries without ``=`` or with an empty key.
    """
    ctx: Context = {}
    for raw in assignments:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"invalid context assignment: {raw!r} (expected KEY=VALUE)")
        ctx[key] = value
    return ctx
