"""Annotators and binding helpers shared by built-in and configured modes."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING

from ..ansi import strip_ansi
from ..annotation import Context

if TYPE_CHECKING:
    from ..pager.pager import Pager


class RegexAnnotator:
    """Annotate every match of ``pattern`` in a line as ``klass``.

    ``group`` selects the capture used as the value. ``predicate`` can veto a
    candidate value (for example, paths that do not exist).
    """

    def __init__(
        self,
        klass: str,
        pattern: str | re.Pattern[str],
        group: int | str = 0,
        predicate: Callable[[str], bool] | None = None,
    ) -> None:
        self.klass = klass
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.group = group
        self.predicate = predicate

    def annotate(self, line: int, text: str) -> Iterator[tuple[str, str]]:
        for match in self.pattern.finditer(strip_ansi(text)):
            value = match.group(self.group)
            if not value:
                continue
            if self.predicate is not None and not self.predicate(value):
                continue
            yield self.klass, value

    def __repr__(self) -> str:
        return f"RegexAnnotator({self.klass!r}, {self.pattern.pattern!r})"


def open_pager_binding(
    key: str,
    annotation_classes: Iterable[str],
    mode_names: str,
    command_template: str,
) -> Callable[[Pager], None]:
    """Return an installer binding ``key`` to open a child pager.

    The child command is interpolated from the parent's context overlaid with
    the annotations of the cursor line.
    """
    classes = list(annotation_classes)

    def install(pager: Pager) -> None:
        def open_child(ctx: Context) -> None:
            merged = dict(pager.ctx)
            merged.update(ctx)
            pager.open_pager(mode_names, command_template, merged)

        pager.add_annotation_event_listener(key, classes, open_child)

    return install


def combine_installers(installers: Iterable[Callable[[Pager], None]]) -> Callable[[Pager], None]:
    items = list(installers)

    def install(pager: Pager) -> None:
        for installer in items:
            installer(pager)

    return install
