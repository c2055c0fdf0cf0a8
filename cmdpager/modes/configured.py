"""Modes declared in the user config file.

Example::

    {
      "modes": {
        "pytest": {
          "description": "failing test locations",
          "annotators": [{"class": "path", "pattern": "^(\\\\S+\\\\.py):\\\\d+", "group": 1}],
          "bindings": [{"key": "enter", "classes": ["path"], "command": "cat -- {path}", "modes": "files"}]
        }
      }
    }

Definitions are validated loosely: malformed annotators or bindings are
skipped with a warning so one typo does not disable the whole file.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from ..annotation import Context
from ..errors import KeyParseError
from ..input.keys import parse_key
from .annotators import RegexAnnotator, combine_installers, open_pager_binding
from .registry import ListenerInstaller, Mode

logger = logging.getLogger(__name__)


def _parse_annotator(mode_name: str, raw: object) -> tuple[str, re.Pattern[str], int | str] | None:
    if not isinstance(raw, Mapping):
        logger.warning("mode %r: annotator must be an object, got %r", mode_name, raw)
        return None
    klass = raw.get("class")
    pattern = raw.get("pattern")
    group = raw.get("group", 0)
    if not isinstance(klass, str) or not klass or not isinstance(pattern, str):
        logger.warning("mode %r: annotator needs string 'class' and 'pattern'", mode_name)
        return None
    if isinstance(group, bool) or not isinstance(group, (int, str)):
        logger.warning("mode %r: annotator group must be an int or name", mode_name)
        return None
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        logger.warning("mode %r: bad pattern %r: %s", mode_name, pattern, exc)
        return None
    if isinstance(group, int) and not 0 <= group <= compiled.groups:
        logger.warning("mode %r: pattern %r has no group %d", mode_name, pattern, group)
        return None
    if isinstance(group, str) and group not in compiled.groupindex:
        logger.warning("mode %r: pattern %r has no group %r", mode_name, pattern, group)
        return None
    return klass, compiled, group


def _parse_binding(mode_name: str, raw: object) -> ListenerInstaller | None:
    if not isinstance(raw, Mapping):
        logger.warning("mode %r: binding must be an object, got %r", mode_name, raw)
        return None
    key = raw.get("key")
    classes = raw.get("classes")
    command = raw.get("command")
    child_modes = raw.get("modes", "")
    if isinstance(classes, str):
        classes = [classes]
    if (
        not isinstance(key, str)
        or not isinstance(command, str)
        or not isinstance(child_modes, str)
        or not isinstance(classes, list)
        or not classes
        or not all(isinstance(item, str) for item in classes)
    ):
        logger.warning("mode %r: binding needs 'key', 'classes' and 'command'", mode_name)
        return None
    try:
        parse_key(key)
    except KeyParseError as exc:
        logger.warning("mode %r: %s", mode_name, exc)
        return None
    return open_pager_binding(key, classes, child_modes, command)


def mode_from_definition(name: str, definition: Mapping[str, object]) -> Mode:
    """Build a ``Mode`` from one config entry."""
    specs = [
        parsed
        for parsed in (_parse_annotator(name, raw) for raw in _as_list(definition.get("annotators")))
        if parsed is not None
    ]
    installers = [
        installer
        for installer in (_parse_binding(name, raw) for raw in _as_list(definition.get("bindings")))
        if installer is not None
    ]
    description = definition.get("description")

    def init_annotators(_ctx: Context) -> list:
        return [RegexAnnotator(klass, pattern, group=group) for klass, pattern, group in specs]

    return Mode(
        name=name,
        add_event_listeners=lambda _ctx: combine_installers(installers),
        init_annotators=init_annotators,
        description=description if isinstance(description, str) else "",
    )


def _as_list(value: object) -> list[object]:
    return list(value) if isinstance(value, list) else []


def modes_from_definitions(definitions: Mapping[str, object]) -> list[Mode]:
    """Build modes for every well-formed entry in ``definitions``."""
    modes: list[Mode] = []
    for name, definition in definitions.items():
        if not isinstance(name, str) or not name.strip() or "," in name:
            logger.warning("invalid mode name %r ignored", name)
            continue
        if not isinstance(definition, Mapping):
            logger.warning("mode %r: definition must be an object", name)
            continue
        modes.append(mode_from_definition(name.strip(), definition))
    return modes
