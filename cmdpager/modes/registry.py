"""Mode objects and the registry pagers resolve mode names against."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..annotation import Context
from ..buffer import Annotator

if TYPE_CHECKING:
    from ..pager.pager import Pager

logger = logging.getLogger(__name__)

ListenerInstaller = Callable[["Pager"], None]


def _no_listeners(_ctx: Context) -> ListenerInstaller:
    return lambda _pager: None


def _no_annotators(_ctx: Context) -> list[Annotator]:
    return []


@dataclass(frozen=True)
class Mode:
    """Bundle of key bindings and annotator factories a pager can attach.

    ``init_annotators`` is called once per buffer generation so annotators may
    keep per-run state.
    """

    name: str
    add_event_listeners: Callable[[Context], ListenerInstaller] = _no_listeners
    init_annotators: Callable[[Context], list[Annotator]] = _no_annotators
    description: str = ""


@dataclass
class ModeRegistry:
    """Name -> mode table. Each application owns its own instance."""

    modes: dict[str, Mode] = field(default_factory=dict)

    def register(self, mode: Mode) -> ModeRegistry:
        """Add or replace ``mode`` and return ``self`` for fluent usage."""
        self.modes[mode.name] = mode
        return self

    def register_all(self, modes: Iterable[Mode]) -> ModeRegistry:
        for mode in modes:
            self.register(mode)
        return self

    def get(self, name: str) -> Mode | None:
        return self.modes.get(name)

    def names(self) -> list[str]:
        return sorted(self.modes)

    def resolve(self, mode_names: str) -> list[Mode]:
        """Resolve a comma-separated list in order, skipping blanks and unknown names."""
        resolved: list[Mode] = []
        for raw_name in mode_names.split(","):
            name = raw_name.strip()
            if not name:
                continue
            mode = self.modes.get(name)
            if mode is None:
                logger.warning("unknown mode %r ignored", name)
                continue
            resolved.append(mode)
        return resolved


def default_registry() -> ModeRegistry:
    """Build a registry with built-in modes plus modes from the config file."""
    from ..runtime.config import load_mode_definitions
    from .builtin import builtin_modes
    from .configured import modes_from_definitions

    registry = ModeRegistry().register_all(builtin_modes())
    registry.register_all(modes_from_definitions(load_mode_definitions()))
    return registry
