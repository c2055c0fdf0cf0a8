"""Mode registry, built-in modes and annotators."""

from .annotators import RegexAnnotator, combine_installers, open_pager_binding
from .builtin import builtin_modes
from .configured import mode_from_definition, modes_from_definitions
from .registry import Mode, ModeRegistry, default_registry

__all__ = [
    "Mode",
    "ModeRegistry",
    "RegexAnnotator",
    "builtin_modes",
    "combine_installers",
    "default_registry",
    "mode_from_definition",
    "modes_from_definitions",
    "open_pager_binding",
]
