"""Runtime wiring: terminal control, config, logging and the pager stack."""

from .app import PagerStack, print_annotated
from .terminal import TerminalController

__all__ = ["PagerStack", "TerminalController", "print_annotated"]
