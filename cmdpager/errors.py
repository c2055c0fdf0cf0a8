"""Exception types raised across cmdpager."""

from __future__ import annotations


class CmdPagerError(Exception):
    """Base class for errors a caller is expected to report and abort on."""


class ShellCommandError(CmdPagerError):
    """The shell command could not be started."""


class KeyParseError(ValueError):
    """A key notation string could not be parsed."""
