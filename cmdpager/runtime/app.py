"""Application: a stack of pagers driven by the input/redraw loop.

Annotation bindings open child pagers on top of the current one; ``q`` closes
the top pager and the application ends when the stack is empty.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable
from functools import partial
from typing import TextIO

from ..annotation import Context
from ..errors import ShellCommandError
from ..input.keys import KeyEvent, parse_key
from ..input.reader import read_key
from ..modes.registry import ModeRegistry, default_registry
from ..pager.pager import Pager
from ..process import ShellCommand
from ..screen import Box, Canvas
from .config import load_refresh_interval_ms, load_shell
from .terminal import TerminalController

logger = logging.getLogger(__name__)

POP_KEY = parse_key("q")
QUIT_KEY = parse_key("C-c")


class PagerStack:
    """Owns every live pager; only the top one is drawn and receives keys."""

    def __init__(
        self,
        *,
        registry: ModeRegistry,
        spawn: Callable[[str], ShellCommand] | None = None,
    ) -> None:
        self.registry = registry
        self.spawn = spawn
        self.pagers: list[Pager] = []

    def push(self, mode_names: str, cmd: str, ctx: Context) -> Pager:
        """Create a pager for ``cmd`` and make it the visible one."""
        pager = Pager(
            mode_names,
            cmd,
            ctx,
            registry=self.registry,
            spawn=self.spawn,
            push_pager=self.push,
        )
        self.pagers.append(pager)
        logger.debug("pushed pager %d: %s", len(self.pagers), pager.interpolated_cmd())
        return pager

    def top(self) -> Pager | None:
        return self.pagers[-1] if self.pagers else None

    def pop(self) -> None:
        if not self.pagers:
            return
        pager = self.pagers.pop()
        pager.destroy()

    def close_all(self) -> None:
        while self.pagers:
            self.pop()

    def handle_key(self, key: KeyEvent) -> None:
        """Route one key: pager listeners first, then stack navigation."""
        pager = self.top()
        if pager is None:
            return
        if key == QUIT_KEY:
            self.close_all()
            return
        try:
            handled = pager.handle_event(key)
        except ShellCommandError as exc:
            logger.error("%s", exc)
            if pager.buffer is None:
                # A failed reload leaves no live buffer to show.
                self.pagers.remove(pager)
                pager.stop()
            return
        if not handled and key == POP_KEY:
            self.pop()

    def _fit_top(self, columns: int, lines: int) -> Pager | None:
        pager = self.top()
        if pager is None:
            return None
        box = Box(0, 0, columns, lines)
        if pager.get_box() != box:
            pager.set_box(box)
        return pager

    def render(self, columns: int, lines: int) -> str | None:
        pager = self._fit_top(columns, lines)
        if pager is None:
            return None
        canvas = Canvas(columns, lines)
        pager.render(canvas)
        return canvas.to_ansi()

    def frame_token(self, columns: int, lines: int) -> tuple[object, ...]:
        pager = self.top()
        if pager is None:
            return ()
        return (id(pager), columns, lines, pager.frame_token())

    def run(self, terminal: TerminalController, stdin_fd: int, refresh_interval_ms: int) -> None:
        """Run the interactive loop until every pager has been closed."""
        last_token: tuple[object, ...] | None = None
        try:
            with terminal.raw_mode():
                while self.pagers:
                    term = shutil.get_terminal_size((80, 24))
                    self._fit_top(term.columns, term.lines)
                    token = self.frame_token(term.columns, term.lines)
                    if token != last_token:
                        frame = self.render(term.columns, term.lines)
                        if frame is not None:
                            terminal.write_frame(frame)
                        last_token = token

                    key = read_key(stdin_fd, timeout_ms=refresh_interval_ms)
                    if key is None:
                        continue
                    self.handle_key(key)
        finally:
            self.close_all()


def print_annotated(pager: Pager, out: TextIO, timeout: float | None = None) -> bool:
    """Wait for ``pager``'s command to finish and print lines with annotations.

    Each line is printed as-is; annotated lines get a tab-separated
    ``class=value`` suffix. Returns whether the command finished in time.
    """
    buffer = pager.buffer
    if buffer is None:
        return False
    finished = buffer.wait_idle(timeout)
    with buffer.lock:
        for index in range(buffer.num_lines()):
            facts = "\t".join(f"{a.klass}={a.value}" for a in buffer.annotations_for_line(index))
            text = buffer.line(index)
            out.write(f"{text}\t{facts}\n" if facts else f"{text}\n")
    return finished


def run_pager(mode_names: str, cmd: str, ctx: Context, nopager: bool) -> None:
    """Build the registry and shell spawner, then page ``cmd`` or print it."""
    registry = default_registry()
    spawn = partial(ShellCommand.start, shell=load_shell())

    if nopager or not os.isatty(sys.stdin.fileno()) or not os.isatty(sys.stdout.fileno()):
        pager = Pager(mode_names, cmd, ctx, registry=registry, spawn=spawn)
        try:
            print_annotated(pager, sys.stdout)
        finally:
            pager.destroy()
        return

    stack = PagerStack(registry=registry, spawn=spawn)
    stack.push(mode_names, cmd, ctx)
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    stack.run(terminal, sys.stdin.fileno(), load_refresh_interval_ms())
