"""Pager over the live output of one shell command.

The pager owns cursor/scroll state and layout, keeps exactly one
(command, buffer) pair alive, and dispatches key events to plain and
annotation-aware listeners. Listener tables belong to the instance, so
several pagers can coexist with independent bindings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..annotation import Context, context_from_annotations, interpolate_context
from ..buffer import Buffer
from ..input.keys import KeyEvent, as_key_event
from ..modes.registry import Mode, ModeRegistry, default_registry
from ..process import ShellCommand
from ..screen import BOLD, RED, UNDERLINE, Box, Canvas
from . import navigation

logger = logging.getLogger(__name__)

RETIRED_JOIN_TIMEOUT_SECONDS = 0.5

EventAction = Callable[[], object]
AnnotationAction = Callable[[Context], object]
PushPager = Callable[[str, str, Context], None]


class Pager:
    """Interactive view over a growing, annotated command output buffer."""

    def __init__(
        self,
        mode_names: str,
        cmd: str,
        ctx: Context | None = None,
        *,
        registry: ModeRegistry | None = None,
        spawn: Callable[[str], ShellCommand] | None = None,
        push_pager: PushPager | None = None,
    ) -> None:
        self.mode_names = mode_names
        self.cmd = cmd
        self.ctx: Context = dict(ctx or {})
        self._spawn = spawn if spawn is not None else ShellCommand.start
        self._push_pager = push_pager
        self.registry = registry if registry is not None else default_registry()

        self.event_listeners: dict[KeyEvent, EventAction] = {}
        self.annotation_event_listeners: dict[KeyEvent, dict[str, AnnotationAction]] = {}

        self.cursor_line = 0
        self.scroll_offset = 0
        self.box = Box(0, 0, 0, 0)
        self.header_box = Box(0, 0, 0, 0)
        self.content_box = Box(0, 0, 0, 0)

        self.command: ShellCommand | None = None
        self.buffer: Buffer | None = None
        self._retired: list[Buffer] = []

        self.add_default_listeners()
        self.modes: list[Mode] = self.registry.resolve(mode_names)
        for mode in self.modes:
            mode.add_event_listeners(self.ctx)(self)

        self.run_command()

    # Listener registration and dispatch.

    def add_event_listener(self, key: KeyEvent | str, action: EventAction) -> None:
        """Bind ``action`` to ``key``, replacing any previous plain binding."""
        self.event_listeners[as_key_event(key)] = action

    def add_annotation_event_listener(
        self,
        key: KeyEvent | str,
        annotation_classes: Iterable[str],
        action: AnnotationAction,
    ) -> None:
        """Bind ``action`` to ``key`` for lines carrying any of ``annotation_classes``."""
        handlers = self.annotation_event_listeners.setdefault(as_key_event(key), {})
        for klass in annotation_classes:
            handlers[klass] = action

    def handle_event(self, key: KeyEvent | str) -> bool:
        """Dispatch one key event; return whether a listener fired.

        An annotation listener for the first matching class on the cursor line
        wins over a plain listener. At most one action runs per event. The
        buffer lock is held for the whole dispatch, so actions must not block.
        """
        event = as_key_event(key)
        buffer = self._live_buffer()
        try:
            with buffer.lock:
                return self._dispatch(event, buffer)
        finally:
            self.reap_retired()

    def _dispatch(self, event: KeyEvent, buffer: Buffer) -> bool:
        annotations = buffer.annotations_for_line(self.cursor_line)
        ctx = context_from_annotations(annotations)

        handlers = self.annotation_event_listeners.get(event)
        if handlers and annotations:
            for annotation in annotations:
                action = handlers.get(annotation.klass)
                if action is not None:
                    action(ctx)
                    return True

        action = self.event_listeners.get(event)
        if action is not None:
            action()
            return True
        return False

    # Command lifecycle.

    def interpolated_cmd(self) -> str:
        return interpolate_context(self.cmd, self.ctx)

    def run_command(self) -> None:
        """Start the command and a fresh buffer with this pager's annotators.

        Raises ``ShellCommandError`` when the command cannot be started; no
        partial pair is kept in that case.
        """
        command = self._spawn(self.interpolated_cmd())
        try:
            buffer = Buffer(command.stream)
        except Exception:
            command.close()
            raise
        self.command = command
        self.buffer = buffer
        rank = 0
        for mode in self.modes:
            for annotator in mode.init_annotators(self.ctx):
                buffer.annotate_with(annotator, rank=rank)
                rank += 1
        logger.debug("pager running %r with %d annotator(s)", self.interpolated_cmd(), rank)

    def _retire_current(self) -> None:
        if self.command is not None:
            self.command.close()
        if self.buffer is not None:
            self.buffer.close()
            self._retired.append(self.buffer)
        self.command = None
        self.buffer = None

    def reap_retired(self, timeout: float = RETIRED_JOIN_TIMEOUT_SECONDS) -> None:
        """Wait for annotators of retired buffers, keeping any that outlive ``timeout``."""
        if not self._retired:
            return
        still_running: list[Buffer] = []
        for buffer in self._retired:
            if not buffer.join(timeout):
                logger.warning("annotators of a retired buffer did not stop within %.1fs", timeout)
                still_running.append(buffer)
        self._retired = still_running

    def stop(self) -> None:
        """Terminate the current command and retire its buffer."""
        self._retire_current()
        self.reap_retired()

    def destroy(self) -> None:
        self.stop()

    def reload(self) -> None:
        """Replace the (command, buffer) pair with a fresh invocation.

        Listener registrations are kept. The viewport returns to the top
        because the new buffer starts empty.
        """
        self._retire_current()
        self.cursor_line = 0
        self.scroll_offset = 0
        self.run_command()

    def open_pager(self, mode_names: str, cmd: str, ctx: Context) -> None:
        """Ask the owning application to push a child pager."""
        if self._push_pager is None:
            logger.info("no pager stack to open %r", cmd)
            return
        self._push_pager(mode_names, cmd, ctx)

    def _live_buffer(self) -> Buffer:
        if self.buffer is None:
            raise RuntimeError("pager has been stopped")
        return self.buffer

    def total_lines(self) -> int:
        return self.buffer.num_lines() if self.buffer is not None else 0

    # Layout and rendering.

    def set_box(self, box: Box) -> None:
        self.box = box
        self.layout()

    def get_box(self) -> Box:
        return self.box

    def layout(self) -> None:
        self.header_box = self.box.sub_box(0, 0, self.box.width, 1)
        self.content_box = self.box.sub_box(0, 1, self.box.width, self.box.height - 1)
        buffer = self.buffer
        if buffer is None:
            self._clamp_viewport()
            return
        with buffer.lock:
            self._clamp_viewport()

    def _clamp_viewport(self) -> None:
        total = self.total_lines()
        height = self.content_height
        self.scroll_offset = navigation.clamp_scroll(self.scroll_offset, total, height)
        self.scroll_offset = navigation.scroll_following_cursor(self.cursor_line, self.scroll_offset, height, total)

    @property
    def content_height(self) -> int:
        return self.content_box.height

    def frame_token(self) -> tuple[object, ...]:
        """Values whose change means the next frame differs from the last one."""
        buffer = self.buffer
        version = buffer.version if buffer is not None else -1
        return (id(buffer), version, self.cursor_line, self.scroll_offset, self.box)

    def render(self, canvas: Canvas) -> None:
        buffer = self._live_buffer()
        with buffer.lock:
            self._draw_header(canvas, buffer)
            self._draw_content(canvas, buffer)
        self.reap_retired(timeout=0)

    def _draw_header(self, canvas: Canvas, buffer: Buffer) -> None:
        header = self.header_box
        header.draw_text(canvas, 1, 0, self.interpolated_cmd(), UNDERLINE)
        info = f" {buffer.num_annotations()} {self.cursor_line + 1}/{buffer.num_lines()} "
        header.draw_text(canvas, header.width - len(info), 0, info, BOLD)

    def _draw_content(self, canvas: Canvas, buffer: Buffer) -> None:
        content = self.content_box
        content.draw_text(canvas, 1, self.cursor_line - self.scroll_offset, ">", RED)
        for y, line in enumerate(buffer.lines(self.scroll_offset, content.height)):
            content.draw_styled_line(canvas, 3, y, line)

    # Cursor and scroll state machine.

    def move_cursor_to(self, line: int) -> None:
        total = self.total_lines()
        self.cursor_line = navigation.clamp_cursor(line, total)
        self.scroll_offset = navigation.scroll_following_cursor(
            self.cursor_line, self.scroll_offset, self.content_height, total
        )

    def move_cursor_by(self, delta: int) -> None:
        self.move_cursor_to(self.cursor_line + delta)

    def scroll_to(self, line: int) -> None:
        total = self.total_lines()
        self.scroll_offset = navigation.clamp_scroll(line, total, self.content_height)
        self.cursor_line = navigation.cursor_following_scroll(
            self.scroll_offset, self.cursor_line, self.content_height, total
        )

    def scroll_by(self, delta: int) -> None:
        self.scroll_to(self.scroll_offset + delta)

    def cursor_up(self) -> None:
        self.move_cursor_by(-1)

    def cursor_down(self) -> None:
        self.move_cursor_by(1)

    def cursor_first_line(self) -> None:
        self.move_cursor_to(0)

    def cursor_last_line(self) -> None:
        # Requests one past the end; the clamp lands on the last line.
        self.move_cursor_to(self.total_lines())

    def scroll_up(self) -> None:
        self.scroll_by(-1)

    def scroll_down(self) -> None:
        self.scroll_by(1)

    def page_up(self) -> None:
        self.scroll_by(-navigation.effective_height(self.content_height))

    def page_down(self) -> None:
        self.scroll_by(navigation.effective_height(self.content_height))

    def add_default_listeners(self) -> None:
        self.add_event_listener("C-r", self.reload)
        self.add_event_listener("j", self.cursor_down)
        self.add_event_listener("k", self.cursor_up)
        self.add_event_listener("down", self.cursor_down)
        self.add_event_listener("up", self.cursor_up)
        self.add_event_listener("C-e", self.scroll_down)
        self.add_event_listener("C-y", self.scroll_up)
        self.add_event_listener("pgdn", self.page_down)
        self.add_event_listener("pgup", self.page_up)
        self.add_event_listener("g", self.cursor_first_line)
        self.add_event_listener("S-g", self.cursor_last_line)
