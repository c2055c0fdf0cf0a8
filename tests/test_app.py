"""Tests for the pager stack, the input/redraw loop and non-interactive output.

Covers push/pop key routing, child pagers opened from annotation bindings,
recovery from failed reloads, and the ``--nopager`` print path.
"""

from __future__ import annotations

import io
import os
import unittest
from unittest import mock

from cmdpager.errors import ShellCommandError
from cmdpager.input import parse_key
from cmdpager.modes import Mode, ModeRegistry, RegexAnnotator, open_pager_binding
from cmdpager.pager import Pager
from cmdpager.runtime import app
from cmdpager.runtime.app import PagerStack, print_annotated


class _FakeCommand:
    def __init__(self, cmd: str, data: bytes) -> None:
        self.cmd = cmd
        self.stream = io.BytesIO(data)
        self.closed = False

    def close(self) -> None:
        self.closed = True


class _Spawner:
    def __init__(self, outputs: dict[str, bytes] | None = None) -> None:
        self.outputs = outputs or {}
        self.commands: list[_FakeCommand] = []
        self.fail = False

    def __call__(self, cmd: str) -> _FakeCommand:
        if self.fail:
            raise ShellCommandError(f"cannot start {cmd!r}")
        command = _FakeCommand(cmd, self.outputs.get(cmd, b"line\n"))
        self.commands.append(command)
        return command


def _log_registry() -> ModeRegistry:
    return ModeRegistry().register(
        Mode(
            name="log",
            add_event_listeners=lambda _ctx: open_pager_binding("enter", ["sha"], "", "show {sha}"),
            init_annotators=lambda _ctx: [RegexAnnotator("sha", r"^commit (\w+)", group=1)],
        )
    )


class PagerStackTests(unittest.TestCase):
    def test_push_makes_new_pager_top(self) -> None:
        stack = PagerStack(registry=ModeRegistry(), spawn=_Spawner())
        self.addCleanup(stack.close_all)

        first = stack.push("", "one", {})
        second = stack.push("", "two", {})

        self.assertIs(stack.top(), second)
        self.assertEqual(stack.pagers, [first, second])

    def test_unhandled_q_pops_and_stops_command(self) -> None:
        spawn = _Spawner()
        stack = PagerStack(registry=ModeRegistry(), spawn=spawn)
        stack.push("", "one", {})
        stack.push("", "two", {})

        stack.handle_key(parse_key("q"))

        self.assertEqual(len(stack.pagers), 1)
        self.assertTrue(spawn.commands[1].closed)
        self.assertFalse(spawn.commands[0].closed)
        stack.close_all()

    def test_q_bound_by_pager_does_not_pop(self) -> None:
        stack = PagerStack(registry=ModeRegistry(), spawn=_Spawner())
        self.addCleanup(stack.close_all)
        pager = stack.push("", "one", {})
        calls: list[str] = []
        pager.add_event_listener("q", lambda: calls.append("q"))

        stack.handle_key(parse_key("q"))

        self.assertEqual(calls, ["q"])
        self.assertEqual(len(stack.pagers), 1)

    def test_ctrl_c_closes_every_pager(self) -> None:
        spawn = _Spawner()
        stack = PagerStack(registry=ModeRegistry(), spawn=spawn)
        stack.push("", "one", {})
        stack.push("", "two", {})

        stack.handle_key(parse_key("C-c"))

        self.assertEqual(stack.pagers, [])
        self.assertTrue(all(command.closed for command in spawn.commands))

    def test_annotation_binding_pushes_child_pager(self) -> None:
        spawn = _Spawner({"log": b"commit abc123\nAuthor: x\n"})
        stack = PagerStack(registry=_log_registry(), spawn=spawn)
        self.addCleanup(stack.close_all)
        parent = stack.push("log", "log", {})
        parent.buffer.wait_idle(2.0)

        stack.handle_key(parse_key("enter"))

        self.assertEqual(len(stack.pagers), 2)
        self.assertEqual(stack.top().interpolated_cmd(), "show abc123")
        self.assertEqual(spawn.commands[-1].cmd, "show abc123")

        stack.handle_key(parse_key("q"))
        self.assertIs(stack.top(), parent)

    def test_failed_child_start_keeps_parent(self) -> None:
        spawn = _Spawner({"log": b"commit abc123\n"})
        stack = PagerStack(registry=_log_registry(), spawn=spawn)
        self.addCleanup(stack.close_all)
        parent = stack.push("log", "log", {})
        parent.buffer.wait_idle(2.0)
        spawn.fail = True

        with self.assertLogs("cmdpager.runtime.app", level="ERROR"):
            stack.handle_key(parse_key("enter"))

        self.assertEqual(stack.pagers, [parent])
        self.assertIsNotNone(parent.buffer)

    def test_failed_reload_removes_pager(self) -> None:
        spawn = _Spawner()
        stack = PagerStack(registry=ModeRegistry(), spawn=spawn)
        stack.push("", "one", {})
        stack.push("", "two", {})
        spawn.fail = True

        with self.assertLogs("cmdpager.runtime.app", level="ERROR"):
            stack.handle_key(parse_key("C-r"))

        self.assertEqual(len(stack.pagers), 1)
        self.assertEqual(stack.top().cmd, "one")
        stack.close_all()

    def test_render_sizes_top_pager_to_terminal(self) -> None:
        stack = PagerStack(registry=ModeRegistry(), spawn=_Spawner())
        self.addCleanup(stack.close_all)
        pager = stack.push("", "one", {})
        pager.buffer.wait_idle(2.0)

        frame = stack.render(30, 5)

        self.assertTrue(frame.startswith("\x1b[H"))
        self.assertIn("one", frame)
        self.assertEqual(pager.content_height, 4)

    def test_render_of_empty_stack_is_none(self) -> None:
        stack = PagerStack(registry=ModeRegistry(), spawn=_Spawner())
        self.assertIsNone(stack.render(30, 5))
        self.assertEqual(stack.frame_token(30, 5), ())


class RunLoopTests(unittest.TestCase):
    def test_loop_draws_then_exits_when_last_pager_pops(self) -> None:
        stack = PagerStack(registry=ModeRegistry(), spawn=_Spawner())
        pager = stack.push("", "one", {})
        pager.buffer.wait_idle(2.0)
        terminal = mock.MagicMock()
        keys = [None, parse_key("j"), parse_key("q")]

        with mock.patch("cmdpager.runtime.app.read_key", side_effect=keys), mock.patch(
            "cmdpager.runtime.app.shutil.get_terminal_size", return_value=os.terminal_size((40, 10))
        ):
            stack.run(terminal, stdin_fd=0, refresh_interval_ms=10)

        self.assertEqual(stack.pagers, [])
        terminal.raw_mode.assert_called_once()
        self.assertGreaterEqual(terminal.write_frame.call_count, 1)

    def test_loop_closes_pagers_when_input_fails(self) -> None:
        spawn = _Spawner()
        stack = PagerStack(registry=ModeRegistry(), spawn=spawn)
        stack.push("", "one", {})
        terminal = mock.MagicMock()

        with mock.patch("cmdpager.runtime.app.read_key", side_effect=OSError("tty gone")), mock.patch(
            "cmdpager.runtime.app.shutil.get_terminal_size", return_value=os.terminal_size((40, 10))
        ):
            with self.assertRaises(OSError):
                stack.run(terminal, stdin_fd=0, refresh_interval_ms=10)

        self.assertEqual(stack.pagers, [])
        self.assertTrue(spawn.commands[0].closed)


class PrintAnnotatedTests(unittest.TestCase):
    def test_prints_lines_with_annotation_suffix(self) -> None:
        spawn = _Spawner({"log": b"commit abc123\nAuthor: x\n"})
        pager = Pager("log", "log", {}, registry=_log_registry(), spawn=spawn)
        self.addCleanup(pager.destroy)
        out = io.StringIO()

        self.assertTrue(print_annotated(pager, out, timeout=2.0))

        self.assertEqual(out.getvalue(), "commit abc123\tsha=abc123\nAuthor: x\n")

    @unittest.skipIf(os.name == "nt", "POSIX shell semantics")
    def test_run_pager_without_tty_prints_real_command_output(self) -> None:
        out = io.StringIO()
        with mock.patch("cmdpager.runtime.app.load_shell", return_value="/bin/sh"), mock.patch(
            "cmdpager.runtime.app.default_registry", return_value=ModeRegistry()
        ), mock.patch("cmdpager.runtime.app.sys.stdout", out):
            app.run_pager("", "printf 'a\\nb\\n'", {}, nopager=True)

        self.assertEqual(out.getvalue(), "a\nb\n")


if __name__ == "__main__":
    unittest.main()
