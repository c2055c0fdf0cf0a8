"""Shell command wrapper with whole-process-tree teardown.

The command runs through the user's shell so pipelines and globbing work. Its
stdout and stderr share one pipe, exposed as a single binary stream. Closing
the wrapper terminates every process the shell spawned, not only the shell.
"""

from __future__ import annotations

import enum
import logging
import os
import signal
import subprocess
import threading
from typing import IO

from .errors import ShellCommandError

logger = logging.getLogger(__name__)

KILL_GRACE_SECONDS = 2.0


def resolve_shell(configured: str | None = None) -> tuple[str, str]:
    """Return ``(shell, execute_flag)`` for running a command string."""
    if configured:
        return configured, "/c" if os.name == "nt" and configured.lower().endswith("cmd.exe") else "-c"
    if os.name == "nt":
        return os.environ.get("COMSPEC", "cmd.exe"), "/c"
    return os.environ.get("SHELL") or "/bin/sh", "-c"


class ProcessTreeKiller:
    """Platform capability for spawning a process as the root of a killable tree."""

    def popen_kwargs(self) -> dict[str, object]:
        """Extra ``subprocess.Popen`` arguments needed to group descendants."""
        return {}

    def kill_tree(self, proc: subprocess.Popen[bytes]) -> None:
        """Request termination of ``proc`` and all of its descendants."""
        raise NotImplementedError


class PosixProcessGroupKiller(ProcessTreeKiller):
    """Signal the whole process group the shell leads.

    The shell starts in a new session, so its pid is also the group id and
    every forked descendant inherits it. ``SIGTERM`` goes out first; a daemon
    reaper escalates to ``SIGKILL`` if the leader has not exited after the
    grace period, and reaps the leader either way.
    """

    def __init__(self, grace_seconds: float = KILL_GRACE_SECONDS) -> None:
        self.grace_seconds = grace_seconds

    def popen_kwargs(self) -> dict[str, object]:
        return {"start_new_session": True}

    def _signal_group(self, pgid: int, sig: int) -> None:
        try:
            os.killpg(pgid, sig)
        except ProcessLookupError:
            pass
        except OSError as exc:
            logger.debug("killpg(%s, %s) failed: %s", pgid, sig, exc)

    def _reap(self, proc: subprocess.Popen[bytes]) -> None:
        try:
            proc.wait(timeout=self.grace_seconds)
        except subprocess.TimeoutExpired:
            logger.debug("pid %s ignored SIGTERM; sending SIGKILL", proc.pid)
            self._signal_group(proc.pid, signal.SIGKILL)
            try:
                proc.wait(timeout=self.grace_seconds)
            except subprocess.TimeoutExpired:
                logger.debug("pid %s still alive after SIGKILL", proc.pid)
            return
        # The leader is gone but descendants in its group may linger.
        self._signal_group(proc.pid, signal.SIGKILL)

    def kill_tree(self, proc: subprocess.Popen[bytes]) -> None:
        self._signal_group(proc.pid, signal.SIGTERM)
        reaper = threading.Thread(
            target=self._reap,
            args=(proc,),
            name=f"cmdpager-reaper-{proc.pid}",
            daemon=True,
        )
        reaper.start()


class WindowsTreeKiller(ProcessTreeKiller):
    """Kill the tree rooted at the shell with ``taskkill /T``."""

    def popen_kwargs(self) -> dict[str, object]:
        return {"creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)}

    def kill_tree(self, proc: subprocess.Popen[bytes]) -> None:
        try:
            subprocess.Popen(
                ["taskkill", "/T", "/F", "/PID", str(proc.pid)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.debug("taskkill for pid %s failed: %s", proc.pid, exc)


def default_tree_killer() -> ProcessTreeKiller:
    """Return the tree killer for the running platform."""
    if os.name == "nt":
        return WindowsTreeKiller()
    return PosixProcessGroupKiller()


class CommandState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    CLOSED = "closed"


class ShellCommand:
    """One shell invocation: merged output stream plus an owned process tree.

    Instances are single-use. Reloading a pager builds a new instance rather
    than restarting this one.
    """

    def __init__(
        self,
        command_line: str,
        *,
        shell: str | None = None,
        killer: ProcessTreeKiller | None = None,
        cwd: str | None = None,
    ) -> None:
        self.command_line = command_line
        self.shell, self.shell_flag = resolve_shell(shell)
        self.killer = killer if killer is not None else default_tree_killer()
        self.cwd = cwd
        self.state = CommandState.CREATED
        self._proc: subprocess.Popen[bytes] | None = None
        self._close_lock = threading.Lock()

    @classmethod
    def start(
        cls,
        command_line: str,
        *,
        shell: str | None = None,
        killer: ProcessTreeKiller | None = None,
        cwd: str | None = None,
    ) -> ShellCommand:
        """Create and launch a command; raise ``ShellCommandError`` on failure."""
        command = cls(command_line, shell=shell, killer=killer, cwd=cwd)
        command.run()
        return command

    def run(self) -> None:
        if self.state is not CommandState.CREATED:
            raise ShellCommandError(f"command already {self.state.value}: {self.command_line!r}")
        argv = [self.shell, self.shell_flag, self.command_line]
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
                **self.killer.popen_kwargs(),
            )
        except (OSError, ValueError) as exc:
            raise ShellCommandError(f"failed to start {self.shell!r} for {self.command_line!r}: {exc}") from exc
        if proc.stdout is None:
            self.killer.kill_tree(proc)
            raise ShellCommandError(f"no output stream for {self.command_line!r}")
        self._proc = proc
        self.state = CommandState.RUNNING
        logger.debug("started pid %s: %s", proc.pid, self.command_line)

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def stream(self) -> IO[bytes]:
        """Combined stdout/stderr byte stream of the running command."""
        if self._proc is None or self._proc.stdout is None:
            raise ShellCommandError("command has not been started")
        return self._proc.stdout

    def close(self) -> None:
        """Request termination of the whole process tree.

        Idempotent and fire-and-forget: it does not wait for exit and never
        raises. The output stream is left for its reader to drain to EOF.
        """
        with self._close_lock:
            if self.state is CommandState.CLOSED:
                return
            was_running = self.state is CommandState.RUNNING
            self.state = CommandState.CLOSED
        if not was_running or self._proc is None:
            return
        try:
            self.killer.kill_tree(self._proc)
        except Exception:
            logger.debug("kill_tree failed for pid %s", self._proc.pid, exc_info=True)
        else:
            logger.debug("closed pid %s", self._proc.pid)
