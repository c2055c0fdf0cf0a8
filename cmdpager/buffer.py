"""Line buffer for one command invocation.

A reader thread appends decoded output lines while annotator threads scan them
and attach annotations. Every read and write goes through one re-entrant lock;
readers that combine several calls (dispatch, drawing) hold ``buffer.lock`` for
the whole sequence.
"""

from __future__ import annotations

import bisect
import logging
import threading
import time
from collections.abc import Iterable
from typing import IO, Protocol

from .annotation import Annotation

logger = logging.getLogger(__name__)


class Annotator(Protocol):
    """Producer of ``(class, value)`` facts for one line of output."""

    def annotate(self, line: int, text: str) -> Iterable[tuple[str, str]]: ...


class Buffer:
    """Growing list of output lines with a per-line annotation index.

    Per-line annotation order is stable: annotator rank first (registration
    order), then production order within that annotator.
    """

    def __init__(self, stream: IO[bytes], *, encoding: str = "utf-8") -> None:
        self.lock = threading.RLock()
        self._changed = threading.Condition(self.lock)
        self._cancel = threading.Event()
        self._encoding = encoding
        self._stream = stream
        self._lines: list[str] = []
        self._annotations: dict[int, list[tuple[tuple[int, int], Annotation]]] = {}
        self._num_annotations = 0
        self._seq = 0
        self._eof = False
        self._version = 0
        self._annotator_threads: list[threading.Thread] = []
        self._next_rank = 0
        self._reader = threading.Thread(target=self._read_loop, name="cmdpager-buffer-reader", daemon=True)
        self._reader.start()

    # Read interface. Callers hold ``self.lock`` when combining calls.

    def num_lines(self) -> int:
        return len(self._lines)

    def num_annotations(self) -> int:
        return self._num_annotations

    def line(self, index: int) -> str:
        return self._lines[index]

    def lines(self, start: int, count: int) -> list[str]:
        if count <= 0 or start < 0:
            return []
        return self._lines[start : start + count]

    def annotations_for_line(self, index: int) -> list[Annotation]:
        entries = self._annotations.get(index)
        if not entries:
            return []
        return [annotation for _key, annotation in entries]

    @property
    def version(self) -> int:
        """Counter bumped on every line or annotation change."""
        return self._version

    @property
    def eof(self) -> bool:
        return self._eof

    @property
    def cancelled(self) -> threading.Event:
        """Cancellation signal shared with annotator workers."""
        return self._cancel

    # Producers.

    def _read_loop(self) -> None:
        stream = self._stream
        try:
            for raw in iter(stream.readline, b""):
                if self._cancel.is_set():
                    break
                text = raw.decode(self._encoding, errors="replace").rstrip("\r\n")
                with self._changed:
                    self._lines.append(text)
                    self._version += 1
                    self._changed.notify_all()
        except (OSError, ValueError) as exc:
            logger.debug("buffer reader stopped: %s", exc)
        finally:
            with self._changed:
                self._eof = True
                self._version += 1
                self._changed.notify_all()
            try:
                stream.close()
            except (OSError, ValueError):
                pass

    def add_annotation(self, line: int, klass: str, value: str, *, rank: int = 0) -> Annotation:
        """Store one annotation for ``line`` in stable order."""
        annotation = Annotation(line=line, klass=klass, value=value)
        with self._changed:
            self._seq += 1
            entries = self._annotations.setdefault(line, [])
            key = (rank, self._seq)
            bisect.insort(entries, (key, annotation))
            self._num_annotations += 1
            self._version += 1
            self._changed.notify_all()
        return annotation

    def annotate_with(self, annotator: Annotator, *, rank: int | None = None) -> threading.Thread:
        """Run ``annotator`` over every current and future line in a worker thread."""
        with self.lock:
            if rank is None:
                rank = self._next_rank
            self._next_rank = max(self._next_rank, rank + 1)
        worker = threading.Thread(
            target=self._annotate_loop,
            args=(annotator, rank),
            name=f"cmdpager-annotator-{rank}",
            daemon=True,
        )
        with self.lock:
            self._annotator_threads.append(worker)
        worker.start()
        return worker

    def _annotate_loop(self, annotator: Annotator, rank: int) -> None:
        index = 0
        while True:
            with self._changed:
                while index >= len(self._lines) and not self._eof and not self._cancel.is_set():
                    self._changed.wait()
                if self._cancel.is_set():
                    return
                if index >= len(self._lines):
                    return
                text = self._lines[index]
            try:
                facts = list(annotator.annotate(index, text))
            except Exception:
                logger.exception("annotator %r failed on line %d", annotator, index)
                return
            if self._cancel.is_set():
                return
            for klass, value in facts:
                self.add_annotation(index, klass, value, rank=rank)
            index += 1

    # Lifecycle.

    def close(self) -> None:
        """Signal annotators and the reader to stop. Does not wait."""
        self._cancel.set()
        with self._changed:
            self._changed.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for annotator workers to exit; return whether all did."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.lock:
            workers = list(self._annotator_threads)
        for worker in workers:
            if worker is threading.current_thread():
                continue
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            worker.join(remaining)
        return not any(worker.is_alive() for worker in workers)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until EOF is reached and every annotator has finished."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._changed:
            while not self._eof:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._changed.wait(remaining)
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        return self.join(remaining)
