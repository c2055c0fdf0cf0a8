"""Logging setup that keeps records off the terminal the TUI draws on."""

from __future__ import annotations

import logging
import os
from pathlib import Path

TRACE_LOG_ENV = "CMDPAGER_TRACE_LOG"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(trace_log_path: str | None = None, level: int = logging.DEBUG) -> None:
    """Route ``cmdpager`` logs to a trace file, or silence them.

    ``trace_log_path`` defaults to ``$CMDPAGER_TRACE_LOG``. Writing to stderr
    would corrupt the alternate screen, so without a path a ``NullHandler``
    is installed instead.
    """
    path = trace_log_path or os.environ.get(TRACE_LOG_ENV)
    package_logger = logging.getLogger("cmdpager")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = False
    if not path:
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(logging.CRITICAL + 1)
        return

    log_path = Path(path).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(file_handler)
    package_logger.setLevel(level)
