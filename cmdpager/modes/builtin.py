"""Modes shipped with cmdpager."""

from __future__ import annotations

import os
import re
from pathlib import Path

from ..annotation import Context
from .annotators import RegexAnnotator, combine_installers, open_pager_binding
from .registry import Mode

COMMIT_RE = re.compile(r"^(?:commit\s+|[*|\\/ ]*)([0-9a-f]{7,40})\b")
STATUS_PATH_RE = re.compile(
    r"^\s*(?:[MADRCU?!]{1,2}\s+|(?:modified|new file|deleted|renamed|typechange|both modified):\s+)"
    r"(?:\S+\s+->\s+)?(\S.*?)\s*$"
)
PATH_TOKEN_RE = re.compile(r"(?<![\w/.~-])(~?[\w.-]*/?[\w./-]*\w)(?=[:\s]|$)")
URL_RE = re.compile(r"https?://[^\s<>\"'`]+[^\s<>\"'`.,;:)\]]")


def _path_exists(value: str) -> bool:
    if len(value) < 2 and value != "~":
        return False
    try:
        return Path(os.path.expanduser(value)).exists()
    except (OSError, ValueError):
        return False


def _git_log_annotators(_ctx: Context) -> list:
    return [RegexAnnotator("sha", COMMIT_RE, group=1)]


def _git_status_annotators(_ctx: Context) -> list:
    return [RegexAnnotator("path", STATUS_PATH_RE, group=1)]


def _files_annotators(_ctx: Context) -> list:
    return [RegexAnnotator("path", PATH_TOKEN_RE, group=1, predicate=_path_exists)]


def _url_annotators(_ctx: Context) -> list:
    return [RegexAnnotator("url", URL_RE)]


def builtin_modes() -> list[Mode]:
    """Return fresh built-in mode objects."""
    return [
        Mode(
            name="git-log",
            description="commit ids; enter shows the commit",
            add_event_listeners=lambda _ctx: open_pager_binding("enter", ["sha"], "git-log,files", "git show {sha}"),
            init_annotators=_git_log_annotators,
        ),
        Mode(
            name="git-status",
            description="changed paths; enter shows the diff",
            add_event_listeners=lambda _ctx: combine_installers(
                [
                    open_pager_binding("enter", ["path"], "", "git diff -- {path}"),
                    open_pager_binding("d", ["path"], "", "git diff --cached -- {path}"),
                ]
            ),
            init_annotators=_git_status_annotators,
        ),
        Mode(
            name="files",
            description="existing filesystem paths; enter prints the file",
            add_event_listeners=lambda _ctx: open_pager_binding("enter", ["path"], "files", "cat -- {path}"),
            init_annotators=_files_annotators,
        ),
        Mode(
            name="urls",
            description="http(s) URLs; enter fetches the URL",
            add_event_listeners=lambda _ctx: open_pager_binding("enter", ["url"], "urls", "curl -sL -- {url}"),
            init_annotators=_url_annotators,
        ),
    ]
