"""Command-line front door for cmdpager.

Parses CLI options, builds the initial context, and dispatches into the
interactive pager runtime.
"""

from __future__ import annotations

import argparse
import sys

from .annotation import parse_context_assignments
from .errors import CmdPagerError
from .modes.registry import default_registry
from .runtime.app import run_pager
from .runtime.config import load_default_modes
from .runtime.tracing import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdpager",
        description="Page the live output of a shell command with annotation-aware keybindings.",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Shell command to run, e.g. 'git log'.")
    parser.add_argument(
        "-m",
        "--mode",
        dest="modes",
        default=None,
        help="Comma-separated modes to attach (default: 'default_modes' from config).",
    )
    parser.add_argument(
        "-c",
        "--context",
        dest="context",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Initial context value used to fill '{KEY}' placeholders. Repeatable.",
    )
    parser.add_argument("--nopager", action="store_true", help="Print annotated output instead of paging.")
    parser.add_argument("--list-modes", action="store_true", help="List available modes and exit.")
    parser.add_argument("--trace-log", metavar="PATH", default=None, help="Write debug logs to PATH.")
    return parser


def _list_modes() -> str:
    registry = default_registry()
    out: list[str] = []
    for name in registry.names():
        mode = registry.get(name)
        description = mode.description if mode is not None else ""
        out.append(f"{name}\t{description}" if description else name)
    return "\n".join(out) + "\n"


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch cmdpager on a shell command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.trace_log)

    if args.list_modes:
        sys.stdout.write(_list_modes())
        return

    command = " ".join(args.command).strip()
    if not command:
        parser.error("a command is required")

    try:
        ctx = parse_context_assignments(args.context)
    except ValueError as exc:
        parser.error(str(exc))

    mode_names = args.modes if args.modes is not None else load_default_modes()
    try:
        run_pager(mode_names, command, ctx, args.nopager)
    except CmdPagerError as exc:
        raise SystemExit(f"cmdpager: {exc}") from exc


if __name__ == "__main__":
    main()
