"""Predicate Coverage - Command Line Interface

Dispatches to the ``run`` and ``report`` subcommands.
"""

from __future__ import annotations

import sys

from predicate_coverage import __version__
from predicate_coverage.cli.base import SubcommandBase
from predicate_coverage.cli.commands import ReportCommand, RunCommand

SUBCOMMANDS: dict[str, type[SubcommandBase]] = {
    "run": RunCommand,
    "report": ReportCommand,
}

USAGE = f"""usage: predicate-coverage <command> [options]

Predicate line coverage tracking (v{__version__})

commands:
  run       Replay inputs through a Python target and track predicate coverage
  report    Render a line coverage snapshot as tables

Run 'predicate-coverage <command> --help' for command options.
"""


def main(argv: list[str] | None = None) -> int:
    """Execute the requested subcommand.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code

    """
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(USAGE)
        return 0 if argv else 1
    if argv[0] == "--version":
        print(f"predicate-coverage {__version__}")
        return 0

    command = SUBCOMMANDS.get(argv[0])
    if command is None:
        print(f"Unknown command: {argv[0]}\n", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1
    return command().main(argv[1:])


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
