"""Subcommands of the predicate-coverage CLI."""

from predicate_coverage.cli.commands.report import ReportCommand
from predicate_coverage.cli.commands.run import RunCommand

__all__ = ["ReportCommand", "RunCommand"]
