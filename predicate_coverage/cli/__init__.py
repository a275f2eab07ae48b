"""Predicate Coverage CLI Package.

Public API:
- SubcommandBase: Base class for subcommands
- main: CLI entry point
"""

from predicate_coverage.cli.base import SubcommandBase
from predicate_coverage.cli.main import main

__all__ = ["SubcommandBase", "main"]
