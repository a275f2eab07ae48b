"""Base class for CLI subcommands.

Provides common patterns for argument parsing, error handling, and dispatch.
"""

from __future__ import annotations

import argparse
import traceback
from abc import ABC, abstractmethod

from rich.console import Console
from rich.markup import escape

from predicate_coverage.core.exceptions import (
    CatalogLoadError,
    PredicateCoverageError,
    TargetLoadError,
)
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


class SubcommandBase(ABC):
    """Abstract base class for CLI subcommands.

    Example:
        class MyCommand(SubcommandBase):
            @property
            def name(self) -> str:
                return "my-cmd"

            @property
            def description(self) -> str:
                return "My custom command"

            def configure_parser(self, parser: argparse.ArgumentParser) -> None:
                parser.add_argument("--input", required=True)

            def run(self, args: argparse.Namespace) -> int:
                self.console.print(f"Processing: {args.input}")
                return 0

    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (e.g., 'run', 'report')."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description for help text."""
        ...

    @property
    def epilog(self) -> str:
        """Optional epilog with examples. Override to add examples."""
        return ""

    @abstractmethod
    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        """Add arguments to the parser.

        Args:
            parser: The argument parser to configure.

        """
        ...

    @abstractmethod
    def run(self, args: argparse.Namespace) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit code: 0 for success, 1 for failure.

        """
        ...

    def create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser with standard formatting."""
        parser = argparse.ArgumentParser(
            prog=f"predicate-coverage {self.name}",
            description=self.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self.epilog if self.epilog else None,
        )
        self.configure_parser(parser)
        return parser

    def main(self, argv: list[str] | None = None) -> int:
        """Standard entry point with error handling.

        Args:
            argv: Command-line arguments. If None, uses sys.argv[1:].

        Returns:
            Exit code: 0 for success, 1 for failure.

        """
        parser = self.create_parser()
        args = parser.parse_args(argv)
        try:
            return self.run(args)
        except TargetLoadError as e:
            logger.error("target_load_failed", error=e.message, **e.context)
            self.console.print(f"[red][-] Cannot load target: {escape(e.message)}[/red]")
            self.console.print(
                "[yellow]    Targets are written as package.module:function "
                "or path/to/file.py:function[/yellow]"
            )
            return 1
        except CatalogLoadError as e:
            logger.error("catalog_load_failed", error=e.message, **e.context)
            source = e.context.get("source")
            where = f" {escape(str(source))}" if source else ""
            self.console.print(
                f"[red][-] Invalid predicate document{where}: {escape(e.message)}[/red]"
            )
            return 1
        except PredicateCoverageError as e:
            logger.error("command_failed", error=e.message, error_code=e.error_code)
            code = f" ({e.error_code})" if e.error_code else ""
            self.console.print(f"[red][-] {escape(e.message)}{code}[/red]")
            return 1
        except Exception as e:
            self.console.print(f"[red][-] Command failed: {escape(str(e))}[/red]")
            if getattr(args, "verbose", False):
                traceback.print_exc()
            return 1
