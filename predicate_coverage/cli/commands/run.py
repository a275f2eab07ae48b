"""Run Subcommand - Replay inputs with predicate tracking.

Loads the predicate catalog, replays every file of an input directory
through a Python target under the line tracer, shows the live dashboard and
writes the final line coverage snapshot.

Usage:
    predicate-coverage run --predicates preds.json --target mypkg.parser:parse \\
        --inputs ./corpus --output line_coverage.json
"""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from predicate_coverage.cli.base import SubcommandBase
from predicate_coverage.core.config import Settings, get_settings
from predicate_coverage.core.coverage_types import Location
from predicate_coverage.core.exceptions import CatalogLoadError
from predicate_coverage.core.guidance import PredicateTrackingGuidance
from predicate_coverage.core.predicate_catalog import PredicateCatalog
from predicate_coverage.core.replay import ReplayEngine, iter_input_files, load_target
from predicate_coverage.utils.logger import configure_logging


class RunCommand(SubcommandBase):
    """Replay an input corpus through a target with predicate tracking."""

    @property
    def name(self) -> str:
        return "run"

    @property
    def description(self) -> str:
        return "Replay inputs through a Python target and track predicate coverage"

    @property
    def epilog(self) -> str:
        return """
Examples:
  # Replay a corpus and write the snapshot
  predicate-coverage run --predicates preds.json --target mypkg.parser:parse \\
      --inputs ./corpus --output line_coverage.json

  # Only trace the target package and log events at one location
  predicate-coverage run --predicates preds.json --target parse_target.py:fuzz \\
      --inputs ./corpus --modules mypkg --debug-location mypkg.Parser:135 -v
"""

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        target_group = parser.add_argument_group("Target Options")
        target_group.add_argument(
            "-p",
            "--predicates",
            type=Path,
            required=True,
            help="Predicate document produced by static analysis (JSON)",
        )
        target_group.add_argument(
            "-t",
            "--target",
            required=True,
            help="Target callable as 'package.module:function' or 'file.py:function'",
        )
        target_group.add_argument(
            "-i",
            "--inputs",
            type=Path,
            required=True,
            help="Directory of input files, replayed in name order",
        )
        target_group.add_argument(
            "--modules",
            nargs="+",
            help="Module prefixes to trace (default: everything)",
        )

        report_group = parser.add_argument_group("Report Options")
        report_group.add_argument(
            "-o",
            "--output",
            type=Path,
            help="Write the line coverage JSON snapshot to this file",
        )
        report_group.add_argument(
            "--top-k",
            type=int,
            help="Under-covered branches shown on the dashboard (default: 5)",
        )
        report_group.add_argument(
            "--refresh-interval",
            type=float,
            help="Minimum seconds between dashboard refreshes (default: 0.3)",
        )

        debug_group = parser.add_argument_group("Logging Options")
        debug_group.add_argument(
            "--debug-location",
            type=Location.parse,
            action="append",
            default=[],
            metavar="CLASS:LINE",
            help="Log every trace event at this location (repeatable, needs -v)",
        )
        debug_group.add_argument(
            "--log-format", choices=["json", "console"], help="Log output format"
        )
        debug_group.add_argument("--log-file", type=Path, help="Also write logs here")
        debug_group.add_argument(
            "-v", "--verbose", action="store_true", help="Enable debug logging"
        )
        debug_group.add_argument(
            "--show-config",
            action="store_true",
            help="Show the effective configuration and exit",
        )

    def run(self, args: argparse.Namespace) -> int:
        settings = get_settings()
        self._configure_logging(args, settings)

        if args.show_config:
            self.console.print(Panel(settings.get_summary().strip(), title="Configuration"))
            return 0

        try:
            catalog = PredicateCatalog.load(args.predicates)
        except CatalogLoadError as e:
            e.context.setdefault("source", str(args.predicates))
            raise

        if not args.inputs.is_dir():
            self.console.print(
                f"[red]Input directory not found: {escape(str(args.inputs))}[/red]"
            )
            return 1

        target = load_target(args.target)
        reporting = settings.reporting
        guidance = PredicateTrackingGuidance(
            catalog,
            snapshot_path=args.output or reporting.snapshot_path,
            console=self.console,
            debug_locations=settings.tracking.parsed_debug_locations()
            | set(args.debug_location),
            refresh_interval=(
                args.refresh_interval
                if args.refresh_interval is not None
                else reporting.refresh_interval
            ),
            top_k=args.top_k if args.top_k is not None else reporting.top_k,
            top_predicates=reporting.top_predicates,
        )
        engine = ReplayEngine(target, guidance, target_modules=args.modules)

        try:
            with guidance.session():
                stats = engine.run(iter_input_files(args.inputs))
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Replay interrupted by user[/yellow]")
            return 130

        self.console.print(
            Panel(
                f"[bold]Final Statistics:[/bold]\n"
                f"Inputs executed: {stats.executed:,}\n"
                f"Target failures: {stats.failures:,}\n"
                f"Predicates hit: {guidance.reporter.predicates_hit()}/{len(catalog)}\n"
                f"Stopped early: {'yes' if stats.interrupted else 'no'}",
                title="Summary",
            )
        )
        return 0

    @staticmethod
    def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
        log_level = "DEBUG" if args.verbose else settings.logging.log_level.value
        log_format = args.log_format or settings.logging.log_format
        configure_logging(
            log_level=log_level,
            json_format=log_format == "json",
            log_file=args.log_file or settings.logging.log_file,
        )
