"""Report Subcommand - Render a saved line coverage snapshot.

Usage:
    predicate-coverage report line_coverage.json
    predicate-coverage report line_coverage.json --top-k 10
"""

from __future__ import annotations

import argparse
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from predicate_coverage.cli.base import SubcommandBase
from predicate_coverage.core.constants import DEFAULT_TOP_K
from predicate_coverage.core.coverage_reporter import branch_percentage, rank_branches
from predicate_coverage.core.coverage_types import (
    BranchRanking,
    BranchTarget,
    PredicateTarget,
)
from predicate_coverage.core.snapshot import CoverageSnapshot


def snapshot_rankings(snapshot: CoverageSnapshot, top_k: int) -> list[BranchRanking]:
    """Rank the under-covered branches recorded in a snapshot.

    Snapshots do not store a branch's class, so branches are attributed to
    their predicate's class.
    """
    candidates: list[BranchRanking] = []
    for record in snapshot.line_coverage:
        if record.predicate_inputs == 0:
            continue
        branches = tuple(
            BranchTarget(record.class_name, b.line, b.dominance) for b in record.branches
        )
        predicate = PredicateTarget(
            class_name=record.class_name,
            method_name=record.method,
            predicate_line=record.predicate_line,
            dominance_score=record.dominance_score,
            branches=branches,
        )
        for branch, branch_record in zip(branches, record.branches, strict=True):
            candidates.append(
                BranchRanking(
                    predicate=predicate,
                    branch=branch,
                    predicate_hits=record.predicate_inputs,
                    branch_hits=branch_record.inputs,
                    branch_percentage=branch_percentage(
                        branch_record.inputs, record.predicate_inputs
                    ),
                )
            )
    return rank_branches(candidates, top_k)


def create_summary_table(snapshot: CoverageSnapshot) -> Table:
    """Create the per-class coverage table."""
    table = Table(title="Coverage Summary", expand=True)
    table.add_column("Class", style="cyan", no_wrap=True)
    table.add_column("Covered", style="green")
    table.add_column("Uncovered", style="red")
    table.add_column("Lines", justify="right", style="magenta")
    for entry in snapshot.coverage_summary:
        table.add_row(
            escape(entry.class_name),
            entry.covered_lines or "-",
            entry.uncovered_lines or "-",
            f"{entry.covered_count}/{entry.total_tracked}",
        )
    return table


def create_predicate_table(snapshot: CoverageSnapshot) -> Table:
    """Create the per-predicate hit table in catalog order."""
    table = Table(title="Line Coverage", expand=True)
    table.add_column("Predicate", style="cyan", no_wrap=True)
    table.add_column("Method")
    table.add_column("Dom", justify="right", style="magenta")
    table.add_column("Inputs", justify="right")
    table.add_column("Coverage", justify="right", style="green")
    for record in snapshot.line_coverage:
        table.add_row(
            escape(f"{record.class_name}:{record.predicate_line}"),
            escape(record.method),
            str(record.dominance_score),
            str(record.predicate_inputs),
            f"{100.0 * record.predicate_inputs / max(1, snapshot.total_inputs):.1f}%",
        )
        for branch in record.branches:
            table.add_row(
                f"  -> line {branch.line}",
                "",
                str(branch.dominance),
                str(branch.inputs),
                f"{branch_percentage(branch.inputs, record.predicate_inputs):.1f}% of predicate",
            )
    return table


def create_ranking_table(rankings: list[BranchRanking]) -> Table:
    """Create the under-covered branch table."""
    table = Table(title="Top Under-Covered Branches", expand=True)
    table.add_column("Predicate", style="cyan", no_wrap=True)
    table.add_column("Branch line", justify="right")
    table.add_column("Dom", justify="right", style="magenta")
    table.add_column("Coverage", justify="right", style="yellow")
    for ranking in rankings:
        table.add_row(
            escape(str(ranking.predicate.location)),
            str(ranking.branch.line),
            str(ranking.branch.dominance),
            f"{ranking.branch_percentage:.1f}%",
        )
    return table


class ReportCommand(SubcommandBase):
    """Render a saved snapshot on the console."""

    @property
    def name(self) -> str:
        return "report"

    @property
    def description(self) -> str:
        return "Render a line coverage snapshot as tables"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("snapshot", type=Path, help="Line coverage JSON snapshot")
        parser.add_argument(
            "--top-k",
            type=int,
            default=DEFAULT_TOP_K,
            help=f"Under-covered branches to list (default: {DEFAULT_TOP_K})",
        )
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Show tracebacks on errors"
        )

    def run(self, args: argparse.Namespace) -> int:
        try:
            snapshot = CoverageSnapshot.load(args.snapshot)
        except OSError as e:
            self.console.print(f"[red]Cannot read snapshot: {escape(str(e))}[/red]")
            return 1
        except ValidationError as e:
            self.console.print(
                f"[red]{escape(str(args.snapshot))} is not a line coverage snapshot "
                f"({e.error_count()} error(s))[/red]"
            )
            return 1

        hit = sum(1 for record in snapshot.line_coverage if record.predicate_inputs)
        self.console.print(
            Panel.fit(
                f"Total inputs: {snapshot.total_inputs:,}\n"
                f"Predicates hit: {hit}/{len(snapshot.line_coverage)}",
                title=escape(str(args.snapshot)),
            )
        )
        self.console.print(create_summary_table(snapshot))
        self.console.print(create_predicate_table(snapshot))

        rankings = snapshot_rankings(snapshot, args.top_k)
        if rankings:
            self.console.print(create_ranking_table(rankings))
        return 0
