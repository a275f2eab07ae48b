"""Coverage Reporting for Predicate Tracking

Turns the raw hit sets of a LineHitTracker into:
- per-class covered/uncovered line summaries (compacted into ranges)
- a ranking of under-covered branches, most important first
- a throttled live dashboard
- a final console report and a persisted JSON snapshot

Branch coverage is always expressed relative to the guarding predicate: a
branch taken by 2 of the 3 inputs that reached its predicate is at 66.7%.
Branches whose predicate has never executed are not ranked at all.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from pathlib import Path

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from predicate_coverage.core.constants import (
    DEFAULT_TOP_K,
    STATS_REFRESH_INTERVAL,
    TOP_PREDICATES_SHOWN,
)
from predicate_coverage.core.coverage_types import BranchRanking, ClassCoverage
from predicate_coverage.core.exceptions import ReportPersistError
from predicate_coverage.core.line_coverage import LineHitTracker
from predicate_coverage.core.predicate_catalog import PredicateCatalog
from predicate_coverage.core.snapshot import (
    BranchCoverageRecord,
    ClassSummaryRecord,
    CoverageSnapshot,
    PredicateCoverageRecord,
)
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


def compact_ranges(sorted_values: Iterable[int]) -> str:
    """Format sorted, distinct integers as compact ranges.

    Runs of consecutive integers collapse into ``start-end``; isolated values
    print as the bare number.

    Example:
        >>> compact_ranges([1, 2, 3, 5, 10, 11])
        '1-3, 5, 10-11'

    """
    tokens: list[str] = []
    start: int | None = None
    prev = 0
    for value in sorted_values:
        if start is not None and value == prev + 1:
            prev = value
            continue
        if start is not None:
            tokens.append(_range_token(start, prev))
        start = prev = value
    if start is not None:
        tokens.append(_range_token(start, prev))
    return ", ".join(tokens)


def _range_token(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def branch_percentage(branch_hits: int, predicate_hits: int) -> float:
    """Share of predicate-reaching inputs that also took the branch."""
    if predicate_hits <= 0:
        return 0.0
    return 100.0 * branch_hits / predicate_hits


def rank_branches(
    candidates: Iterable[BranchRanking], top_k: int = DEFAULT_TOP_K
) -> list[BranchRanking]:
    """Order branches by dominance (descending), then coverage (ascending).

    High-dominance branches that are least covered come first. The sort is
    stable, so fully tied branches keep catalog order.
    """
    ranked = sorted(
        candidates, key=lambda r: (-r.branch.dominance, r.branch_percentage)
    )
    return ranked[: max(top_k, 0)]


class CoverageReporter:
    """Aggregates tracker state into summaries, dashboards and snapshots."""

    def __init__(
        self,
        catalog: PredicateCatalog,
        tracker: LineHitTracker,
        console: Console | None = None,
        snapshot_path: Path | None = None,
        refresh_interval: float = STATS_REFRESH_INTERVAL,
        top_k: int = DEFAULT_TOP_K,
        top_predicates: int = TOP_PREDICATES_SHOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the reporter.

        Args:
            catalog: Loaded predicate catalog
            tracker: Hit tracker fed by the engine
            console: Rich console for dashboard and final report
            snapshot_path: Where ``finalize`` writes the JSON snapshot (None = skip)
            refresh_interval: Minimum seconds between two live renders
            top_k: Under-covered branches listed on the dashboard
            top_predicates: Predicates shown on the dashboard
            clock: Monotonic time source used for throttling

        """
        self.catalog = catalog
        self.tracker = tracker
        self.console = console or Console()
        self.snapshot_path = snapshot_path
        self.refresh_interval = refresh_interval
        self.top_k = top_k
        self.top_predicates = top_predicates
        self._clock = clock
        self._last_render: float | None = None

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def predicates_hit(self) -> int:
        """Number of predicates whose own line executed at least once."""
        return sum(1 for pred in self.catalog if self.tracker.hit_count(pred.location))

    def per_class_summary(self) -> dict[str, ClassCoverage]:
        """Partition every tracked line of each class into covered/uncovered.

        Returns:
            Mapping of class name (alphabetical) to its ClassCoverage

        """
        summary: dict[str, ClassCoverage] = {}
        for location in self.catalog.tracked_locations():
            entry = summary.setdefault(location.class_name, ClassCoverage())
            if self.tracker.hit_count(location) > 0:
                entry.covered_lines.add(location.line_number)
            else:
                entry.uncovered_lines.add(location.line_number)
        return dict(sorted(summary.items()))

    def rank_undercovered_branches(self, top_k: int | None = None) -> list[BranchRanking]:
        """Rank branches of executed predicates by importance and coverage.

        Args:
            top_k: Number of branches to return (defaults to the reporter's top_k)

        Returns:
            At most ``top_k`` rankings, highest dominance and lowest coverage first

        """
        candidates: list[BranchRanking] = []
        for pred in self.catalog:
            pred_hits = self.tracker.hit_count(pred.location)
            if pred_hits == 0:
                continue
            for branch in pred.branches:
                branch_hits = self.tracker.hit_count(branch.location)
                candidates.append(
                    BranchRanking(
                        predicate=pred,
                        branch=branch,
                        predicate_hits=pred_hits,
                        branch_hits=branch_hits,
                        branch_percentage=100.0 * branch_hits / pred_hits,
                    )
                )
        return rank_branches(candidates, self.top_k if top_k is None else top_k)

    def build_snapshot(self) -> CoverageSnapshot:
        """Collect the current statistics into a snapshot document."""
        line_coverage = [
            PredicateCoverageRecord(
                class_name=pred.class_name,
                method=pred.method_name,
                predicate_line=pred.predicate_line,
                dominance_score=pred.dominance_score,
                predicate_inputs=self.tracker.hit_count(pred.location),
                branches=[
                    BranchCoverageRecord(
                        line=branch.line,
                        dominance=branch.dominance,
                        inputs=self.tracker.hit_count(branch.location),
                    )
                    for branch in pred.branches
                ],
            )
            for pred in self.catalog
        ]
        coverage_summary = [
            ClassSummaryRecord(
                class_name=class_name,
                covered_lines=compact_ranges(sorted(entry.covered_lines)),
                uncovered_lines=compact_ranges(sorted(entry.uncovered_lines)),
                covered_count=entry.covered_count,
                total_tracked=entry.total_tracked,
            )
            for class_name, entry in self.per_class_summary().items()
        ]
        return CoverageSnapshot(
            total_inputs=self.tracker.total_inputs(),
            line_coverage=line_coverage,
            coverage_summary=coverage_summary,
        )

    # ------------------------------------------------------------------
    # Live dashboard
    # ------------------------------------------------------------------

    def render_live_stats(self, force: bool = False) -> bool:
        """Render the dashboard unless the previous render is too recent.

        Args:
            force: Render regardless of the refresh interval

        Returns:
            True if the dashboard was rendered

        """
        now = self._clock()
        if (
            not force
            and self._last_render is not None
            and now - self._last_render < self.refresh_interval
        ):
            return False
        self._last_render = now

        if self.console.is_terminal:
            self.console.clear()
        self.console.print(self.build_dashboard())
        return True

    def build_dashboard(self) -> Panel:
        total_inputs = self.tracker.total_inputs()
        header = Text.assemble(
            ("Inputs executed:      ", "bold"),
            f"{total_inputs:,}\n",
            ("Predicates hit:       ", "bold"),
            f"{self.predicates_hit()}/{len(self.catalog)}",
        )

        top = Table(title="Top predicates", expand=True, title_justify="left")
        top.add_column("Location", style="cyan", no_wrap=True)
        top.add_column("Method")
        top.add_column("Dom", justify="right", style="magenta")
        top.add_column("Inputs", justify="right")
        top.add_column("Coverage", justify="right", style="green")
        for pred in self.catalog.predicates[: self.top_predicates]:
            pred_hits = self.tracker.hit_count(pred.location)
            top.add_row(
                escape(str(pred.location)),
                escape(pred.method_name),
                str(pred.dominance_score),
                str(pred_hits),
                f"{100.0 * pred_hits / max(1, total_inputs):.1f}%",
            )
            for branch in pred.branches:
                branch_hits = self.tracker.hit_count(branch.location)
                top.add_row(
                    f"  -> line {branch.line}",
                    "",
                    str(branch.dominance),
                    str(branch_hits),
                    f"{branch_percentage(branch_hits, pred_hits):.1f}% of predicate",
                )

        renderables: list[Text | Table] = [header, top]
        rankings = self.rank_undercovered_branches()
        if rankings:
            renderables.append(self._ranking_table(rankings))

        return Panel(
            Group(*renderables),
            title="Semantic Fuzzing + Predicate Tracking",
            expand=True,
        )

    @staticmethod
    def _ranking_table(rankings: list[BranchRanking]) -> Table:
        table = Table(
            title="Top under-covered branches (by dominance, then % coverage)",
            expand=True,
            title_justify="left",
        )
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

    # ------------------------------------------------------------------
    # Final report
    # ------------------------------------------------------------------

    def print_coverage_summary(self) -> None:
        """Print covered/uncovered tracked lines grouped by class."""
        self.console.print("[bold]=== COVERAGE SUMMARY (tracked predicate lines) ===[/bold]")
        for class_name, entry in self.per_class_summary().items():
            total = entry.total_tracked
            covered = entry.covered_count
            self.console.print(escape(class_name), highlight=False)
            self.console.print(
                f"  Covered   ({covered}/{total}): "
                f"{compact_ranges(sorted(entry.covered_lines))}",
                highlight=False,
            )
            self.console.print(
                f"  Uncovered ({total - covered}/{total}): "
                f"{compact_ranges(sorted(entry.uncovered_lines))}",
                highlight=False,
            )
        self.console.print()

    def print_final_stats(self) -> None:
        """Print the class summary followed by per-predicate line statistics."""
        total_inputs = self.tracker.total_inputs()
        self.console.print()
        self.print_coverage_summary()
        self.console.print("[bold]=== LINE COVERAGE STATISTICS ===[/bold]")
        self.console.print(f"Total inputs generated: {total_inputs}")
        self.console.print()

        for pred in self.catalog:
            pred_hits = self.tracker.hit_count(pred.location)
            self.console.print(
                f"Predicate: {escape(str(pred.location))} "
                f"(method: {escape(pred.method_name)}, dominance: {pred.dominance_score})",
                highlight=False,
            )
            self.console.print(
                f"  Predicate line {pred.predicate_line}: {pred_hits} inputs "
                f"({100.0 * pred_hits / max(1, total_inputs):.1f}%)",
                highlight=False,
            )
            for branch in pred.branches:
                branch_hits = self.tracker.hit_count(branch.location)
                self.console.print(
                    f"    Branch line {branch.line}: {branch_hits} inputs "
                    f"({branch_percentage(branch_hits, pred_hits):.1f}% of predicate) "
                    f"[dominance: {branch.dominance}]",
                    highlight=False,
                    markup=False,
                )
            self.console.print()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_snapshot(self, destination: str | Path) -> bool:
        """Write the JSON snapshot in a single best-effort attempt.

        Failures are logged and reported on the console, never raised.

        Args:
            destination: Output file path

        Returns:
            True if the snapshot was written

        """
        try:
            self._write_snapshot(Path(destination))
        except ReportPersistError as e:
            logger.error(
                "snapshot_write_failed", error=e.message, error_code=e.error_code, **e.context
            )
            self.console.print(
                f"[red]Error writing line coverage JSON: {escape(e.message)}[/red]"
            )
            return False

        self.console.print(
            f"Line coverage statistics written to: {escape(str(destination))}"
        )
        return True

    def _write_snapshot(self, path: Path) -> None:
        try:
            payload = self.build_snapshot().to_json()
        except ValueError as e:
            # PydanticSerializationError, e.g. lone surrogates in a class name
            raise ReportPersistError(
                f"Cannot serialize coverage snapshot: {e}", context={"path": str(path)}
            ) from e
        try:
            path.write_text(payload + "\n", encoding="utf-8")
        except OSError as e:
            raise ReportPersistError(
                f"Cannot write coverage snapshot: {e}", context={"path": str(path)}
            ) from e
        logger.info(
            "snapshot_written",
            path=str(path),
            total_inputs=self.tracker.total_inputs(),
        )

    def finalize(self) -> None:
        """Print final statistics and persist the snapshot if configured."""
        self.print_final_stats()
        if self.snapshot_path is not None:
            self.export_snapshot(self.snapshot_path)
