"""Predicate Tracking Guidance

Composition-based adapter between a test-generation engine and the
predicate coverage layer. The engine calls three hooks:

- ``on_input_start()`` when a new input begins executing; assigns the next
  sequential input ID (1, 2, ...)
- ``on_event(event)`` (or a callback produced by ``wrap_callback``) for every
  executed instrumented location
- ``on_run_end()`` when there are no further inputs

Final reporting runs exactly once, through the same path, whether the run
ends normally or is interrupted. Wrap the engine loop in ``session()`` to
get that guarantee for KeyboardInterrupt and other exceptions.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from rich.console import Console

from predicate_coverage.core.constants import (
    DEFAULT_TOP_K,
    STATS_REFRESH_INTERVAL,
    TOP_PREDICATES_SHOWN,
)
from predicate_coverage.core.coverage_reporter import CoverageReporter
from predicate_coverage.core.coverage_types import Location
from predicate_coverage.core.line_coverage import LineHitTracker
from predicate_coverage.core.predicate_catalog import PredicateCatalog
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


class TraceEventLike(Protocol):
    containing_class: str
    line_number: int


class GuidanceHooks(Protocol):
    """Lifecycle hooks an engine drives during a run."""

    def on_input_start(self) -> int: ...

    def on_event(self, event: TraceEventLike) -> None: ...

    def on_run_end(self) -> None: ...


class PredicateTrackingGuidance:
    """Tracks predicate line coverage alongside an engine's own feedback."""

    def __init__(
        self,
        catalog: PredicateCatalog,
        snapshot_path: Path | None = None,
        console: Console | None = None,
        debug_locations: Iterable[Location] | None = None,
        refresh_interval: float = STATS_REFRESH_INTERVAL,
        top_k: int = DEFAULT_TOP_K,
        top_predicates: int = TOP_PREDICATES_SHOWN,
    ):
        """Initialize the guidance.

        Args:
            catalog: Predicate targets from static analysis
            snapshot_path: Where the final JSON snapshot is written (None = skip)
            console: Rich console for dashboard and report output
            debug_locations: Locations whose events are logged at debug level
            refresh_interval: Minimum seconds between dashboard renders
            top_k: Under-covered branches listed on the dashboard
            top_predicates: Highest-dominance predicates shown on the dashboard

        """
        self.catalog = catalog
        self.tracker = LineHitTracker.from_catalog(catalog, debug_locations)
        self.reporter = CoverageReporter(
            catalog,
            self.tracker,
            console=console,
            snapshot_path=snapshot_path,
            refresh_interval=refresh_interval,
            top_k=top_k,
            top_predicates=top_predicates,
        )
        self.input_counter = 0
        self._finalized = False
        self._finalize_lock = threading.Lock()

        console = self.reporter.console
        console.print("[bold]=== Predicate Tracking Enabled ===[/bold]")
        console.print(f"Tracking {len(catalog)} predicates")
        console.print(f"Tracking {catalog.total_tracked_lines()} total lines")
        console.print()
        logger.info(
            "predicate_tracking_enabled",
            predicates=len(catalog),
            tracked_lines=catalog.total_tracked_lines(),
            snapshot_path=str(snapshot_path) if snapshot_path else None,
        )

    @property
    def finalized(self) -> bool:
        return self._finalized

    def on_input_start(self) -> int:
        """Assign the next input ID and make it the active input."""
        self.input_counter += 1
        self.tracker.begin_input(self.input_counter)
        return self.input_counter

    def on_event(self, event: TraceEventLike) -> None:
        """Record a trace event carrying ``containing_class`` and ``line_number``."""
        self.tracker.record(event.containing_class, event.line_number)

    def wrap_callback(
        self, callback: Callable[[Any], None] | None = None
    ) -> Callable[[Any], None]:
        """Decorate an engine trace callback with hit tracking.

        Every event reaches ``callback`` first, unchanged, whether or not it
        is tracked here.

        Args:
            callback: The engine's own trace callback (None = tracking only)

        Returns:
            Callback to register with the engine

        """

        def tracking_callback(event: Any) -> None:
            if callback is not None:
                callback(event)
            self.on_event(event)

        return tracking_callback

    def display_stats(self, force: bool = False) -> bool:
        """Render the live dashboard, throttled unless ``force`` is set."""
        return self.reporter.render_live_stats(force)

    def on_run_end(self) -> None:
        """The engine has no further inputs."""
        logger.info("run_finished", total_inputs=self.tracker.total_inputs())
        self.finalize()

    def finalize(self) -> None:
        """Print final statistics and write the snapshot, once per run."""
        with self._finalize_lock:
            if self._finalized:
                return
            self._finalized = True
        self.reporter.finalize()

    @contextmanager
    def session(self) -> Iterator[PredicateTrackingGuidance]:
        """Run a block with guaranteed final reporting.

        USAGE:
            with guidance.session():
                engine.run(callback=guidance.wrap_callback(engine_callback))
        """
        try:
            yield self
        except KeyboardInterrupt:
            self.reporter.console.print(
                "\n[yellow]=== Fuzzing interrupted, saving line coverage results ===[/yellow]"
            )
            logger.warning(
                "run_interrupted", total_inputs=self.tracker.total_inputs()
            )
            raise
        finally:
            self.finalize()
