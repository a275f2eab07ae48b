"""Line Hit Tracking for Predicate Targets

Records, for every tracked Location, the set of input IDs whose execution
reached it. Only Locations on the catalog's allow-list are recorded; every
other trace event is dropped after a single set-membership check.

Hit sets only grow. Counting distinct input IDs (instead of raw events) makes
repeated visits of a line during one input irrelevant.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from predicate_coverage.core.constants import NO_ACTIVE_INPUT
from predicate_coverage.core.coverage_types import Location
from predicate_coverage.core.predicate_catalog import PredicateCatalog
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


class LineHitTracker:
    """Tracks which inputs executed each tracked line.

    One input is active at a time. ``begin_input`` must be called before the
    events of that input arrive and not again until its execution finished.
    Events may be delivered from a different thread than the one advancing
    inputs; mutation is serialised behind a lock.
    """

    def __init__(
        self,
        tracked_locations: Iterable[Location],
        debug_locations: Iterable[Location] | None = None,
    ):
        """Initialize the tracker.

        Args:
            tracked_locations: Allow-list of Locations to record
            debug_locations: Optional Locations whose events are logged at
                debug level

        """
        self._tracked: frozenset[Location] = frozenset(tracked_locations)
        self._debug_locations: frozenset[Location] = frozenset(debug_locations or ())
        self._hits: dict[Location, set[int]] = {}
        self._current_input = NO_ACTIVE_INPUT
        self._total_inputs = 0
        self._lock = threading.Lock()

        for location in self._debug_locations:
            logger.debug(
                "debug_location_registered",
                location=location,
                tracked=location in self._tracked,
            )

    @classmethod
    def from_catalog(
        cls,
        catalog: PredicateCatalog,
        debug_locations: Iterable[Location] | None = None,
    ) -> LineHitTracker:
        """Create a tracker for every Location in the catalog."""
        tracker = cls(catalog.tracked_locations(), debug_locations)
        if tracker._debug_locations:
            for pred in catalog:
                if pred.location in tracker._debug_locations:
                    logger.debug(
                        "debug_predicate_tracked",
                        predicate=pred.location,
                        branches=[str(b.location) for b in pred.branches],
                    )
        return tracker

    @property
    def tracked_locations(self) -> frozenset[Location]:
        return self._tracked

    @property
    def current_input(self) -> int:
        return self._current_input

    def begin_input(self, input_id: int) -> None:
        """Mark ``input_id`` as the input whose events arrive next."""
        with self._lock:
            self._current_input = input_id
            self._total_inputs += 1

    def record_event(self, location: Location) -> None:
        """Record that the active input executed ``location``.

        Untracked locations, and events arriving before any input started,
        are ignored.
        """
        if self._debug_locations and location in self._debug_locations:
            logger.debug(
                "debug_trace_event",
                location=location,
                input_id=self._current_input,
                tracked=location in self._tracked,
            )

        if location not in self._tracked:
            return

        with self._lock:
            if self._current_input == NO_ACTIVE_INPUT:
                return
            hits = self._hits.get(location)
            if hits is None:
                hits = self._hits[location] = set()
            hits.add(self._current_input)

    def record(self, class_name: str, line_number: int) -> None:
        """Record a raw ``(containing class, line)`` trace event.

        Events without a source line (``line_number <= 0``) are ignored.
        """
        if line_number > 0:
            self.record_event(Location.from_event(class_name, line_number))

    def hit_count(self, location: Location) -> int:
        """Number of distinct inputs that executed ``location``."""
        with self._lock:
            return len(self._hits.get(location, ()))

    def hit_inputs(self, location: Location) -> frozenset[int]:
        """Input IDs that executed ``location``, as a point-in-time copy."""
        with self._lock:
            return frozenset(self._hits.get(location, ()))

    def total_inputs(self) -> int:
        """Number of inputs started so far."""
        return self._total_inputs

    def coverage_stats(self) -> dict[str, dict[int, int]]:
        """Hit counts for every executed Location, grouped by class.

        Returns:
            Mapping of class name to a mapping of line number to hit count

        """
        stats: dict[str, dict[int, int]] = {}
        with self._lock:
            for location, hits in self._hits.items():
                stats.setdefault(location.class_name, {})[location.line_number] = len(
                    hits
                )
        return stats
