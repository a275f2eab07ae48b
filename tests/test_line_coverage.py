"""Tests for the line hit tracker."""

import threading

from hypothesis import given
from hypothesis import strategies as st

from predicate_coverage.core.coverage_types import Location
from predicate_coverage.core.line_coverage import LineHitTracker

A10 = Location("A", 10)
A12 = Location("A", 12)


def _tracker(*locations: Location, **kwargs) -> LineHitTracker:
    return LineHitTracker(locations or (A10, A12), **kwargs)


class TestRecording:
    """Test hit recording semantics."""

    def test_records_distinct_inputs(self):
        tracker = _tracker()
        for input_id in (1, 2, 3):
            tracker.begin_input(input_id)
            tracker.record_event(A10)

        assert tracker.hit_count(A10) == 3
        assert tracker.hit_inputs(A10) == {1, 2, 3}

    def test_repeated_events_count_once(self):
        tracker = _tracker()
        tracker.begin_input(1)
        for _ in range(50):
            tracker.record_event(A10)

        assert tracker.hit_count(A10) == 1

    @given(st.lists(st.sampled_from([A10, A12]), min_size=1, max_size=40))
    def test_replaying_events_is_idempotent(self, events):
        """Property: feeding the same input's events twice changes nothing."""
        tracker = _tracker()
        tracker.begin_input(1)
        for location in events:
            tracker.record_event(location)
        before = {loc: tracker.hit_inputs(loc) for loc in (A10, A12)}

        for location in events:
            tracker.record_event(location)

        assert {loc: tracker.hit_inputs(loc) for loc in (A10, A12)} == before

    def test_untracked_location_ignored(self):
        tracker = _tracker()
        tracker.begin_input(1)
        tracker.record_event(Location("A", 11))

        assert tracker.hit_count(Location("A", 11)) == 0
        assert tracker.coverage_stats() == {}

    def test_events_before_first_input_ignored(self):
        tracker = _tracker()
        tracker.record_event(A10)

        assert tracker.hit_count(A10) == 0

        tracker.begin_input(1)
        tracker.record_event(A10)

        assert tracker.hit_inputs(A10) == {1}

    def test_record_normalizes_class_name(self):
        tracker = _tracker(Location("org.example.Paths", 135))
        tracker.begin_input(1)
        tracker.record("org/example/Paths", 135)

        assert tracker.hit_count(Location("org.example.Paths", 135)) == 1

    def test_record_ignores_missing_line(self):
        tracker = _tracker(Location("A", 0))
        tracker.begin_input(1)
        tracker.record("A", 0)
        tracker.record("A", -1)

        assert tracker.coverage_stats() == {}

    def test_hit_inputs_is_a_copy(self):
        tracker = _tracker()
        tracker.begin_input(1)
        tracker.record_event(A10)
        snapshot = tracker.hit_inputs(A10)

        tracker.begin_input(2)
        tracker.record_event(A10)

        assert snapshot == frozenset({1})
        assert tracker.hit_inputs(A10) == {1, 2}

    def test_unknown_location_has_no_hits(self):
        tracker = _tracker()

        assert tracker.hit_count(Location("Z", 1)) == 0
        assert tracker.hit_inputs(Location("Z", 1)) == frozenset()


class TestCounters:
    """Test input counting and aggregate stats."""

    def test_total_inputs_counts_begin_input(self):
        tracker = _tracker()
        assert tracker.total_inputs() == 0

        tracker.begin_input(1)
        tracker.begin_input(2)

        assert tracker.total_inputs() == 2
        assert tracker.current_input == 2

    def test_coverage_stats_grouped_by_class(self):
        tracker = _tracker(A10, A12, Location("B", 3))
        tracker.begin_input(1)
        tracker.record_event(A10)
        tracker.record_event(Location("B", 3))
        tracker.begin_input(2)
        tracker.record_event(A10)

        assert tracker.coverage_stats() == {"A": {10: 2}, "B": {3: 1}}

    def test_from_catalog_tracks_catalog_locations(self, catalog):
        tracker = LineHitTracker.from_catalog(catalog)

        assert tracker.tracked_locations == catalog.tracked_locations()

    def test_scenario_counts(self, scenario_tracker):
        assert scenario_tracker.hit_count(Location("C", 10)) == 3
        assert scenario_tracker.hit_count(Location("C", 12)) == 2
        assert scenario_tracker.total_inputs() == 3


class TestConcurrency:
    """Test recording from a thread other than the one advancing inputs."""

    def test_events_from_other_threads(self):
        locations = [Location("T", line) for line in range(1, 201)]
        tracker = LineHitTracker(locations)
        tracker.begin_input(7)

        def worker(chunk):
            for location in chunk:
                tracker.record_event(location)

        threads = [
            threading.Thread(target=worker, args=(locations[i::4],)) for i in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(tracker.hit_inputs(loc) == {7} for loc in locations)


class TestDebugLocations:
    """Test the diagnostic location filter."""

    def test_debug_event_logged(self, capture_logs):
        tracker = _tracker(debug_locations=[A10, Location("A", 99)])
        tracker.begin_input(4)
        tracker.record_event(A10)
        tracker.record_event(Location("A", 99))

        events = [e for e in capture_logs if e["event"] == "debug_trace_event"]
        assert [(e["location"], e["tracked"]) for e in events] == [
            (A10, True),
            (Location("A", 99), False),
        ]
        assert events[0]["input_id"] == 4

    def test_debug_filter_does_not_change_counts(self):
        plain = _tracker()
        debugged = _tracker(debug_locations=[A10])
        for tracker in (plain, debugged):
            tracker.begin_input(1)
            tracker.record_event(A10)
            tracker.record_event(A12)

        assert plain.coverage_stats() == debugged.coverage_stats()

    def test_from_catalog_logs_debug_predicate(self, catalog, capture_logs):
        LineHitTracker.from_catalog(
            catalog, debug_locations=[Location("org.example.Paths", 135)]
        )

        events = [e for e in capture_logs if e["event"] == "debug_predicate_tracked"]
        assert len(events) == 1
        assert events[0]["branches"] == [
            "org.example.Paths:136",
            "org.example.Paths:140",
        ]
