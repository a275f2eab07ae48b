"""Tests for the input replay engine and target loading."""

import signal
import textwrap

import pytest

from predicate_coverage.core.coverage_types import Location
from predicate_coverage.core.exceptions import TargetLoadError
from predicate_coverage.core.guidance import PredicateTrackingGuidance
from predicate_coverage.core.predicate_catalog import PredicateCatalog
from predicate_coverage.core.replay import (
    ReplayEngine,
    iter_input_files,
    load_target,
)


def parse_flag(data):
    if data[:1] == b"x":
        return 1
    return 0


def strict_parse(data):
    if not data:
        raise ValueError("empty input")
    return len(data)


def _line(offset: int) -> int:
    return parse_flag.__code__.co_firstlineno + offset


@pytest.fixture
def flag_catalog():
    """Catalog targeting the predicate and both outcomes of parse_flag."""
    return PredicateCatalog.load(
        {
            "predicates": [
                {
                    "class": __name__,
                    "method": "parse_flag",
                    "line": _line(1),
                    "dominanceScore": 5,
                    "branches": [
                        {"class": __name__, "line": _line(2), "dominance": 3},
                        {"class": __name__, "line": _line(3), "dominance": 1},
                    ],
                }
            ]
        }
    )


class RecordingHooks:
    """Minimal hooks implementation without a dashboard."""

    def __init__(self):
        self.started = 0
        self.events = []
        self.ended = 0

    def on_input_start(self):
        self.started += 1
        return self.started

    def on_event(self, event):
        self.events.append(event)

    def on_run_end(self):
        self.ended += 1


class TestLoadTarget:
    """Test target resolution."""

    def test_module_function(self):
        """Test resolving a function from an importable module."""
        import json

        assert load_target("json:dumps") is json.dumps

    def test_dotted_attribute(self):
        """Test resolving a nested attribute."""
        import json

        assert load_target("json:JSONDecoder.decode") is json.JSONDecoder.decode

    def test_python_file(self, temp_dir):
        """Test resolving a function from a .py file path."""
        path = temp_dir / "replay_file_target.py"
        path.write_text(
            textwrap.dedent(
                """
                def run(data):
                    return data.upper()
                """
            ),
            encoding="utf-8",
        )

        target = load_target(f"{path}:run")

        assert target(b"ab") == b"AB"

    @pytest.mark.parametrize("spec", ["json", "json:", ":dumps"])
    def test_malformed_spec(self, spec):
        """Test that specs without module and function are rejected."""
        with pytest.raises(TargetLoadError) as exc_info:
            load_target(spec)

        assert exc_info.value.error_code == "TARGET_LOAD"

    def test_missing_module(self):
        """Test that unknown modules are reported."""
        with pytest.raises(TargetLoadError, match="Cannot import"):
            load_target("no_such_module_for_replay:run")

    def test_missing_file(self, temp_dir):
        """Test that a missing .py file is reported."""
        with pytest.raises(TargetLoadError, match="Cannot import"):
            load_target(f"{temp_dir / 'absent.py'}:run")

    def test_missing_attribute(self):
        """Test that unknown attributes are reported."""
        with pytest.raises(TargetLoadError, match="not found"):
            load_target("json:no_such_function")

    def test_not_callable(self):
        """Test that non-callable attributes are rejected."""
        with pytest.raises(TargetLoadError, match="not callable"):
            load_target("json:__all__")


class TestIterInputFiles:
    """Test corpus iteration."""

    def test_sorted_by_name(self, temp_dir):
        """Test that files are replayed in name order and subdirectories skipped."""
        (temp_dir / "b").write_bytes(b"second")
        (temp_dir / "a").write_bytes(b"first")
        (temp_dir / "sub").mkdir()

        assert list(iter_input_files(temp_dir)) == [b"first", b"second"]

    def test_empty_directory(self, temp_dir):
        """Test that an empty corpus yields nothing."""
        assert list(iter_input_files(temp_dir)) == []


class TestReplayEngine:
    """Test the replay loop."""

    def test_tracks_predicate_coverage(self, flag_catalog, console):
        """Test an end-to-end replay through the tracer."""
        guidance = PredicateTrackingGuidance(flag_catalog, console=console)
        engine = ReplayEngine(parse_flag, guidance, target_modules=[__name__])

        stats = engine.run([b"x1", b"x2", b"y"])

        tracker = guidance.tracker
        assert stats.executed == 3
        assert stats.failures == 0
        assert tracker.hit_count(Location(__name__, _line(1))) == 3
        assert tracker.hit_count(Location(__name__, _line(2))) == 2
        assert tracker.hit_count(Location(__name__, _line(3))) == 1
        assert guidance.finalized

    def test_ranking_after_replay(self, flag_catalog, console):
        """Test that the rarely taken branch ranks by dominance."""
        guidance = PredicateTrackingGuidance(flag_catalog, console=console)
        ReplayEngine(parse_flag, guidance, target_modules=[__name__]).run(
            [b"x", b"y", b"z"]
        )

        ranked = guidance.reporter.rank_undercovered_branches()

        assert [r.branch.line for r in ranked] == [_line(2), _line(3)]
        assert [round(r.branch_percentage, 1) for r in ranked] == [33.3, 66.7]

    def test_target_failures_counted(self):
        """Test that exceptions from the target are counted, not raised."""
        hooks = RecordingHooks()
        engine = ReplayEngine(strict_parse, hooks, target_modules=[__name__])

        stats = engine.run([b"a", b"", b"bc"])

        assert stats.executed == 3
        assert stats.failures == 1
        assert hooks.started == 3
        assert hooks.ended == 1

    def test_events_delivered_to_hooks(self):
        """Test that trace events reach the guidance callback."""
        hooks = RecordingHooks()
        ReplayEngine(parse_flag, hooks, target_modules=[__name__]).run([b"x"])

        assert [e.line_number for e in hooks.events] == [_line(1), _line(2)]

    def test_custom_event_callback(self, flag_catalog, console):
        """Test chaining an engine callback through wrap_callback."""
        seen = []
        guidance = PredicateTrackingGuidance(flag_catalog, console=console)
        engine = ReplayEngine(
            parse_flag,
            guidance,
            target_modules=[__name__],
            event_callback=guidance.wrap_callback(seen.append),
        )

        engine.run([b"x"])

        assert len(seen) == 2
        assert guidance.tracker.hit_count(Location(__name__, _line(2))) == 1

    def test_stop_request_ends_run(self):
        """Test that a stop request skips remaining inputs but still ends the run."""
        hooks = RecordingHooks()
        engine = None

        def stopping_target(data):
            if data == b"stop":
                engine.should_stop = True

        engine = ReplayEngine(stopping_target, hooks, target_modules=[__name__])

        stats = engine.run([b"a", b"stop", b"never"])

        assert stats.executed == 2
        assert stats.interrupted is True
        assert hooks.ended == 1

    def test_signal_handler_requests_stop(self):
        """Test that the signal handler sets the stop flag."""
        engine = ReplayEngine(parse_flag, RecordingHooks())

        engine._signal_handler(signal.SIGINT, None)

        assert engine.should_stop is True

    def test_signal_handlers_restored(self):
        """Test that previous signal handlers are reinstated after a run."""
        before = signal.getsignal(signal.SIGINT)

        ReplayEngine(parse_flag, RecordingHooks()).run([b"x"])

        assert signal.getsignal(signal.SIGINT) is before

    def test_run_end_called_when_input_iteration_fails(self):
        """Test that the run-end hook runs even if the input source raises."""
        hooks = RecordingHooks()

        def broken_inputs():
            yield b"x"
            raise OSError("corpus vanished")

        with pytest.raises(OSError):
            ReplayEngine(parse_flag, hooks).run(broken_inputs())

        assert hooks.ended == 1
