"""
Pytest configuration and shared fixtures for predicate coverage tests.
"""

import io
import json
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest
from rich.console import Console

from predicate_coverage.core.line_coverage import LineHitTracker
from predicate_coverage.core.predicate_catalog import PredicateCatalog


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields:
        Path to temporary directory that will be cleaned up after test
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def predicate_document() -> dict[str, Any]:
    """A predicate document with two classes and unsorted dominance scores.

    Returns:
        Parsed predicate document
    """
    return {
        "predicates": [
            {
                "class": "org.example.Graph",
                "method": "addEdge",
                "line": 40,
                "dominanceScore": 3,
                "branches": [
                    {"class": "org.example.Graph", "line": 41, "dominance": 1},
                    {"class": "org.example.Graph", "line": 44, "dominance": 2},
                ],
            },
            {
                "class": "org.example.Paths",
                "method": "shortest",
                "line": 135,
                "dominanceScore": 15,
                "branches": [
                    {"class": "org.example.Paths", "line": 136, "dominance": 10},
                    {"class": "org.example.Paths", "line": 140, "dominance": 3},
                ],
            },
            {
                "class": "org.example.Graph",
                "method": "removeVertex",
                "line": 90,
                "dominanceScore": 7,
            },
        ]
    }


@pytest.fixture
def predicate_file(temp_dir: Path, predicate_document: dict[str, Any]) -> Path:
    """Write the predicate document to disk.

    Args:
        temp_dir: Temporary directory fixture
        predicate_document: Document fixture

    Returns:
        Path to the JSON file
    """
    path = temp_dir / "predicates.json"
    path.write_text(json.dumps(predicate_document), encoding="utf-8")
    return path


@pytest.fixture
def catalog(predicate_document: dict[str, Any]) -> PredicateCatalog:
    """Catalog built from the predicate document fixture."""
    return PredicateCatalog.load(predicate_document)


@pytest.fixture
def scenario_catalog() -> PredicateCatalog:
    """One predicate P at (C, 10), dominance 5, with one branch at (C, 12), dominance 3."""
    return PredicateCatalog.load(
        {
            "predicates": [
                {
                    "class": "C",
                    "method": "m",
                    "line": 10,
                    "dominanceScore": 5,
                    "branches": [{"class": "C", "line": 12, "dominance": 3}],
                }
            ]
        }
    )


@pytest.fixture
def scenario_tracker(scenario_catalog: PredicateCatalog) -> LineHitTracker:
    """Tracker fed with three inputs: two take the branch, one does not."""
    tracker = LineHitTracker.from_catalog(scenario_catalog)
    tracker.begin_input(1)
    tracker.record("C", 10)
    tracker.record("C", 12)
    tracker.begin_input(2)
    tracker.record("C", 10)
    tracker.record("C", 12)
    tracker.begin_input(3)
    tracker.record("C", 10)
    return tracker


@pytest.fixture
def console() -> Console:
    """Rich console writing to an in-memory buffer.

    Read the output with ``console.file.getvalue()``.
    """
    return Console(file=io.StringIO(), force_terminal=False, width=200)


@pytest.fixture
def reset_structlog():
    """Reset structlog configuration after each test.

    This ensures tests don't interfere with each other's logging configuration.
    """
    import structlog

    yield

    structlog.reset_defaults()


@pytest.fixture
def capture_logs(reset_structlog):
    """Capture log output for testing.

    Returns:
        List that will contain captured log entries
    """
    import logging

    import structlog

    captured = []

    def capture_processor(logger, method_name, event_dict):
        """Capture event dict before rendering."""
        captured.append(event_dict.copy())
        return event_dict

    logging.basicConfig(level=logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            capture_processor,
            structlog.processors.JSONRenderer(default=str),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    yield captured

    captured.clear()
