"""Core predicate coverage functionality.

This module contains the catalog model, the line hit tracker, the coverage
reporter, and the engine-facing guidance, instrumentation and replay pieces.
"""

from .coverage_reporter import (
    CoverageReporter,
    branch_percentage,
    compact_ranges,
    rank_branches,
)
from .coverage_types import (
    BranchRanking,
    BranchTarget,
    ClassCoverage,
    Location,
    PredicateTarget,
)
from .exceptions import (
    CatalogLoadError,
    PredicateCoverageError,
    ReportPersistError,
    TargetLoadError,
)
from .guidance import PredicateTrackingGuidance
from .instrumentation import LineTracer, TraceEvent
from .line_coverage import LineHitTracker
from .predicate_catalog import PredicateCatalog
from .replay import ReplayEngine, ReplayStats
from .snapshot import CoverageSnapshot

__all__ = [
    "BranchRanking",
    "BranchTarget",
    "CatalogLoadError",
    "ClassCoverage",
    "CoverageReporter",
    "CoverageSnapshot",
    "LineHitTracker",
    "LineTracer",
    "Location",
    "PredicateCatalog",
    "PredicateCoverageError",
    "PredicateTarget",
    "PredicateTrackingGuidance",
    "ReplayEngine",
    "ReplayStats",
    "ReportPersistError",
    "TargetLoadError",
    "TraceEvent",
    "branch_percentage",
    "compact_ranges",
    "rank_branches",
]
