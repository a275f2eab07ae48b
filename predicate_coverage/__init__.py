"""
Predicate Coverage - line coverage tracking for predicate-guided fuzzing.

This package records which statically-selected predicate and branch lines
each generated input executes, ranks under-explored branches by dominance,
and reports progress live and as a JSON snapshot.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from predicate_coverage.core.coverage_reporter import CoverageReporter, compact_ranges
from predicate_coverage.core.coverage_types import (
    BranchRanking,
    BranchTarget,
    ClassCoverage,
    Location,
    PredicateTarget,
)
from predicate_coverage.core.exceptions import (
    CatalogLoadError,
    PredicateCoverageError,
    ReportPersistError,
)
from predicate_coverage.core.guidance import PredicateTrackingGuidance
from predicate_coverage.core.line_coverage import LineHitTracker
from predicate_coverage.core.predicate_catalog import PredicateCatalog

__all__ = [
    "__version__",
    "__license__",
    "BranchRanking",
    "BranchTarget",
    "CatalogLoadError",
    "ClassCoverage",
    "CoverageReporter",
    "LineHitTracker",
    "Location",
    "PredicateCatalog",
    "PredicateCoverageError",
    "PredicateTarget",
    "PredicateTrackingGuidance",
    "ReportPersistError",
    "compact_ranges",
]
