"""Shared constants for predicate coverage tracking and reporting."""

from __future__ import annotations

from typing import Final

#: Minimum seconds between two live dashboard renders
STATS_REFRESH_INTERVAL: Final[float] = 0.3

#: Number of under-covered branches listed by default
DEFAULT_TOP_K: Final[int] = 5

#: Number of highest-dominance predicates shown on the dashboard
TOP_PREDICATES_SHOWN: Final[int] = 5

#: Top-level key holding the predicate records in the catalog document
PREDICATES_KEY: Final[str] = "predicates"

#: Input ID reported while no input is active
NO_ACTIVE_INPUT: Final[int] = 0

#: Indentation of the persisted JSON snapshot
SNAPSHOT_INDENT: Final[int] = 2
