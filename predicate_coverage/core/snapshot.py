"""Coverage snapshot document models.

The snapshot is the machine-readable result of a run: total input count,
per-predicate hit counts in catalog order, and a per-class summary of
covered/uncovered tracked lines as compact range strings. Field aliases give
the camelCase keys of the persisted JSON.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from predicate_coverage.core.constants import SNAPSHOT_INDENT


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BranchCoverageRecord(_SnapshotModel):
    line: int
    dominance: int
    inputs: int


class PredicateCoverageRecord(_SnapshotModel):
    class_name: str = Field(alias="class")
    method: str
    predicate_line: int = Field(alias="predicateLine")
    dominance_score: int = Field(alias="dominanceScore")
    predicate_inputs: int = Field(alias="predicateInputs")
    branches: list[BranchCoverageRecord] = Field(default_factory=list)


class ClassSummaryRecord(_SnapshotModel):
    class_name: str = Field(alias="class")
    covered_lines: str = Field(alias="coveredLines")
    uncovered_lines: str = Field(alias="uncoveredLines")
    covered_count: int = Field(alias="coveredCount")
    total_tracked: int = Field(alias="totalTracked")


class CoverageSnapshot(_SnapshotModel):
    """Persisted line coverage statistics of one run."""

    total_inputs: int = Field(alias="totalInputs")
    line_coverage: list[PredicateCoverageRecord] = Field(
        default_factory=list, alias="lineCoverage"
    )
    coverage_summary: list[ClassSummaryRecord] = Field(
        default_factory=list, alias="coverageSummary"
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=SNAPSHOT_INDENT)

    @classmethod
    def load(cls, path: str | Path) -> CoverageSnapshot:
        """Read a snapshot written by ``CoverageReporter.export_snapshot``.

        Raises:
            OSError: If the file cannot be read
            pydantic.ValidationError: If the file is not a coverage snapshot

        """
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
