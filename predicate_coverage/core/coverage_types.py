"""Coverage Types for Predicate Tracking.

This module provides a single source of truth for the value types shared by
the catalog, the hit tracker and the reporter.

Type Hierarchy:
- Location: (class name, line number) identity used as the tracking key
- BranchTarget: one outcome line of a predicate
- PredicateTarget: a decision point with its ordered branches
- ClassCoverage: covered/uncovered tracked lines of one class
- BranchRanking: an under-covered branch with its coverage figures

"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Location:
    """Identity of a tracked source line.

    Attributes:
        class_name: Dotted name of the class (or module) containing the line
        line_number: 1-based source line number

    """

    class_name: str
    line_number: int

    @classmethod
    def from_event(cls, class_name: str, line_number: int) -> Location:
        """Build a Location from a raw trace event.

        Slash-separated internal names (``org/foo/Bar``) are normalised to
        dotted form.
        """
        return cls(class_name.replace("/", "."), line_number)

    @classmethod
    def parse(cls, text: str) -> Location:
        """Parse a ``class:line`` string.

        Raises:
            ValueError: If the text has no line part or the line is not an integer

        """
        class_name, sep, line = text.strip().rpartition(":")
        if not sep or not class_name:
            raise ValueError(f"Expected CLASS:LINE, got {text!r}")
        return cls.from_event(class_name, int(line))

    def __str__(self) -> str:
        return f"{self.class_name}:{self.line_number}"


@dataclass(frozen=True)
class BranchTarget:
    """A line reachable from a predicate, representing one of its outcomes."""

    class_name: str
    line: int
    dominance: int

    @property
    def location(self) -> Location:
        return Location(self.class_name, self.line)


@dataclass(frozen=True)
class PredicateTarget:
    """A decision point selected by static analysis for priority tracking.

    Attributes:
        class_name: Class containing the predicate
        method_name: Method containing the predicate
        predicate_line: Line of the decision itself
        dominance_score: Exploration priority weight
        branches: Outcome lines in document order

    """

    class_name: str
    method_name: str
    predicate_line: int
    dominance_score: int
    branches: tuple[BranchTarget, ...] = ()

    @property
    def location(self) -> Location:
        return Location(self.class_name, self.predicate_line)

    def locations(self) -> list[Location]:
        """Return the predicate location followed by every branch location."""
        return [self.location, *(branch.location for branch in self.branches)]

    def __str__(self) -> str:
        return (
            f"PredicateTarget(class={self.class_name}, method={self.method_name}, "
            f"line={self.predicate_line}, dominance={self.dominance_score}, "
            f"branches={len(self.branches)})"
        )


@dataclass
class ClassCoverage:
    """Covered and uncovered tracked lines of a single class."""

    covered_lines: set[int] = field(default_factory=set)
    uncovered_lines: set[int] = field(default_factory=set)

    @property
    def covered_count(self) -> int:
        return len(self.covered_lines)

    @property
    def total_tracked(self) -> int:
        return len(self.covered_lines) + len(self.uncovered_lines)


@dataclass(frozen=True)
class BranchRanking:
    """An under-covered branch together with its guarding predicate.

    Attributes:
        predicate: The guarding predicate (hit at least once)
        branch: The ranked branch
        predicate_hits: Distinct inputs that executed the predicate line
        branch_hits: Distinct inputs that executed the branch line
        branch_percentage: ``100 * branch_hits / predicate_hits``

    """

    predicate: PredicateTarget
    branch: BranchTarget
    predicate_hits: int
    branch_hits: int
    branch_percentage: float
