"""Predicate Catalog - Static-analysis targets for coverage tracking.

Loads the predicate/branch document produced by static analysis and exposes
it as an immutable, dominance-ordered catalog. The catalog also derives the
allow-list of Locations that the hit tracker records.

Expected document format:

    {
      "predicates": [
        {
          "class": "com.example.MyClass",
          "method": "myMethod",
          "line": 42,
          "dominanceScore": 15,
          "branches": [
            {"class": "com.example.MyClass", "line": 45, "dominance": 3},
            {"class": "com.example.MyClass", "line": 50, "dominance": 10}
          ]
        }
      ]
    }
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import IO, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from predicate_coverage.core.constants import PREDICATES_KEY
from predicate_coverage.core.coverage_types import (
    BranchTarget,
    Location,
    PredicateTarget,
)
from predicate_coverage.core.exceptions import CatalogLoadError
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


class BranchRecord(BaseModel):
    """Branch entry as it appears in the predicate document."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    class_name: str = Field(alias="class")
    line: int
    dominance: int


class PredicateRecord(BaseModel):
    """Predicate entry as it appears in the predicate document."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    class_name: str = Field(alias="class")
    method: str
    line: int
    dominance_score: int = Field(alias="dominanceScore")
    branches: list[BranchRecord] | None = None

    def to_target(self) -> PredicateTarget:
        return PredicateTarget(
            class_name=self.class_name,
            method_name=self.method,
            predicate_line=self.line,
            dominance_score=self.dominance_score,
            branches=tuple(
                BranchTarget(b.class_name, b.line, b.dominance)
                for b in self.branches or ()
            ),
        )


class CatalogDocument(BaseModel):
    """Top-level predicate document. A missing collection means no targets."""

    model_config = ConfigDict(extra="ignore")

    predicates: list[PredicateRecord] | None = Field(default=None, alias=PREDICATES_KEY)


class PredicateCatalog:
    """Immutable, dominance-ordered collection of predicate targets.

    Predicates are sorted by dominance score, highest first. Predicates with
    equal scores keep the order in which they were supplied.
    """

    def __init__(self, predicates: Iterable[PredicateTarget] = ()) -> None:
        self._predicates: tuple[PredicateTarget, ...] = tuple(
            sorted(predicates, key=lambda p: -p.dominance_score)
        )
        self._tracked: frozenset[Location] = frozenset(
            location for pred in self._predicates for location in pred.locations()
        )

    @classmethod
    def load(
        cls, source: str | Path | IO[str] | Mapping[str, Any]
    ) -> PredicateCatalog:
        """Load a catalog from a predicate document.

        Args:
            source: Path to a JSON file, an open text stream, or an
                already-parsed document

        Returns:
            Catalog with predicates sorted by dominance score (highest first)

        Raises:
            CatalogLoadError: If the document is unreadable or malformed

        """
        document = cls._read_document(source)
        if not isinstance(document, Mapping):
            raise CatalogLoadError(
                "Predicate document must be a JSON object",
                context={"type": type(document).__name__},
            )

        try:
            parsed = CatalogDocument.model_validate(document)
        except ValidationError as e:
            raise CatalogLoadError(
                f"Invalid predicate record: {e.error_count()} validation error(s)",
                context={"errors": e.errors(include_url=False, include_input=False)},
            ) from e

        catalog = cls(record.to_target() for record in parsed.predicates or ())
        logger.info(
            "catalog_loaded",
            predicates=len(catalog),
            tracked_locations=len(catalog.tracked_locations()),
        )
        return catalog

    @staticmethod
    def _read_document(source: str | Path | IO[str] | Mapping[str, Any]) -> Any:
        if isinstance(source, Mapping):
            return source

        try:
            if isinstance(source, (str, Path)):
                with open(source, encoding="utf-8") as f:
                    return json.load(f)
            return json.load(source)
        except OSError as e:
            raise CatalogLoadError(
                f"Cannot read predicate file: {e}", context={"source": str(source)}
            ) from e
        except UnicodeDecodeError as e:
            raise CatalogLoadError(
                f"Predicate file is not valid UTF-8: {e}",
                context={"source": str(source), "position": e.start},
            ) from e
        except json.JSONDecodeError as e:
            raise CatalogLoadError(
                f"Predicate file is not valid JSON: {e}",
                context={"line": e.lineno, "column": e.colno},
            ) from e

    @property
    def predicates(self) -> tuple[PredicateTarget, ...]:
        return self._predicates

    def tracked_locations(self) -> frozenset[Location]:
        """Every predicate and branch Location in the catalog."""
        return self._tracked

    def total_tracked_lines(self) -> int:
        """Count of predicate lines plus branch lines, one per catalog entry."""
        return sum(1 + len(pred.branches) for pred in self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)

    def __iter__(self) -> Iterator[PredicateTarget]:
        return iter(self._predicates)

    def __getitem__(self, index: int) -> PredicateTarget:
        return self._predicates[index]
