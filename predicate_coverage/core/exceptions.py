"""Custom exceptions for predicate coverage tracking.

This module defines the exception hierarchy for catalog loading, target
resolution and report persistence.
"""

from typing import Any


class PredicateCoverageError(Exception):
    """Base exception for predicate coverage operations.

    Attributes:
        message: Human-readable error description
        error_code: Optional error code for categorization
        context: Additional context information

    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class CatalogLoadError(PredicateCoverageError):
    """Raised when the predicate document is unreadable or malformed."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="CATALOG_LOAD", context=context)


class ReportPersistError(PredicateCoverageError):
    """Raised when a coverage snapshot cannot be written."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="REPORT_PERSIST", context=context)


class TargetLoadError(PredicateCoverageError):
    """Raised when a replay target cannot be resolved."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="TARGET_LOAD", context=context)
