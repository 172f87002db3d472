"""
Exception hierarchy for the embedding analytics engine.

Exception Hierarchy:
    AnalyticsError (base)
    ├── InvalidInputError → VectorDimensionMismatchError
    ├── UnknownMethodError
    └── DegenerateCaseError

Validation errors also derive from ValueError so callers that already
catch ValueError around clustering keep working.

Usage:
    from kx_common.errors import InvalidInputError

    try:
        result = kmeans(points, k=3)
    except InvalidInputError as e:
        logger.warning(f"Rejected clustering request: {e}")
"""

from typing import Any, Dict, Optional


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {type(self.cause).__name__}: {self.cause})"
        return self.message


class InvalidInputError(AnalyticsError, ValueError):
    """Empty point set, k out of range, non-finite values, ragged vectors."""
    pass


class VectorDimensionMismatchError(InvalidInputError):
    """Two vectors compared with each other have different lengths."""

    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        super().__init__(
            message or f"Vector dimension mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class UnknownMethodError(AnalyticsError, ValueError):
    """Unrecognized clustering method or similarity metric tag."""
    pass


class DegenerateCaseError(AnalyticsError):
    """Computation is mathematically undefined for the given data (e.g. BIC variance <= 0)."""
    pass
