"""
Shared building blocks for the embedding analytics packages.

Provides the exception hierarchy, environment-driven configuration and
vector validation helpers used by clustering, similarity search and the
vector store adapter.
"""

from .errors import (
    AnalyticsError,
    InvalidInputError,
    VectorDimensionMismatchError,
    UnknownMethodError,
    DegenerateCaseError,
)
from .config import EngineConfig, load_config

__all__ = [
    'AnalyticsError',
    'InvalidInputError',
    'VectorDimensionMismatchError',
    'UnknownMethodError',
    'DegenerateCaseError',
    'EngineConfig',
    'load_config',
]
