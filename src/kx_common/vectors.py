"""
Validation helpers that turn caller-supplied sequences into numpy arrays.

Inputs are copied into new float64 arrays, so the caller's data is never
modified by the algorithms downstream.
"""

from typing import Sequence

import numpy as np

from .errors import InvalidInputError


def as_vector(values: Sequence[float], name: str = 'vector') -> np.ndarray:
    """
    Convert a single vector to a 1D float64 array.

    Raises:
        InvalidInputError: If the vector is empty, not 1D, or has non-finite values
    """
    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} is not a numeric vector", cause=e) from e

    if vector.ndim != 1:
        raise InvalidInputError(f"{name} must be 1D, got shape {vector.shape}")
    if vector.size == 0:
        raise InvalidInputError(f"{name} is empty")
    if not np.all(np.isfinite(vector)):
        raise InvalidInputError(f"{name} contains non-finite values")

    return vector


def as_point_matrix(points: Sequence[Sequence[float]], name: str = 'points') -> np.ndarray:
    """
    Convert a point set to an (n, d) float64 array.

    An empty point set becomes an array of shape (0, 0); callers decide
    whether that is an error.

    Raises:
        InvalidInputError: If points are ragged, zero-dimensional, or non-finite
    """
    if isinstance(points, np.ndarray):
        if points.size == 0 and points.ndim <= 2:
            return np.zeros((0, 0), dtype=np.float64)
        if points.ndim != 2:
            raise InvalidInputError(f"{name} must be a 2D array, got shape {points.shape}")
    elif len(points) == 0:
        return np.zeros((0, 0), dtype=np.float64)

    first = points[0]
    if not hasattr(first, '__len__') or isinstance(first, str):
        raise InvalidInputError(f"{name} must be a sequence of vectors")
    dim = len(first)
    for i, point in enumerate(points):
        if not hasattr(point, '__len__') or isinstance(point, str):
            raise InvalidInputError(f"{name} must be a sequence of vectors (bad index {i})")
        if len(point) != dim:
            raise InvalidInputError(
                f"All {name} must have the same dimension: point 0 has {dim}, "
                f"point {i} has {len(point)}",
                details={'index': i, 'expected': dim, 'actual': len(point)},
            )

    try:
        matrix = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must contain only numbers", cause=e) from e

    if matrix.ndim != 2:
        raise InvalidInputError(f"{name} must be a 2D array, got shape {matrix.shape}")
    if matrix.shape[1] == 0:
        raise InvalidInputError(f"{name} must have at least one dimension")
    if not np.all(np.isfinite(matrix)):
        bad_rows = np.where(~np.all(np.isfinite(matrix), axis=1))[0]
        raise InvalidInputError(
            f"{name} contain non-finite values (first bad index: {int(bad_rows[0])})",
            details={'indices': bad_rows[:10].tolist()},
        )

    return matrix
