"""
K-means clustering (Lloyd's algorithm) with seeded initialization.

Initial centroids are k distinct points drawn with the mulberry32 source,
so identical points and seed always give identical labels.
"""

import logging
from typing import Sequence

import numpy as np

from kx_common.errors import InvalidInputError
from kx_common.vectors import as_point_matrix
from similarity.metrics import euclidean_distances_to

from .seeded_random import SeededRandom
from .types import ClusteringResult

logger = logging.getLogger(__name__)


def _validate(matrix: np.ndarray, k: int, max_iterations: int):
    n = matrix.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot perform k-means on empty dataset")
    if int(k) != k or k < 1:
        raise InvalidInputError(f"k must be a positive integer, got {k}")
    if k > n:
        raise InvalidInputError(
            f"k ({k}) cannot exceed the number of points ({n})",
            details={'k': k, 'n_points': n},
        )
    if max_iterations < 1:
        raise InvalidInputError(f"max_iterations must be at least 1, got {max_iterations}")


def _assign(matrix: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Nearest centroid per point; argmin keeps the lowest index on ties."""
    distances = np.column_stack([
        euclidean_distances_to(matrix, centroid) for centroid in centroids
    ])
    return np.argmin(distances, axis=1)


def kmeans(
    points: Sequence[Sequence[float]],
    k: int,
    max_iterations: int = 100,
    seed: int = 42,
) -> ClusteringResult:
    """
    Partition points into k clusters.

    Args:
        points: Point set (n x d)
        k: Number of clusters, 1 <= k <= n
        max_iterations: Maximum assignment/update rounds
        seed: Seed for centroid initialization

    Returns:
        ClusteringResult with labels in [0, k)

    Raises:
        InvalidInputError: On an empty dataset, k out of range, or bad points
    """
    matrix = as_point_matrix(points)
    _validate(matrix, k, max_iterations)
    k = int(k)
    n = matrix.shape[0]

    rng = SeededRandom(seed)
    seed_indices = rng.sample_distinct_indices(n, k)
    centroids = matrix[seed_indices].copy()

    labels = np.zeros(n, dtype=np.int64)
    changed = True
    iterations = 0

    while changed and iterations < max_iterations:
        iterations += 1

        new_labels = _assign(matrix, centroids)
        changed = bool(np.any(new_labels != labels))
        labels = new_labels

        for j in range(k):
            mask = labels == j
            if np.any(mask):
                centroids[j] = matrix[mask].mean(axis=0)
            # empty cluster keeps its previous centroid

    logger.debug(
        f"K-means finished: k={k}, n={n}, iterations={iterations}, converged={not changed}"
    )

    return ClusteringResult(labels=[int(label) for label in labels], n_clusters=k)
