"""
DBSCAN density-based clustering with brute-force Euclidean neighborhoods.

Clusters are discovered in point index order, so labels are deterministic
for a given input ordering. Points that belong to no dense region keep the
noise label (-1).
"""

import logging
from typing import List, Sequence

import numpy as np

from kx_common.errors import InvalidInputError
from kx_common.vectors import as_point_matrix
from similarity.metrics import euclidean_distances_to

from .types import ClusteringResult, NOISE_LABEL

logger = logging.getLogger(__name__)


def region_query(matrix: np.ndarray, index: int, eps: float) -> List[int]:
    """Indices of all points within eps of points[index], excluding itself."""
    distances = euclidean_distances_to(matrix, matrix[index])
    within = np.flatnonzero(distances <= eps)
    return [int(i) for i in within if i != index]


def dbscan(
    points: Sequence[Sequence[float]],
    eps: float,
    min_samples: int,
) -> ClusteringResult:
    """
    Cluster points by density.

    A point is a core point when its eps-neighborhood, counting the point
    itself, holds at least min_samples points.

    Args:
        points: Point set (n x d)
        eps: Neighborhood radius (inclusive)
        min_samples: Minimum neighborhood size for a core point

    Returns:
        ClusteringResult with labels in {-1} U [0, n_clusters)

    Raises:
        InvalidInputError: On an empty dataset or invalid parameters
    """
    matrix = as_point_matrix(points)
    n = matrix.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot perform DBSCAN on empty dataset")
    if eps is None or not np.isfinite(eps) or eps < 0:
        raise InvalidInputError(f"eps must be a non-negative number, got {eps}")
    if int(min_samples) != min_samples or min_samples < 1:
        raise InvalidInputError(f"min_samples must be a positive integer, got {min_samples}")

    def is_core(neighbors: List[int]) -> bool:
        return len(neighbors) + 1 >= min_samples

    labels = [NOISE_LABEL] * n
    cluster_id = 0

    for i in range(n):
        if labels[i] != NOISE_LABEL:
            continue

        neighbors = region_query(matrix, i, eps)
        if not is_core(neighbors):
            continue  # provisional noise, may be absorbed as a border point later

        labels[i] = cluster_id
        seeds = list(neighbors)

        # seeds grows while iterating
        j = 0
        while j < len(seeds):
            neighbor = seeds[j]
            j += 1

            if labels[neighbor] != NOISE_LABEL:
                continue

            labels[neighbor] = cluster_id
            neighbor_neighbors = region_query(matrix, neighbor, eps)
            if is_core(neighbor_neighbors):
                seeds.extend(neighbor_neighbors)

        cluster_id += 1

    result = ClusteringResult(labels=labels, n_clusters=cluster_id)
    logger.debug(
        f"DBSCAN finished: eps={eps}, min_samples={min_samples}, "
        f"{result.n_clusters} clusters, {result.noise_count} noise points"
    )
    return result
