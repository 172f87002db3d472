"""
Agglomerative hierarchical clustering with single linkage.

Starts from one cluster per point and repeatedly merges the two closest
clusters. Pairs are ranked in ascending (i, j) order and the first pair at the
minimum distance is merged, so the result is deterministic for a given
input order.
"""

import logging
from typing import List, Sequence

import numpy as np

from kx_common.errors import InvalidInputError
from kx_common.vectors import as_point_matrix
from similarity.metrics import euclidean_distance_matrix

from .types import ClusteringResult

logger = logging.getLogger(__name__)


def merge_linkage(linkage: np.ndarray, i: int, j: int) -> np.ndarray:
    """
    Fold cluster j into cluster i in a single-linkage distance matrix.

    The merged row is the element-wise minimum of both rows; row and
    column j are removed so later indices shift down by one, matching
    the cluster list.
    """
    merged = np.minimum(linkage[i], linkage[j])
    linkage[i, :] = merged
    linkage[:, i] = merged
    linkage[i, i] = 0.0
    return np.delete(np.delete(linkage, j, axis=0), j, axis=1)


def hierarchical(
    points: Sequence[Sequence[float]],
    n_clusters: int,
) -> ClusteringResult:
    """
    Merge points bottom-up until n_clusters remain.

    Args:
        points: Point set (n x d)
        n_clusters: Target number of clusters, 1 <= n_clusters <= n

    Returns:
        ClusteringResult whose labels follow the final cluster list order

    Raises:
        InvalidInputError: On an empty dataset or n_clusters out of range
    """
    matrix = as_point_matrix(points)
    n = matrix.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot perform hierarchical clustering on empty dataset")
    if int(n_clusters) != n_clusters or n_clusters < 1:
        raise InvalidInputError(f"n_clusters must be a positive integer, got {n_clusters}")
    if n_clusters > n:
        raise InvalidInputError(
            f"n_clusters ({n_clusters}) cannot exceed the number of points ({n})",
            details={'n_clusters': n_clusters, 'n_points': n},
        )
    n_clusters = int(n_clusters)

    # linkage[a, b] is the single-linkage distance between clusters a and b
    linkage = euclidean_distance_matrix(matrix)
    clusters: List[List[int]] = [[i] for i in range(n)]

    while len(clusters) > n_clusters:
        # triu_indices is row-major, so argmin picks the first (i, j) at the minimum
        rows, cols = np.triu_indices(len(clusters), k=1)
        best = int(np.argmin(linkage[rows, cols]))
        merge_i, merge_j = int(rows[best]), int(cols[best])

        clusters[merge_i].extend(clusters[merge_j])
        del clusters[merge_j]
        linkage = merge_linkage(linkage, merge_i, merge_j)

    labels = [0] * n
    for cluster_index, members in enumerate(clusters):
        for point_index in members:
            labels[point_index] = cluster_index

    logger.debug(f"Hierarchical clustering finished: {n} points into {n_clusters} clusters")

    return ClusteringResult(labels=labels, n_clusters=n_clusters)
