"""
Automatic cluster-count selection using the Bayesian Information Criterion.

For every k in [min_k, max_k] a k-means fit is scored with

    variance      = WCSS / (n - k)
    logLikelihood = -n * ln(variance) / 2
    numParams     = k * d + k
    BIC           = -2 * logLikelihood + ln(n) * numParams

and the k with the lowest BIC is chosen (the smallest k wins ties).
"""

import logging
import math
from typing import Sequence

import numpy as np

from kx_common.errors import DegenerateCaseError, InvalidInputError
from kx_common.vectors import as_point_matrix

from .kmeans import kmeans
from .types import BICScore, BICSelection

logger = logging.getLogger(__name__)


def within_cluster_sum_of_squares(matrix: np.ndarray, labels: Sequence[int]) -> float:
    """Sum of squared distances from each point to the mean of its cluster."""
    label_array = np.asarray(labels)
    wcss = 0.0
    for label in np.unique(label_array):
        members = matrix[label_array == label]
        centroid = members.mean(axis=0)
        wcss += float(np.sum((members - centroid) ** 2))
    return wcss


def calculate_bic(
    points: Sequence[Sequence[float]],
    labels: Sequence[int],
    k: int,
) -> float:
    """
    BIC of a clustering under a spherical Gaussian model. Lower is better.

    Raises:
        InvalidInputError: If labels do not match the points or n <= k
        DegenerateCaseError: If the variance estimate is not positive
            (e.g. every point sits exactly on its centroid)
    """
    matrix = as_point_matrix(points)
    n, dim = matrix.shape
    if len(labels) != n:
        raise InvalidInputError(f"Got {len(labels)} labels for {n} points")
    if n <= k:
        raise InvalidInputError(
            f"BIC needs more points than clusters: n={n}, k={k}",
            details={'n_points': n, 'k': k},
        )

    wcss = within_cluster_sum_of_squares(matrix, labels)
    variance = wcss / (n - k)
    if not variance > 0:
        raise DegenerateCaseError(
            f"BIC is undefined for k={k}: within-cluster variance is {variance}",
            details={'k': k, 'wcss': wcss},
        )

    log_likelihood = -n * math.log(variance) / 2
    num_params = k * dim + k
    return -2 * log_likelihood + math.log(n) * num_params


def find_optimal_clusters(
    points: Sequence[Sequence[float]],
    min_k: int = 2,
    max_k: int = 10,
    seed: int = 42,
    max_iterations: int = 50,
) -> BICSelection:
    """
    Run k-means for every k in [min_k, max_k] and pick the lowest BIC.

    Args:
        points: Point set (n x d), n > max_k
        min_k: Smallest cluster count to test
        max_k: Largest cluster count to test
        seed: Seed passed to every k-means run
        max_iterations: Reduced k-means budget for the sweep

    Returns:
        BICSelection with the optimal k and every tested (k, bic) pair

    Raises:
        InvalidInputError: On an invalid k range or too few points
        DegenerateCaseError: If some k yields zero within-cluster variance
    """
    matrix = as_point_matrix(points)
    n = matrix.shape[0]
    if n == 0:
        raise InvalidInputError("Cannot select cluster count for empty dataset")
    if min_k < 1:
        raise InvalidInputError(f"min_k must be at least 1, got {min_k}")
    if min_k > max_k:
        raise InvalidInputError(f"min_k ({min_k}) cannot exceed max_k ({max_k})")
    if n <= max_k:
        raise InvalidInputError(
            f"BIC selection needs more points than max_k: n={n}, max_k={max_k}",
            details={'n_points': n, 'max_k': max_k},
        )

    logger.info(f"Selecting cluster count by BIC for {n} points, k in [{min_k}, {max_k}]")

    bic_scores = []
    optimal_k = min_k
    lowest_bic = math.inf

    for k in range(min_k, max_k + 1):
        result = kmeans(matrix, k, max_iterations=max_iterations, seed=seed)
        bic = calculate_bic(matrix, result.labels, k)
        bic_scores.append(BICScore(k=k, bic=bic))

        if bic < lowest_bic:
            lowest_bic = bic
            optimal_k = k

    logger.info(f"Optimal cluster count: k={optimal_k} (BIC={lowest_bic:.3f})")

    return BICSelection(optimal_k=optimal_k, bic_scores=bic_scores)
