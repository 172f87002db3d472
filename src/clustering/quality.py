"""
Clustering quality metrics and label mapping helpers.
"""

import logging
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np
from sklearn.metrics import silhouette_score

from kx_common.errors import InvalidInputError
from kx_common.vectors import as_point_matrix

from .types import ClusteringResult, NOISE_LABEL

logger = logging.getLogger(__name__)


def compute_quality_metrics(
    points: Sequence[Sequence[float]],
    result: ClusteringResult
) -> Dict[str, Any]:
    """
    Compute clustering quality metrics.

    Args:
        points: Points that were clustered
        result: Clustering of those points

    Returns:
        Dictionary with n_clusters, n_noise_points, silhouette_score and
        cluster size statistics

    Raises:
        InvalidInputError: If labels and points differ in length
    """
    matrix = as_point_matrix(points)
    labels = np.asarray(result.labels)
    if matrix.shape[0] != labels.shape[0]:
        raise InvalidInputError(
            f"Mismatch: {matrix.shape[0]} points but {labels.shape[0]} labels"
        )

    metrics: Dict[str, Any] = {
        'n_clusters': result.n_clusters,
        'n_noise_points': result.noise_count,
        'silhouette_score': None,
    }

    # Silhouette needs 2 <= distinct labels <= n_samples - 1, noise excluded
    mask = labels != NOISE_LABEL
    n_distinct = len(np.unique(labels[mask]))
    if 2 <= n_distinct < int(np.sum(mask)):
        score = silhouette_score(matrix[mask], labels[mask], metric='euclidean')
        metrics['silhouette_score'] = float(score)
        logger.info(f"Silhouette score: {score:.3f}")
    else:
        logger.warning("Too few clusters for silhouette score")

    cluster_sizes = list(result.cluster_sizes().values())
    if cluster_sizes:
        metrics['min_cluster_size'] = int(min(cluster_sizes))
        metrics['max_cluster_size'] = int(max(cluster_sizes))
        metrics['mean_cluster_size'] = float(np.mean(cluster_sizes))
        metrics['median_cluster_size'] = float(np.median(cluster_sizes))

    return metrics


def create_cluster_mapping(
    item_ids: Sequence[str],
    result: ClusteringResult
) -> Dict[str, str]:
    """
    Map item IDs to cluster IDs.

    Returns:
        Dictionary item_id -> "cluster-<label>", or "noise" for DBSCAN noise
    """
    if len(item_ids) != len(result.labels):
        raise InvalidInputError(
            f"Mismatch: {len(item_ids)} item IDs but {len(result.labels)} labels"
        )

    mapping = {}
    for item_id, label in zip(item_ids, result.labels):
        mapping[item_id] = "noise" if label == NOISE_LABEL else f"cluster-{label}"
    return mapping


def attach_cluster_labels(
    items: Sequence[Mapping[str, Any]],
    result: ClusteringResult
) -> List[Dict[str, Any]]:
    """Copy each per-point item and add its `cluster` label."""
    if len(items) != len(result.labels):
        raise InvalidInputError(
            f"Mismatch: {len(items)} items but {len(result.labels)} labels"
        )
    return [{**item, 'cluster': label} for item, label in zip(items, result.labels)]
