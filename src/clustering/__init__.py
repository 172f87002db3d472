"""
Clustering module for embedding point sets.

Groups stored embeddings (or externally reduced 2D/3D coordinates) with
k-means, DBSCAN or agglomerative hierarchical clustering, and can choose
the k-means / hierarchical cluster count automatically by BIC.

All algorithms are deterministic pure functions of their inputs and seed.
"""

from .types import ClusteringResult, BICScore, BICSelection, NOISE_LABEL
from .seeded_random import SeededRandom
from .kmeans import kmeans
from .dbscan import dbscan
from .hierarchical import hierarchical
from .bic import calculate_bic, find_optimal_clusters
from .dispatcher import ClusteringMethod, apply_clustering, cluster_request, describe_clustering

__all__ = [
    'ClusteringResult',
    'BICScore',
    'BICSelection',
    'NOISE_LABEL',
    'SeededRandom',
    'kmeans',
    'dbscan',
    'hierarchical',
    'calculate_bic',
    'find_optimal_clusters',
    'ClusteringMethod',
    'apply_clustering',
    'cluster_request',
    'describe_clustering',
]
