"""
Engine configuration.

Defaults for clustering and similarity search, overridable through
environment variables. Read once per call site via load_config(); nothing
is cached at module level.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


DEFAULT_SEED = 42
DEFAULT_KMEANS_MAX_ITERATIONS = 100
DEFAULT_BIC_MAX_ITERATIONS = 50
DEFAULT_N_CLUSTERS = 5
DEFAULT_MIN_CLUSTERS = 2
DEFAULT_MAX_CLUSTERS = 10
DEFAULT_DBSCAN_EPS = 0.5
DEFAULT_DBSCAN_MIN_SAMPLES = 5

# Dot product has no native vector index path, so it is ranked over a
# bounded in-memory window of candidate rows.
DEFAULT_DOT_PRODUCT_CANDIDATE_CAP = 10_000

DEFAULT_FIRESTORE_COLLECTION = 'embeddings'


@dataclass(frozen=True)
class EngineConfig:
    """Tunable defaults for the analytics engine."""
    default_seed: int = DEFAULT_SEED
    kmeans_max_iterations: int = DEFAULT_KMEANS_MAX_ITERATIONS
    bic_max_iterations: int = DEFAULT_BIC_MAX_ITERATIONS
    default_n_clusters: int = DEFAULT_N_CLUSTERS
    default_min_clusters: int = DEFAULT_MIN_CLUSTERS
    default_max_clusters: int = DEFAULT_MAX_CLUSTERS
    dbscan_default_eps: float = DEFAULT_DBSCAN_EPS
    dbscan_default_min_samples: int = DEFAULT_DBSCAN_MIN_SAMPLES
    dot_product_candidate_cap: int = DEFAULT_DOT_PRODUCT_CANDIDATE_CAP
    firestore_collection: str = DEFAULT_FIRESTORE_COLLECTION
    gcp_project: Optional[str] = None


def _env_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key}: '{value}', using default {default}")
        return default


def _env_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid number for {key}: '{value}', using default {default}")
        return default


def load_config() -> EngineConfig:
    """
    Build engine configuration from environment variables.

    Environment variables:
        CLUSTERING_DEFAULT_SEED: Seed used when a request omits one
        KMEANS_MAX_ITERATIONS: Lloyd iteration budget for k-means
        BIC_MAX_ITERATIONS: Reduced k-means budget used while scoring BIC
        DEFAULT_N_CLUSTERS / DEFAULT_MIN_CLUSTERS / DEFAULT_MAX_CLUSTERS
        DBSCAN_DEFAULT_EPS / DBSCAN_DEFAULT_MIN_SAMPLES
        DOT_PRODUCT_CANDIDATE_CAP: Max rows scored in memory for dot_product
        FIRESTORE_COLLECTION: Collection holding stored embeddings
        GCP_PROJECT: Google Cloud project for the Firestore client

    Returns:
        EngineConfig
    """
    cap = _env_int('DOT_PRODUCT_CANDIDATE_CAP', DEFAULT_DOT_PRODUCT_CANDIDATE_CAP)
    if cap < 1:
        logger.warning(
            f"DOT_PRODUCT_CANDIDATE_CAP must be positive, got {cap}; "
            f"using default {DEFAULT_DOT_PRODUCT_CANDIDATE_CAP}"
        )
        cap = DEFAULT_DOT_PRODUCT_CANDIDATE_CAP

    return EngineConfig(
        default_seed=_env_int('CLUSTERING_DEFAULT_SEED', DEFAULT_SEED),
        kmeans_max_iterations=_env_int('KMEANS_MAX_ITERATIONS', DEFAULT_KMEANS_MAX_ITERATIONS),
        bic_max_iterations=_env_int('BIC_MAX_ITERATIONS', DEFAULT_BIC_MAX_ITERATIONS),
        default_n_clusters=_env_int('DEFAULT_N_CLUSTERS', DEFAULT_N_CLUSTERS),
        default_min_clusters=_env_int('DEFAULT_MIN_CLUSTERS', DEFAULT_MIN_CLUSTERS),
        default_max_clusters=_env_int('DEFAULT_MAX_CLUSTERS', DEFAULT_MAX_CLUSTERS),
        dbscan_default_eps=_env_float('DBSCAN_DEFAULT_EPS', DEFAULT_DBSCAN_EPS),
        dbscan_default_min_samples=_env_int('DBSCAN_DEFAULT_MIN_SAMPLES', DEFAULT_DBSCAN_MIN_SAMPLES),
        dot_product_candidate_cap=cap,
        firestore_collection=os.environ.get('FIRESTORE_COLLECTION', DEFAULT_FIRESTORE_COLLECTION),
        gcp_project=os.environ.get('GCP_PROJECT'),
    )
