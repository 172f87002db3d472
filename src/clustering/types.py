"""Result types shared by the clustering algorithms."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List

NOISE_LABEL = -1


@dataclass
class ClusteringResult:
    """
    Cluster assignment for a point set.

    Attributes:
        labels: One label per input point, in input order. Labels are in
            [0, n_clusters) except NOISE_LABEL (-1) for DBSCAN noise points.
        n_clusters: Number of clusters (noise excluded)
    """

    labels: List[int]
    n_clusters: int

    @property
    def noise_count(self) -> int:
        return sum(1 for label in self.labels if label == NOISE_LABEL)

    def cluster_sizes(self) -> Dict[int, int]:
        """Member count per cluster label, noise excluded."""
        counts = Counter(label for label in self.labels if label != NOISE_LABEL)
        return dict(sorted(counts.items()))

    def to_dict(self) -> Dict[str, Any]:
        return {'labels': list(self.labels), 'n_clusters': self.n_clusters}


@dataclass
class BICScore:
    """BIC of a k-means fit for one cluster count. Lower is better."""
    k: int
    bic: float

    def to_dict(self) -> Dict[str, Any]:
        return {'k': self.k, 'bic': self.bic}


@dataclass
class BICSelection:
    """Outcome of a BIC sweep over a range of cluster counts."""
    optimal_k: int
    bic_scores: List[BICScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'optimal_k': self.optimal_k,
            'bic_scores': [score.to_dict() for score in self.bic_scores],
        }
