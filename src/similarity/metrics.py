"""
Distance and similarity metrics for embedding vectors.

Three metrics are supported, selected by tag:
- cosine: similarity = 1 - cosine distance (not clamped; assumes
  unit-normalized inputs when a [0, 1] range is expected downstream)
- euclidean: similarity = 1 / (1 + distance), 1.0 for identical vectors
- dot_product: raw dot product (meaningful as similarity only for
  unit-normalized inputs)
"""

from enum import Enum
from typing import Sequence, Union

import numpy as np
from sklearn.metrics.pairwise import cosine_distances

from kx_common.errors import UnknownMethodError, VectorDimensionMismatchError
from kx_common.vectors import as_vector

VectorLike = Union[Sequence[float], np.ndarray]


class SimilarityMetric(str, Enum):
    COSINE = 'cosine'
    EUCLIDEAN = 'euclidean'
    DOT_PRODUCT = 'dot_product'

    @classmethod
    def parse(cls, tag: Union[str, 'SimilarityMetric']) -> 'SimilarityMetric':
        """
        Resolve a metric tag.

        Raises:
            UnknownMethodError: If the tag is not a supported metric
        """
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag).lower())
        except ValueError:
            supported = ', '.join(m.value for m in cls)
            raise UnknownMethodError(
                f"Unknown similarity metric: {tag}. Choose one of: {supported}",
                details={'metric': tag},
            ) from None


def _pair(a: VectorLike, b: VectorLike):
    va = as_vector(a, 'first vector')
    vb = as_vector(b, 'second vector')
    if va.shape[0] != vb.shape[0]:
        raise VectorDimensionMismatchError(va.shape[0], vb.shape[0])
    return va, vb


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    va, vb = _pair(a, b)
    return float(np.sqrt(np.sum((va - vb) ** 2)))


def cosine_distance(a: VectorLike, b: VectorLike) -> float:
    """Cosine distance; a zero-norm vector is treated as orthogonal (distance 1.0)."""
    va, vb = _pair(a, b)
    return float(cosine_distances(va.reshape(1, -1), vb.reshape(1, -1))[0, 0])


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    return 1.0 - cosine_distance(a, b)


def euclidean_similarity(a: VectorLike, b: VectorLike) -> float:
    return 1.0 / (1.0 + euclidean_distance(a, b))


def dot_product(a: VectorLike, b: VectorLike) -> float:
    va, vb = _pair(a, b)
    return float(np.dot(va, vb))


def similarity(a: VectorLike, b: VectorLike, metric: Union[str, SimilarityMetric]) -> float:
    """
    Similarity of two vectors under the given metric. Higher is more similar.

    Raises:
        VectorDimensionMismatchError: If the vectors differ in length
        InvalidInputError: If either vector is empty or non-finite
        UnknownMethodError: If the metric tag is not supported
    """
    metric = SimilarityMetric.parse(metric)
    if metric is SimilarityMetric.COSINE:
        return cosine_similarity(a, b)
    if metric is SimilarityMetric.EUCLIDEAN:
        return euclidean_similarity(a, b)
    if metric is SimilarityMetric.DOT_PRODUCT:
        return dot_product(a, b)
    raise UnknownMethodError(f"Unhandled similarity metric: {metric}")


def distance_to_similarity(distance: float, metric: Union[str, SimilarityMetric]) -> float:
    """
    Convert a distance pre-computed by the vector store into a ranking similarity.

    Only cosine and euclidean distances can be converted; dot products are
    already similarities.
    """
    metric = SimilarityMetric.parse(metric)
    if metric is SimilarityMetric.COSINE:
        return 1.0 - float(distance)
    if metric is SimilarityMetric.EUCLIDEAN:
        return 1.0 / (1.0 + float(distance))
    raise UnknownMethodError(
        f"Metric {metric.value} has no distance form",
        details={'metric': metric.value},
    )


def euclidean_distances_to(points: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Euclidean distance from every row of points to one target vector."""
    return np.sqrt(np.sum((points - target) ** 2, axis=1))


def euclidean_distance_matrix(points: np.ndarray) -> np.ndarray:
    """
    Full symmetric (n, n) Euclidean distance matrix with a zero diagonal.

    Computed row by row from exact differences, so memory stays O(n * d)
    beyond the matrix itself.
    """
    n = points.shape[0]
    matrix = np.zeros((n, n), dtype=np.float64)
    for i in range(n - 1):
        row = euclidean_distances_to(points[i + 1:], points[i])
        matrix[i, i + 1:] = row
        matrix[i + 1:, i] = row
    return matrix


def score_matrix(
    query: VectorLike,
    candidates: np.ndarray,
    metric: Union[str, SimilarityMetric]
) -> np.ndarray:
    """
    Similarity of a query against every row of an (m, d) candidate matrix.

    Same semantics as similarity(), vectorized.

    Raises:
        VectorDimensionMismatchError: If candidate width differs from the query
    """
    metric = SimilarityMetric.parse(metric)
    q = as_vector(query, 'query vector')
    if candidates.ndim != 2 or candidates.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    if candidates.shape[1] != q.shape[0]:
        raise VectorDimensionMismatchError(q.shape[0], candidates.shape[1])

    if metric is SimilarityMetric.COSINE:
        return 1.0 - cosine_distances(q.reshape(1, -1), candidates)[0]
    if metric is SimilarityMetric.EUCLIDEAN:
        return 1.0 / (1.0 + euclidean_distances_to(candidates, q))
    if metric is SimilarityMetric.DOT_PRODUCT:
        return candidates @ q
    raise UnknownMethodError(f"Unhandled similarity metric: {metric}")
