"""
Similarity search module for stored embeddings.

Provides cosine, euclidean and dot-product metrics and a search
orchestrator that ranks candidate rows from a storage collaborator.
"""

from .metrics import (
    SimilarityMetric,
    cosine_distance,
    cosine_similarity,
    dot_product,
    euclidean_distance,
    euclidean_similarity,
    similarity,
    score_matrix,
)
from .search import Candidate, SimilarityResult, search_similar

__all__ = [
    'SimilarityMetric',
    'cosine_distance',
    'cosine_similarity',
    'dot_product',
    'euclidean_distance',
    'euclidean_similarity',
    'similarity',
    'score_matrix',
    'Candidate',
    'SimilarityResult',
    'search_similar',
]
