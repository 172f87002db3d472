"""
Similarity search over stored embeddings.

Scores a query vector against candidate rows supplied by a storage
collaborator, applies the optional threshold and returns the top results
ordered by similarity (highest first). A candidate whose stored vector
cannot be used is logged and skipped; it never aborts the query.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

import numpy as np

from kx_common.config import EngineConfig, load_config
from kx_common.errors import InvalidInputError
from kx_common.vectors import as_vector

from .metrics import SimilarityMetric, distance_to_similarity, score_matrix

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """
    A stored embedding row offered for ranking.

    `embedding` is the raw stored value (list, numpy array, JSON string or
    Firestore Vector). `distance` is an optional cosine/euclidean distance
    already computed by the vector store.
    """
    id: Any
    uri: str
    text: str
    model_name: str
    embedding: Any = None
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None
    distance: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Candidate':
        return cls(
            id=row.get('id'),
            uri=str(row.get('uri') or ''),
            text=str(row.get('text') or ''),
            model_name=str(row.get('model_name') or ''),
            embedding=row.get('embedding'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            distance=row.get('distance'),
        )

@dataclass
class SimilarityResult:
    id: Any
    uri: str
    text: str
    model_name: str
    similarity: float
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CandidateSource(Protocol):
    """Storage collaborator that yields candidate rows for a query."""

    def fetch_candidates(
        self,
        query_embedding: Sequence[float],
        model_name: str,
        metric: SimilarityMetric,
        limit: int,
        threshold: Optional[float] = None,
    ) -> Iterable[Candidate]:
        ...


def parse_embedding(raw: Any) -> np.ndarray:
    """
    Convert a stored embedding value into a float vector.

    Raises:
        InvalidInputError: If the value is missing, unparseable, empty or non-finite
    """
    if raw is None:
        raise InvalidInputError("missing embedding")

    if hasattr(raw, 'to_map_value'):
        # Firestore Vector type
        map_value = raw.to_map_value()
        raw = map_value.get('value', map_value)
    elif isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8')

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidInputError("embedding is not valid JSON", cause=e) from e

    return as_vector(raw, 'embedding')


def _to_candidate(row: Union[Candidate, Mapping[str, Any]]) -> Candidate:
    if isinstance(row, Candidate):
        return row
    if isinstance(row, Mapping):
        return Candidate.from_row(row)
    raise InvalidInputError(f"unsupported candidate type: {type(row).__name__}")


def rank_results(
    results: List[SimilarityResult],
    limit: int,
    threshold: Optional[float] = None
) -> List[SimilarityResult]:
    """Filter by threshold, sort by similarity descending (stable), truncate."""
    if threshold is not None:
        results = [r for r in results if r.similarity >= threshold]
    ranked = sorted(results, key=lambda r: r.similarity, reverse=True)
    return ranked[:limit]


def search_similar(
    query_embedding: Sequence[float],
    model_name: str,
    limit: int,
    threshold: Optional[float] = None,
    metric: Union[str, SimilarityMetric] = SimilarityMetric.COSINE,
    candidates: Optional[Iterable[Union[Candidate, Mapping[str, Any]]]] = None,
    candidate_source: Optional[CandidateSource] = None,
    config: Optional[EngineConfig] = None,
) -> List[SimilarityResult]:
    """
    Rank candidate embeddings by similarity to a query vector.

    Args:
        query_embedding: Query vector
        model_name: Only candidates produced by this model are ranked
        limit: Maximum number of results (positive)
        threshold: Drop results with similarity below this value
        metric: 'cosine', 'euclidean' or 'dot_product'
        candidates: Candidate rows (Candidate objects or dicts)
        candidate_source: Storage collaborator used when candidates is omitted
        config: Engine configuration (dot-product candidate cap)

    Returns:
        Up to `limit` SimilarityResult objects, highest similarity first

    Raises:
        InvalidInputError: On an invalid query vector, limit or arguments
        UnknownMethodError: On an unsupported metric
    """
    metric = SimilarityMetric.parse(metric)
    query = as_vector(query_embedding, 'query embedding')
    if isinstance(limit, bool) or not isinstance(limit, (int, np.integer)) or limit < 1:
        raise InvalidInputError(f"limit must be a positive integer, got {limit}")
    if threshold is not None and not np.isfinite(threshold):
        raise InvalidInputError(f"threshold must be a finite number, got {threshold}")
    if (candidates is None) == (candidate_source is None):
        raise InvalidInputError("Provide exactly one of candidates or candidate_source")

    config = config or load_config()

    if candidate_source is not None:
        candidates = candidate_source.fetch_candidates(
            query.tolist(), model_name, metric, limit, threshold
        )

    logger.info(
        f"Similarity search: metric={metric.value}, model={model_name}, "
        f"limit={limit}, threshold={threshold}"
    )

    # Slot per accepted candidate; vectors needing computation are scored in one batch
    accepted: List[Candidate] = []
    scores: List[Optional[float]] = []
    pending_slots: List[int] = []
    pending_vectors: List[np.ndarray] = []
    skipped = 0

    # Dot product ranks a bounded window of rows belonging to the requested model
    window = config.dot_product_candidate_cap if metric is SimilarityMetric.DOT_PRODUCT else None
    in_window = 0

    for position, row in enumerate(candidates):
        if window is not None and in_window >= window:
            break
        try:
            candidate = _to_candidate(row)
            if candidate.model_name != model_name:
                continue
            in_window += 1

            if candidate.distance is not None and metric is not SimilarityMetric.DOT_PRODUCT:
                score = distance_to_similarity(candidate.distance, metric)
                if not np.isfinite(score):
                    raise InvalidInputError(f"non-finite distance {candidate.distance}")
                accepted.append(candidate)
                scores.append(score)
                continue

            vector = parse_embedding(candidate.embedding)
            if vector.shape[0] != query.shape[0]:
                raise InvalidInputError(
                    f"embedding has {vector.shape[0]} dimensions, query has {query.shape[0]}"
                )
        except (InvalidInputError, TypeError, ValueError) as e:
            skipped += 1
            row_id = row.get('id') if isinstance(row, Mapping) else getattr(row, 'id', position)
            logger.warning(f"Skipping candidate {row_id}: {e}")
            continue

        pending_slots.append(len(accepted))
        pending_vectors.append(vector)
        accepted.append(candidate)
        scores.append(None)

    if pending_vectors:
        computed = score_matrix(query, np.vstack(pending_vectors), metric)
        for slot, score in zip(pending_slots, computed):
            scores[slot] = float(score)

    results = [
        SimilarityResult(
            id=candidate.id,
            uri=candidate.uri,
            text=candidate.text,
            model_name=candidate.model_name,
            similarity=score,
            created_at=candidate.created_at,
            updated_at=candidate.updated_at,
        )
        for candidate, score in zip(accepted, scores)
    ]

    ranked = rank_results(results, limit, threshold)
    logger.info(
        f"Found {len(ranked)} similar embeddings "
        f"({len(accepted)} scored, {skipped} skipped)"
    )
    return ranked
