"""
Firestore candidate source for similarity search.

Reads stored embedding documents (fields: uri, text, model_name,
embedding, created_at, updated_at) and yields search candidates:
- cosine / euclidean: native FIND_NEAREST, candidates arrive pre-scored
  with the vector distance
- dot_product: plain model-filtered scan, bounded by the configured cap
  and scored in memory by the search orchestrator
"""

import logging
from typing import Any, Dict, Iterator, Optional, Sequence

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.base_vector_query import DistanceMeasure
from google.cloud.firestore_v1.vector import Vector

from kx_common.config import EngineConfig, load_config
from similarity.metrics import SimilarityMetric
from similarity.search import Candidate

logger = logging.getLogger(__name__)

# Firestore rejects find_nearest limits above 1000
MAX_NEAREST_LIMIT = 1000

DISTANCE_RESULT_FIELD = 'vector_distance'

_DISTANCE_MEASURES = {
    SimilarityMetric.COSINE: DistanceMeasure.COSINE,
    SimilarityMetric.EUCLIDEAN: DistanceMeasure.EUCLIDEAN,
}


def _timestamp(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def distance_threshold_for(metric: SimilarityMetric, threshold: Optional[float]) -> Optional[float]:
    """
    Translate a similarity threshold into a maximum vector distance.

    Returns None when the threshold cannot be pushed down to Firestore.
    """
    if threshold is None:
        return None
    if metric is SimilarityMetric.COSINE:
        return 1.0 - threshold
    if metric is SimilarityMetric.EUCLIDEAN and threshold > 0:
        return 1.0 / threshold - 1.0
    return None


class FirestoreCandidateSource:
    """
    Candidate source backed by a Firestore collection.

    Args:
        client: Firestore client (created from GCP_PROJECT if omitted)
        collection: Collection name (FIRESTORE_COLLECTION if omitted)
        config: Engine configuration
    """

    def __init__(
        self,
        client: Optional[firestore.Client] = None,
        collection: Optional[str] = None,
        config: Optional[EngineConfig] = None
    ):
        self.config = config or load_config()
        self.collection = collection or self.config.firestore_collection

        if client is None:
            logger.info(f"Initializing Firestore client for project: {self.config.gcp_project}")
            client = firestore.Client(project=self.config.gcp_project)
        self.db = client

    def _model_query(self, model_name: str):
        return self.db.collection(self.collection).where(
            filter=FieldFilter('model_name', '==', model_name)
        )

    def fetch_candidates(
        self,
        query_embedding: Sequence[float],
        model_name: str,
        metric: SimilarityMetric,
        limit: int,
        threshold: Optional[float] = None,
    ) -> Iterator[Candidate]:
        """
        Yield candidates for a similarity query.

        Args:
            query_embedding: Query vector
            model_name: Model filter
            metric: Similarity metric of the search
            limit: Number of results the caller wants
            threshold: Optional similarity threshold

        Returns:
            Iterator of Candidate rows
        """
        metric = SimilarityMetric.parse(metric)

        if metric in _DISTANCE_MEASURES:
            nearest_limit = min(limit, MAX_NEAREST_LIMIT)
            logger.info(
                f"Executing vector search in {self.collection} "
                f"(metric: {metric.value}, limit: {nearest_limit})"
            )
            vector_query = self._model_query(model_name).find_nearest(
                vector_field='embedding',
                query_vector=Vector(list(query_embedding)),
                distance_measure=_DISTANCE_MEASURES[metric],
                limit=nearest_limit,
                distance_result_field=DISTANCE_RESULT_FIELD,
                distance_threshold=distance_threshold_for(metric, threshold),
            )
            docs = vector_query.stream()
        else:
            cap = self.config.dot_product_candidate_cap
            logger.info(f"Scanning up to {cap} embeddings in {self.collection} for {metric.value}")
            docs = self._model_query(model_name).limit(cap).stream()

        for doc in docs:
            candidate = self._to_candidate(doc)
            if candidate is not None:
                yield candidate

    def _to_candidate(self, doc) -> Optional[Candidate]:
        """Convert a document snapshot; malformed documents are logged and skipped."""
        data: Dict[str, Any] = doc.to_dict() or {}
        try:
            distance = data.get(DISTANCE_RESULT_FIELD)
            return Candidate(
                id=doc.id,
                uri=str(data.get('uri') or ''),
                text=str(data.get('text') or ''),
                model_name=str(data.get('model_name') or ''),
                embedding=data.get('embedding'),
                created_at=_timestamp(data.get('created_at')),
                updated_at=_timestamp(data.get('updated_at')),
                distance=float(distance) if distance is not None else None,
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping document {doc.id}: {e}")
            return None
