"""
Storage adapters that supply candidate embeddings to similarity search.
"""

from .firestore_client import FirestoreCandidateSource

__all__ = ['FirestoreCandidateSource']
