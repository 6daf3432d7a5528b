"""
Document chunk retrieval for MemoRAG.
"""

from src.core.retrieval_store.base import RetrievalStore
from src.core.retrieval_store.qdrant import QdrantRetrievalStore

__all__ = [
    "RetrievalStore",
    "QdrantRetrievalStore",
]
