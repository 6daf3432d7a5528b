"""
User memory storage for MemoRAG.

Provides the abstract store and the Qdrant implementation.
"""

from src.core.memory_store.base import MemoryStore
from src.core.memory_store.capability import LazyCapability
from src.core.memory_store.qdrant import QdrantMemoryStore

__all__ = [
    "MemoryStore",
    "LazyCapability",
    "QdrantMemoryStore",
]
