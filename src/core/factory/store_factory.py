"""
Factory for creating memory, chunk and document stores.
"""

from src.config import QdrantConfig, SQLiteConfig
from src.core.document_store.sqlite_store import SQLiteDocumentStore
from src.core.memory_store.base import MemoryStore
from src.core.memory_store.qdrant import QdrantMemoryStore
from src.core.retrieval_store.base import RetrievalStore
from src.core.retrieval_store.qdrant import QdrantRetrievalStore


class StoreFactory:
    """Factory for creating storage backends from configuration."""

    @staticmethod
    def create_memory_store(config: QdrantConfig, vector_size: int) -> MemoryStore:
        """
        Create the user memory store.

        Args:
            config: Qdrant configuration
            vector_size: Embedding dimension size
        """
        return QdrantMemoryStore(
            url=config.url,
            collection_name=config.memory_collection,
            vector_size=vector_size,
            use_grpc=config.use_grpc,
            timeout=config.timeout,
        )

    @staticmethod
    def create_retrieval_store(config: QdrantConfig, vector_size: int) -> RetrievalStore:
        """
        Create the document chunk index.

        Args:
            config: Qdrant configuration
            vector_size: Embedding dimension size
        """
        return QdrantRetrievalStore(
            url=config.url,
            collection_name=config.chunk_collection,
            vector_size=vector_size,
            use_grpc=config.use_grpc,
            timeout=config.timeout,
        )

    @staticmethod
    def create_document_store(config: SQLiteConfig) -> SQLiteDocumentStore:
        """Create the document registry."""
        return SQLiteDocumentStore(db_path=config.db_path)
