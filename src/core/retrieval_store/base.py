"""
Base interface for document chunk retrieval.
"""

from abc import ABC, abstractmethod

from src.models.document import ChunkRow


class RetrievalStore(ABC):
    """
    Abstract base class for chunk vector indices.

    Chunks are immutable once written. Two query modes are exposed: raw
    distance (for thresholded RAG) and similarity (for semantic search).
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Create the chunk index if missing.

        Raises:
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def query_chunks_by_embedding(
        self, query_embedding: list[float], top_k: int
    ) -> list[ChunkRow]:
        """
        Fetch the nearest chunks by raw vector distance.

        Args:
            query_embedding: Query vector
            top_k: Maximum chunks

        Returns:
            Chunks with ``distance`` set, ascending
        """
        pass

    @abstractmethod
    async def semantic_search(
        self, query_embedding: list[float], limit: int = 5
    ) -> list[ChunkRow]:
        """
        Rank chunks by similarity.

        Returns:
            Chunks with ``similarity`` set, descending
        """
        pass

    @abstractmethod
    async def upsert_chunks(
        self, chunks: list[ChunkRow], embeddings: list[list[float]]
    ) -> int:
        """
        Index chunks with their embeddings (same order).

        Returns:
            Number of chunks written

        Raises:
            ValidationError: If the lists differ in length
            VectorStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        pass
