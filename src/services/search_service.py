"""
Semantic document search use case.
"""

from src.core.embeddings.base import Embedder
from src.models.chat import SearchResponse
from src.services.rag_engine import RAGEngine
from src.utils.exceptions import ValidationError


class SearchService:
    """Free-text search over document chunks, ranked by similarity."""

    def __init__(self, embedder: Embedder, rag: RAGEngine):
        self.embedder = embedder
        self.rag = rag

    async def search_documents_by_text(self, query: str, limit: int = 5) -> SearchResponse:
        """
        Embed the query and return the most similar chunks.

        Args:
            query: Search text; surrounding whitespace is ignored
            limit: Maximum chunks returned

        Returns:
            SearchResponse echoing the trimmed query

        Raises:
            ValidationError: If the query is blank
        """
        trimmed = (query or "").strip()
        if not trimmed:
            raise ValidationError("query is required")

        embedding = await self.embedder.embed(trimmed)
        results = await self.rag.semantic_search(embedding, limit)
        return SearchResponse(query=trimmed, results=results)
