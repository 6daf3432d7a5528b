"""
Tests for semantic document search.
"""

import pytest

from src.services.search_service import SearchService
from src.utils.exceptions import ValidationError


@pytest.fixture
def search_service(embedder, rag_engine):
    return SearchService(embedder=embedder, rag=rag_engine)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSearchService:
    """Free-text chunk search."""

    async def test_search_returns_ranked_chunks(self, search_service, retrieval_store, policy_chunks):
        retrieval_store.chunks = policy_chunks

        response = await search_service.search_documents_by_text("  coffee breaks  ", limit=2)

        assert response.query == "coffee breaks"
        assert [r.id for r in response.results] == [1, 2]
        assert response.results[0].similarity > response.results[1].similarity

    async def test_query_is_trimmed_before_embedding(self, search_service, embedder):
        await search_service.search_documents_by_text("  hours ")
        assert embedder.calls == ["hours"]

    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_blank_query_rejected(self, search_service, query):
        with pytest.raises(ValidationError, match="query is required"):
            await search_service.search_documents_by_text(query)

    async def test_no_documents(self, search_service):
        response = await search_service.search_documents_by_text("anything")
        assert response.results == []
