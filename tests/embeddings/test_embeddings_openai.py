"""
Tests for OpenAI embedder.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.core.embeddings.openai import OpenAIEmbedder
from src.utils.exceptions import EmbeddingError, ValidationError


@pytest.fixture
def openai_embedder():
    """Create OpenAI embedder for testing."""
    return OpenAIEmbedder(
        api_key="test-key",
        model="text-embedding-3-small",
        timeout=120.0
    )


def make_response(*vectors):
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    return response


def failing_transport(requests, status=500):
    """Transport that records every request and answers with a server error."""
    def handler(request):
        requests.append(request)
        return httpx.Response(status, json={"error": {"message": "upstream down"}})

    return httpx.MockTransport(handler)


@pytest.mark.unit
@pytest.mark.asyncio
class TestOpenAIEmbedder:
    """Test OpenAI embedder."""

    async def test_initialization(self, openai_embedder):
        """Test embedder initialization."""
        assert openai_embedder.model == "text-embedding-3-small"
        assert openai_embedder.client is not None

    async def test_initialization_with_base_url(self):
        """Test initialization with custom base URL."""
        embedder = OpenAIEmbedder(
            api_key="test-key",
            base_url="https://custom.openai.com"
        )
        assert embedder.client is not None

    async def test_embed(self, openai_embedder):
        """Test embedding generation."""
        with patch.object(openai_embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response([0.1, 0.2, 0.3])

            result = await openai_embedder.embed(" test text ")

            assert result == [0.1, 0.2, 0.3]
            mock_create.assert_called_once_with(
                model="text-embedding-3-small",
                input="test text"
            )

    async def test_embed_empty_text_raises(self, openai_embedder):
        with pytest.raises(ValidationError):
            await openai_embedder.embed("")

    async def test_embed_empty_data_raises(self, openai_embedder):
        with patch.object(openai_embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response()

            with pytest.raises(EmbeddingError, match="invalid data"):
                await openai_embedder.embed("test")

    async def test_embed_api_failure(self, openai_embedder):
        with patch.object(openai_embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.side_effect = RuntimeError("bad key")

            with pytest.raises(EmbeddingError, match="OpenAI embedding error"):
                await openai_embedder.embed("test")

    async def test_sdk_retries_disabled(self, openai_embedder):
        assert openai_embedder.client.max_retries == 0

    async def test_server_error_makes_three_requests(self):
        """A persistent 500 is attempted three times over the wire, no more."""
        requests = []
        embedder = OpenAIEmbedder(
            api_key="test-key",
            http_client=httpx.AsyncClient(transport=failing_transport(requests)),
        )

        try:
            with pytest.raises(EmbeddingError, match="OpenAI embedding error"):
                await embedder.embed("test")
        finally:
            await embedder.close()

        assert len(requests) == 3
        assert all(r.url.path.endswith("/embeddings") for r in requests)

    async def test_client_error_is_not_retried(self):
        requests = []
        embedder = OpenAIEmbedder(
            api_key="test-key",
            http_client=httpx.AsyncClient(transport=failing_transport(requests, status=401)),
        )

        try:
            with pytest.raises(EmbeddingError):
                await embedder.embed("test")
        finally:
            await embedder.close()

        assert len(requests) == 1

    async def test_batch_embed_single_request(self, openai_embedder):
        """All non-blank texts go out in one request."""
        with patch.object(openai_embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response([0.1], [0.2])

            results = await openai_embedder.batch_embed(["a", " ", "b"])

            assert results == [[0.1], [0.2]]
            mock_create.assert_called_once_with(model="text-embedding-3-small", input=["a", "b"])

    async def test_batch_embed_all_blank_skips_request(self, openai_embedder):
        with patch.object(openai_embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            assert await openai_embedder.batch_embed(["", "  "]) == []
            mock_create.assert_not_called()

    async def test_get_dimension_known_model(self, openai_embedder):
        assert await openai_embedder.get_dimension() == 1536

    async def test_get_dimension_unknown_model_asks_api(self):
        embedder = OpenAIEmbedder(api_key="test-key", model="custom-embed")

        with patch.object(embedder.client.embeddings, 'create', new_callable=AsyncMock) as mock_create:
            mock_create.return_value = make_response([0.0] * 256)

            assert await embedder.get_dimension() == 256

    async def test_close(self, openai_embedder):
        with patch.object(openai_embedder.client, 'close', new_callable=AsyncMock) as mock_close:
            await openai_embedder.close()
            mock_close.assert_called_once()
