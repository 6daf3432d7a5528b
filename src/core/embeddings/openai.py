"""
OpenAI embedder using official SDK.
"""

import time

import httpx
from openai import AsyncOpenAI

from src.core.embeddings.base import Embedder
from src.utils.exceptions import EmbeddingError, ValidationError
from src.utils.logger import log_event
from src.utils.retry import with_retry


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for questions, memories and document chunks.

    Every request goes through the bounded retry policy; failures that survive
    it are logged as EMBEDDING_FAILURE and wrapped in EmbeddingError.
    """

    # Known dimensions for OpenAI embedding models
    _MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client
        """
        self.model = model

        # with_retry is the only retry layer
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Embed one text.

        Raises:
            ValidationError: If text is empty after trimming
            EmbeddingError: If the API call fails or returns no vector
        """
        normalized = self.normalize(text)
        if not normalized:
            raise ValidationError("Cannot embed empty text")

        started = time.perf_counter()
        try:
            response = await with_retry(
                lambda: self.client.embeddings.create(
                    model=self.model, input=normalized, **kwargs
                ),
                "embeddings.create.single",
            )

            if not response.data or not response.data[0].embedding:
                raise EmbeddingError("Embedding API returned invalid data")

            embedding = response.data[0].embedding
        except Exception as e:
            log_event(
                "EMBEDDING_FAILURE",
                level="ERROR",
                model=self.model,
                duration_ms=int((time.perf_counter() - started) * 1000),
                message=str(e),
                name=type(e).__name__,
            )
            if isinstance(e, EmbeddingError):
                raise
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        log_event(
            "EMBEDDING_SUCCESS",
            model=self.model,
            duration_ms=int((time.perf_counter() - started) * 1000),
            input_length=len(normalized),
            vector_length=len(embedding),
        )
        return embedding

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Embed many texts in a single request.

        Blank texts are dropped before the call; if nothing is left the result
        is an empty list and no request is made.

        Raises:
            EmbeddingError: If the batch request fails
        """
        non_empty = [t for t in (self.normalize(t) for t in texts) if t]
        if not non_empty:
            return []

        started = time.perf_counter()
        try:
            response = await with_retry(
                lambda: self.client.embeddings.create(
                    model=self.model, input=non_empty, **kwargs
                ),
                "embeddings.create.batch",
            )
        except Exception as e:
            log_event(
                "EMBEDDING_BATCH_FAILURE",
                level="ERROR",
                model=self.model,
                duration_ms=int((time.perf_counter() - started) * 1000),
                batch_size=len(non_empty),
                message=str(e),
                name=type(e).__name__,
            )
            raise EmbeddingError(f"OpenAI batch embedding error: {e}") from e

        embeddings = [item.embedding for item in response.data]
        log_event(
            "EMBEDDING_BATCH_SUCCESS",
            model=self.model,
            duration_ms=int((time.perf_counter() - started) * 1000),
            batch_size=len(non_empty),
            vector_length=len(embeddings[0]) if embeddings else 0,
        )
        return embeddings

    async def get_dimension(self) -> int:
        """
        Get embedding dimension.

        Uses known dimensions for OpenAI models, probing otherwise.
        """
        if self.model in self._MODEL_DIMENSIONS:
            return self._MODEL_DIMENSIONS[self.model]

        return await super().get_dimension()

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
