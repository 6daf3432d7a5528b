"""
Ollama embedder using native ollama-python SDK.
"""

import asyncio
import time

import ollama

from src.core.embeddings.base import Embedder
from src.utils.exceptions import EmbeddingError, ValidationError
from src.utils.logger import log_event
from src.utils.retry import with_retry


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for local embedding models.

    Supports models like nomic-embed-text, mxbai-embed-large, etc.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 60.0,
        concurrency: int = 8,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds
            concurrency: Concurrent requests used by batch_embed
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.concurrency = concurrency
        self._dimension = None

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Embed one text with Ollama.

        Raises:
            ValidationError: If text is empty after trimming
            EmbeddingError: If Ollama embedding fails
        """
        normalized = self.normalize(text)
        if not normalized:
            raise ValidationError("Cannot embed empty text")

        started = time.perf_counter()
        try:
            response = await with_retry(
                lambda: self.client.embeddings(model=self.model, prompt=normalized, **kwargs),
                "ollama.embeddings",
            )

            if not response or "embedding" not in response:
                raise EmbeddingError("Ollama returned invalid embedding response")

            embedding = list(response["embedding"])
        except Exception as e:
            log_event(
                "EMBEDDING_FAILURE",
                level="ERROR",
                model=self.model,
                host=self.host,
                duration_ms=int((time.perf_counter() - started) * 1000),
                message=str(e),
                name=type(e).__name__,
            )
            if isinstance(e, EmbeddingError):
                raise
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

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
        Embed many texts with bounded concurrency.

        Ollama has no batch endpoint, so requests are fanned out in groups of
        ``concurrency``. Blank texts are dropped.
        """
        non_empty = [t for t in (self.normalize(t) for t in texts) if t]
        embeddings = []

        for i in range(0, len(non_empty), self.concurrency):
            batch = non_empty[i : i + self.concurrency]
            tasks = [self.embed(text, **kwargs) for text in batch]
            embeddings.extend(await asyncio.gather(*tasks))

        return embeddings

    async def get_dimension(self) -> int:
        """Get embedding dimension, cached after the first lookup."""
        if self._dimension is None:
            self._dimension = await super().get_dimension()
        return self._dimension

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
