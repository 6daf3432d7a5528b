"""
Embedding provider interface.

Questions, memory contents and document chunks all go through the same
embedder, so memory and chunk vectors share one dimension.
"""

from abc import ABC, abstractmethod


class Embedder(ABC):
    """
    Turns text into vectors.

    Input is trimmed before it is sent; blank input is a ValidationError for
    ``embed`` and is skipped by ``batch_embed``.
    """

    @staticmethod
    def normalize(text: str | None) -> str:
        return (text or "").strip()

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Embed one text.

        Raises:
            ValidationError: If text is blank
            EmbeddingError: If the provider call fails after retries
        """
        pass

    async def batch_embed(self, texts: list[str], **kwargs) -> list[list[float]]:
        """
        Embed many texts, one call each.

        Vectors come back in the order of the non-blank inputs. Providers
        with a batch endpoint override this.
        """
        vectors = []
        for text in texts:
            if self.normalize(text):
                vectors.append(await self.embed(text, **kwargs))
        return vectors

    async def get_dimension(self) -> int:
        """Vector length, found by embedding a short sample text."""
        return len(await self.embed("dimension check"))

    @abstractmethod
    async def close(self):
        pass
