"""
RAG retrieval engine.

Thresholded nearest-chunk lookup with a fallback: when no chunk is within
the distance threshold the unfiltered nearest chunks are used instead.
"""

from src.core.retrieval_store.base import RetrievalStore
from src.models.document import ChunkRow, RetrievalMeta, RetrievalResult
from src.utils.logger import log_event

CONTEXT_SEPARATOR = "\n---\n"


def filter_by_distance(chunks: list[ChunkRow], distance_threshold: float) -> list[ChunkRow]:
    """Keep chunks with a numeric distance at or below the threshold."""
    return [c for c in chunks if c.distance is not None and c.distance <= distance_threshold]


def build_context(chunks: list[ChunkRow]) -> str:
    """Join chunk contents for a prompt; empty list gives an empty string."""
    if not chunks:
        return ""
    return CONTEXT_SEPARATOR.join(c.content for c in chunks)


class RAGEngine:
    """Document retrieval over a RetrievalStore."""

    def __init__(
        self,
        store: RetrievalStore,
        top_k: int = 5,
        distance_threshold: float = 1.2,
    ):
        """
        Initialize RAG engine.

        Args:
            store: Chunk index
            top_k: Default number of chunks fetched
            distance_threshold: Default maximum distance kept
        """
        self.store = store
        self.top_k = top_k
        self.distance_threshold = distance_threshold

    async def retrieve(
        self,
        query_embedding: list[float],
        top_k: int | None = None,
        distance_threshold: float | None = None,
    ) -> RetrievalResult:
        """
        Fetch context chunks for a query vector.

        Returns:
            RetrievalResult whose final_chunks are the filtered chunks when any
            passed the threshold, else the raw nearest chunks
        """
        top_k = self.top_k if top_k is None else top_k
        if distance_threshold is None:
            distance_threshold = self.distance_threshold

        raw = await self.store.query_chunks_by_embedding(query_embedding, top_k)
        filtered = filter_by_distance(raw, distance_threshold)
        final = filtered if filtered else raw

        log_event(
            "RAG_RETRIEVE",
            top_k=top_k,
            distance_threshold=distance_threshold,
            raw_count=len(raw),
            filtered_count=len(filtered),
            final_count=len(final),
        )

        return RetrievalResult(
            query_embedding=query_embedding,
            raw_chunks=raw,
            filtered_chunks=filtered,
            final_chunks=final,
            meta=RetrievalMeta(
                top_k=top_k,
                distance_threshold=distance_threshold,
                chunks_returned=len(final),
            ),
        )

    build_context = staticmethod(build_context)

    async def semantic_search(self, query_embedding: list[float], limit: int = 5) -> list[ChunkRow]:
        """Chunks ranked by similarity, no threshold."""
        rows = await self.store.semantic_search(query_embedding, limit)
        log_event("RAG_SEMANTIC_SEARCH", limit=limit, returned=len(rows))
        return rows
