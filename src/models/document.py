"""
Document, chunk and retrieval models.

Documents and chunk rows are registered in SQLite; chunk embeddings live in
the vector index. Chunks are immutable once ingested.
"""

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Registered source document. ``filepath`` is unique."""

    id: int
    title: str
    filepath: str


class ChunkRow(BaseModel):
    """
    A document chunk as returned by retrieval queries.

    ``distance`` is set by nearest-chunk queries (lower is closer),
    ``similarity`` by semantic search (higher is closer).
    """

    id: int
    document_id: int
    chunk_index: int
    content: str
    distance: float | None = None
    similarity: float | None = None


class RetrievalMeta(BaseModel):
    """Parameters and outcome of one RAG retrieval."""

    model_config = ConfigDict(populate_by_name=True)

    top_k: int = Field(default=0, alias="topK")
    distance_threshold: float = Field(default=0, alias="distanceThreshold")
    chunks_returned: int = Field(default=0, alias="chunksReturned")


class RetrievalResult(BaseModel):
    """
    Outcome of a thresholded nearest-chunk lookup.

    final_chunks is filtered_chunks when non-empty, else raw_chunks.
    """

    query_embedding: list[float] = Field(default_factory=list)
    raw_chunks: list[ChunkRow] = Field(default_factory=list)
    filtered_chunks: list[ChunkRow] = Field(default_factory=list)
    final_chunks: list[ChunkRow] = Field(default_factory=list)
    meta: RetrievalMeta = Field(default_factory=RetrievalMeta)


class IngestResult(BaseModel):
    """Outcome of ingesting one file."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: int = Field(..., alias="documentId")
    total_chunks: int = Field(..., alias="totalChunks")
    inserted: int
