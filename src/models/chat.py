"""
Chat and search request/response models.

JSON field names at the API boundary are camelCase; Python attributes are
snake_case. Serialize with ``model_dump(by_alias=True)``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import ChunkRow


class ChatTurn(BaseModel):
    """One message of caller-supplied history."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Input to the chat orchestrator."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    question: str
    history: list[ChatTurn] = Field(default_factory=list)
    conversation_id: int | None = Field(default=None, alias="conversationId")


class RagMeta(BaseModel):
    """RAG part of the response metadata."""

    model_config = ConfigDict(populate_by_name=True)

    top_k: int = Field(default=0, alias="topK")
    distance_threshold: float = Field(default=0, alias="distanceThreshold")
    chunks_returned: int = Field(default=0, alias="chunksReturned")


class MemoryMeta(BaseModel):
    """Memory part of the response metadata."""

    model_config = ConfigDict(populate_by_name=True)

    similar_top_k: int = Field(default=0, alias="similarTopK")
    facts_count: int = Field(default=0, alias="factsCount")


class ChatMeta(BaseModel):
    rag: RagMeta = Field(default_factory=RagMeta)
    memory: MemoryMeta = Field(default_factory=MemoryMeta)


class ChatResponse(BaseModel):
    """Output of the chat orchestrator."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    history: list[ChatTurn]
    context_used: list[ChunkRow] = Field(default_factory=list, alias="contextUsed")
    memory_used: bool = Field(default=False, alias="memoryUsed")
    meta: ChatMeta = Field(default_factory=ChatMeta)


class SearchRequest(BaseModel):
    query: str
    limit: int = Field(default=5, ge=1, le=100)


class SearchResponse(BaseModel):
    query: str
    results: list[ChunkRow]


class IngestRequest(BaseModel):
    filepath: str = Field(..., min_length=1)
    title: str = "Uploaded Doc"
