"""
Data models for MemoRAG.

Core models:
- MemoryRecord, SavedMemory, UserFact, UserMemory, MemoryCandidate: user memory
- Document, ChunkRow, RetrievalResult, IngestResult: document corpus
- FactCandidate, ClassificationResult, IntentVocabulary: intent classification
- ChatRequest, ChatResponse, SearchResponse: orchestrator inputs/outputs
"""

from src.models.chat import (
    ChatMeta,
    ChatRequest,
    ChatResponse,
    ChatTurn,
    IngestRequest,
    MemoryMeta,
    RagMeta,
    SearchRequest,
    SearchResponse,
)
from src.models.document import ChunkRow, Document, IngestResult, RetrievalMeta, RetrievalResult
from src.models.intent import (
    IDENTITY_KEYS,
    ClassificationResult,
    FactCandidate,
    FactIntent,
    HighLevelIntent,
    IntentVocabulary,
)
from src.models.memory import (
    MemoryCandidate,
    MemoryRecord,
    MemoryRole,
    MemoryRoleFilter,
    MemoryType,
    SavedMemory,
    UserFact,
    UserMemory,
)

__all__ = [
    # Memory models
    "MemoryRecord",
    "MemoryRole",
    "MemoryRoleFilter",
    "MemoryType",
    "SavedMemory",
    "UserFact",
    "UserMemory",
    "MemoryCandidate",
    # Document models
    "Document",
    "ChunkRow",
    "RetrievalMeta",
    "RetrievalResult",
    "IngestResult",
    # Intent models
    "IDENTITY_KEYS",
    "FactIntent",
    "HighLevelIntent",
    "FactCandidate",
    "ClassificationResult",
    "IntentVocabulary",
    # Chat models
    "ChatTurn",
    "ChatRequest",
    "ChatResponse",
    "ChatMeta",
    "RagMeta",
    "MemoryMeta",
    "SearchRequest",
    "SearchResponse",
    "IngestRequest",
]
