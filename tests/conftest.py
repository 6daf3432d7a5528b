"""
Shared fixtures: in-memory providers and stores.

The fakes implement the real interfaces so services run unchanged; they
record calls for assertions.
"""

import math
from datetime import UTC, datetime

import pytest

from src.core.embeddings.base import Embedder
from src.core.llm.base import LLMProvider
from src.core.memory_store.base import MemoryStore
from src.core.retrieval_store.base import RetrievalStore
from src.models.document import ChunkRow
from src.models.memory import (
    MemoryCandidate,
    MemoryRecord,
    MemoryRoleFilter,
    MemoryType,
    SavedMemory,
    UserFact,
    UserMemory,
)
from src.services.chat_orchestrator import ChatOrchestrator
from src.services.intent_classifier import IntentClassifier
from src.services.memory_manager import MemoryManager
from src.services.rag_engine import RAGEngine
from src.utils.exceptions import ValidationError
from src.utils.id_generator import generate_chat_memory_id, generate_fact_memory_id

EXTRACTION_MARKER = "You extract personal facts"


class FakeEmbedder(Embedder):
    """Deterministic 3-d embeddings derived from the text."""

    def __init__(self):
        self.calls: list[str] = []

    async def embed(self, text: str, **kwargs) -> list[float]:
        normalized = self.normalize(text)
        if not normalized:
            raise ValidationError("Cannot embed empty text")
        self.calls.append(normalized)
        return [len(normalized) / 100, normalized.count(" ") / 10, 1.0]

    async def close(self):
        pass


class FakeLLM(LLMProvider):
    """
    Scripted completion provider.

    Fact-extraction prompts get ``extraction``; everything else gets ``answer``.
    """

    def __init__(self, extraction: str = "null", answer: str = "LLM answer"):
        self.extraction = extraction
        self.answer = answer
        self.calls: list[dict] = []

    @property
    def answer_calls(self) -> list[dict]:
        return [c for c in self.calls if not c["question"].startswith(EXTRACTION_MARKER)]

    async def complete(self, question, context="", history=None, memory_text=""):
        self.calls.append(
            {
                "question": question,
                "context": context,
                "history": list(history or []),
                "memory_text": memory_text,
            }
        )
        if question.startswith(EXTRACTION_MARKER):
            return self.extraction
        return self.answer

    async def close(self):
        pass


def euclidean(a: list[float], b: list[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


class InMemoryMemoryStore(MemoryStore):
    """Dict-backed memory store with the same write discipline as Qdrant."""

    def __init__(self, conversation_scope: bool = True):
        self.points: dict[str, MemoryRecord] = {}
        self.conversation_scope = conversation_scope
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        self.initialized = True

    async def supports_conversation_scope(self) -> bool:
        return self.conversation_scope

    def _scope(self, conversation_id):
        return conversation_id if self.conversation_scope else None

    def _stamp(self, record: MemoryRecord, **update) -> MemoryRecord:
        update.setdefault("conversation_id", self._scope(record.conversation_id))
        return record.model_copy(update=update)

    async def upsert_fact(self, record: MemoryRecord) -> SavedMemory:
        if not record.memory_key:
            raise ValidationError("Fact memory requires a memory_key")
        point_id = generate_fact_memory_id(record.user_id, record.memory_key)
        self.points[point_id] = self._stamp(
            record, id=point_id, memory_type=MemoryType.FACT, updated_at=datetime.now(UTC)
        )
        return SavedMemory(id=point_id, content=record.content, memory_key=record.memory_key)

    async def append_chat(self, record: MemoryRecord) -> SavedMemory:
        point_id = generate_chat_memory_id()
        self.points[point_id] = self._stamp(
            record, id=point_id, memory_type=MemoryType.CHAT, memory_key=None
        )
        return SavedMemory(id=point_id, content=record.content)

    def _select(self, user_id, conversation_id=None, role=None):
        scope = self._scope(conversation_id)
        return [
            r
            for r in self.points.values()
            if r.user_id == user_id
            and (role is None or r.role.value == role)
            and (scope is None or r.conversation_id == scope)
        ]

    async def nearest_memories(
        self,
        user_id,
        query_embedding,
        limit,
        role_filter=MemoryRoleFilter.USER,
        conversation_id=None,
    ) -> list[MemoryCandidate]:
        role = None if role_filter == MemoryRoleFilter.ANY else MemoryRoleFilter(role_filter).value
        records = sorted(
            self._select(user_id, conversation_id, role),
            key=lambda r: euclidean(r.embedding, query_embedding),
        )
        return [
            MemoryCandidate(
                content=r.content,
                memory_key=r.memory_key,
                memory_type=r.memory_type,
                updated_at=r.updated_at,
                distance=euclidean(r.embedding, query_embedding),
            )
            for r in records[:limit]
        ]

    async def latest_facts(self, user_id, conversation_id=None) -> list[UserFact]:
        latest: dict[str, MemoryRecord] = {}
        for r in self._select(user_id, conversation_id):
            if r.memory_type != MemoryType.FACT or not r.memory_key:
                continue
            if r.memory_key not in latest or r.updated_at > latest[r.memory_key].updated_at:
                latest[r.memory_key] = r
        return [UserFact(memory_key=k, content=r.content) for k, r in latest.items()]

    async def recent_user_memories(self, user_id, limit=5, conversation_id=None):
        records = sorted(
            self._select(user_id, conversation_id, "user"),
            key=lambda r: r.updated_at,
            reverse=True,
        )
        return [UserMemory(memory_key=r.memory_key, content=r.content) for r in records[:limit]]

    def facts(self, user_id: str) -> list[MemoryRecord]:
        return [r for r in self._select(user_id) if r.memory_type == MemoryType.FACT]

    def chats(self, user_id: str) -> list[MemoryRecord]:
        return [r for r in self._select(user_id) if r.memory_type == MemoryType.CHAT]

    async def close(self) -> None:
        self.closed = True


class InMemoryRetrievalStore(RetrievalStore):
    """
    Chunk index returning preset chunks.

    ``chunks`` are returned in order for nearest-chunk queries (their
    ``distance`` as given) and with a descending similarity for search.
    """

    def __init__(self, chunks: list[ChunkRow] | None = None):
        self.chunks = list(chunks or [])
        self.upserted: list[tuple[ChunkRow, list[float]]] = []
        self.queries: list[int] = []
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        self.initialized = True

    async def query_chunks_by_embedding(self, query_embedding, top_k) -> list[ChunkRow]:
        self.queries.append(top_k)
        return [c.model_copy() for c in self.chunks[:top_k]]

    async def semantic_search(self, query_embedding, limit=5) -> list[ChunkRow]:
        return [
            c.model_copy(update={"distance": None, "similarity": round(1 - i * 0.1, 2)})
            for i, c in enumerate(self.chunks[:limit])
        ]

    async def upsert_chunks(self, chunks, embeddings) -> int:
        if len(chunks) != len(embeddings):
            raise ValidationError("Chunk and embedding counts differ")
        self.upserted.extend(zip(chunks, embeddings))
        return len(chunks)

    async def close(self) -> None:
        self.closed = True


def make_chunk(chunk_id: int, content: str, distance: float | None) -> ChunkRow:
    return ChunkRow(
        id=chunk_id, document_id=1, chunk_index=chunk_id - 1, content=content, distance=distance
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def memory_store() -> InMemoryMemoryStore:
    return InMemoryMemoryStore()


@pytest.fixture
def retrieval_store() -> InMemoryRetrievalStore:
    return InMemoryRetrievalStore()


@pytest.fixture
def policy_chunks() -> list[ChunkRow]:
    return [
        make_chunk(1, "Employees may take two 15 minute coffee breaks per day.", 0.4),
        make_chunk(2, "Working hours are 9:00 to 17:00.", 0.9),
    ]


@pytest.fixture
def memory_manager(memory_store, embedder) -> MemoryManager:
    return MemoryManager(store=memory_store, embedder=embedder, similar_top_k=5)


@pytest.fixture
def rag_engine(retrieval_store) -> RAGEngine:
    return RAGEngine(store=retrieval_store, top_k=5, distance_threshold=1.2)


@pytest.fixture
def classifier(llm) -> IntentClassifier:
    return IntentClassifier(llm=llm)


@pytest.fixture
def orchestrator(classifier, memory_manager, rag_engine, embedder, llm) -> ChatOrchestrator:
    return ChatOrchestrator(
        classifier=classifier,
        memory=memory_manager,
        rag=rag_engine,
        embedder=embedder,
        llm=llm,
        similar_top_k=5,
    )


@pytest.fixture
def unscoped_memory_store() -> InMemoryMemoryStore:
    """Store of a deployment without the conversation_id index."""
    return InMemoryMemoryStore(conversation_scope=False)
