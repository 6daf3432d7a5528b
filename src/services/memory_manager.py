"""
Memory subsystem: storage discipline and ranked recall of user memories.

Facts are keyed and upserted, chat turns are appended. Recall over-fetches
distance-ordered candidates and re-ranks them by

    score = similarity * 0.6 + recency * 0.3 + type_boost

where similarity = clamp(1 - distance), recency = clamp(1 - age_days / 30)
and type_boost is 0.2 for facts.
"""

from datetime import UTC, datetime

from src.core.embeddings.base import Embedder
from src.core.memory_store.base import MemoryStore
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
from src.utils.exceptions import ValidationError
from src.utils.logger import get_logger, log_event

logger = get_logger(__name__)

SIMILARITY_WEIGHT = 0.6
RECENCY_WEIGHT = 0.3
FACT_BOOST = 0.2
RECENCY_WINDOW_DAYS = 30
UNKNOWN_RECENCY = 0.5
OVERFETCH_FACTOR = 3


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def score_memory(candidate: MemoryCandidate, now: datetime) -> float:
    """Relevance score of one candidate at time ``now``."""
    similarity = 0.0
    if candidate.distance is not None:
        similarity = _clamp(1 - candidate.distance)

    recency = UNKNOWN_RECENCY
    if candidate.updated_at is not None:
        updated_at = candidate.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)
        age_days = (now - updated_at).total_seconds() / 86400
        recency = _clamp(1 - age_days / RECENCY_WINDOW_DAYS)

    type_boost = FACT_BOOST if candidate.memory_type == MemoryType.FACT else 0.0

    return similarity * SIMILARITY_WEIGHT + recency * RECENCY_WEIGHT + type_boost


def rank_memories(
    candidates: list[MemoryCandidate], limit: int, now: datetime | None = None
) -> list[str]:
    """
    Return the contents of the ``limit`` best candidates, best first.

    Ties keep their incoming (distance) order.
    """
    now = now or datetime.now(UTC)
    ranked = sorted(candidates, key=lambda c: score_memory(c, now), reverse=True)
    return [c.content for c in ranked[:limit]]


class MemoryManager:
    """
    High-level memory operations used by the chat orchestrator.

    Owns embedding of memory content and the ranking policy; the store only
    persists records and returns nearest candidates.
    """

    def __init__(self, store: MemoryStore, embedder: Embedder, similar_top_k: int = 5):
        """
        Initialize MemoryManager.

        Args:
            store: Memory store backend
            embedder: Embedder for memory content
            similar_top_k: Default number of memories returned by retrieve
        """
        self.store = store
        self.embedder = embedder
        self.similar_top_k = similar_top_k

    async def save(
        self,
        user_id: str,
        role: MemoryRole,
        content: str,
        memory_key: str | None = None,
        memory_type: MemoryType = MemoryType.CHAT,
        conversation_id: int | None = None,
    ) -> SavedMemory:
        """
        Persist a memory.

        A fact with a key overwrites the previous value of that key for the
        user. Everything else is appended as a chat row without a key.

        Args:
            user_id: Owner user ID
            role: Author of the content
            content: Memory text
            memory_key: Fact key (facts only)
            memory_type: fact or chat
            conversation_id: Optional conversation scope

        Returns:
            The saved memory

        Raises:
            ValidationError: If user_id or content is empty
            EmbeddingError: If embedding fails
            VectorStoreError: If the write fails
        """
        if not user_id:
            raise ValidationError("user_id is required")
        if not content or not content.strip():
            raise ValidationError("Memory content cannot be empty")

        embedding = await self.embedder.embed(content)
        record = MemoryRecord(
            id="",
            user_id=user_id,
            role=role,
            content=content,
            embedding=embedding,
            memory_key=memory_key,
            memory_type=memory_type,
            conversation_id=conversation_id,
        )

        if memory_type == MemoryType.FACT and memory_key:
            saved = await self.store.upsert_fact(record)
            log_event(
                "MEMORY_SAVE_FACT",
                user_id=user_id,
                role=MemoryRole(role).value,
                memory_key=memory_key,
                memory_id=saved.id,
            )
            return saved

        saved = await self.store.append_chat(record)
        log_event(
            "MEMORY_SAVE_CHAT",
            user_id=user_id,
            role=MemoryRole(role).value,
            memory_type=MemoryType(memory_type).value,
            memory_id=saved.id,
        )
        return saved

    async def retrieve(
        self,
        user_id: str,
        query_embedding: list[float],
        limit: int | None = None,
        role_filter: MemoryRoleFilter = MemoryRoleFilter.USER,
        conversation_id: int | None = None,
    ) -> list[str]:
        """
        Ranked recall of memory contents.

        Fetches up to ``limit * 3`` nearest candidates and returns the top
        ``limit`` by score.
        """
        limit = self.similar_top_k if limit is None else limit
        candidate_limit = max(limit * OVERFETCH_FACTOR, limit)

        candidates = await self.store.nearest_memories(
            user_id, query_embedding, candidate_limit, role_filter, conversation_id
        )
        memories = rank_memories(candidates, limit)

        log_event(
            "MEMORY_RETRIEVE_INTELLIGENT",
            user_id=user_id,
            role=MemoryRoleFilter(role_filter).value,
            limit=limit,
            candidate_limit=candidate_limit,
            total_candidates=len(candidates),
            returned=len(memories),
        )
        return memories

    async def latest_facts_by_key(
        self, user_id: str, conversation_id: int | None = None
    ) -> list[UserFact]:
        facts = await self.store.latest_facts(user_id, conversation_id)
        log_event("MEMORY_FACTS_LATEST", user_id=user_id, facts_count=len(facts))
        return facts

    async def recent_user_memories(
        self, user_id: str, limit: int = 5, conversation_id: int | None = None
    ) -> list[UserMemory]:
        return await self.store.recent_user_memories(user_id, limit, conversation_id)
