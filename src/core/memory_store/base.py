"""
Base interface for user memory storage.

Stores keyed facts and append-only chat turns with their embeddings.
Ranking lives above this layer; stores only return distance-ordered
candidates.
"""

from abc import ABC, abstractmethod

from src.models.memory import (
    MemoryCandidate,
    MemoryRecord,
    MemoryRoleFilter,
    SavedMemory,
    UserFact,
    UserMemory,
)


class MemoryStore(ABC):
    """Abstract base class for memory storage implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """
        Create collections/indices if missing.

        Raises:
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def supports_conversation_scope(self) -> bool:
        """
        Whether records can be tagged and filtered by conversation_id.

        Implementations detect this once and cache it; a failed check reports
        False instead of raising.
        """
        pass

    @abstractmethod
    async def upsert_fact(self, record: MemoryRecord) -> SavedMemory:
        """
        Insert or overwrite the fact for ``(record.user_id, record.memory_key)``.

        Content, embedding and updated_at are replaced in a single write, so
        at most one fact exists per user and key.

        Args:
            record: Fact record with memory_key set and an embedding

        Returns:
            The saved memory

        Raises:
            ValidationError: If the record has no memory_key or embedding
            VectorStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def append_chat(self, record: MemoryRecord) -> SavedMemory:
        """
        Append a chat memory. Never merges with existing rows.

        Raises:
            ValidationError: If the record has no embedding
            VectorStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def nearest_memories(
        self,
        user_id: str,
        query_embedding: list[float],
        limit: int,
        role_filter: MemoryRoleFilter = MemoryRoleFilter.USER,
        conversation_id: int | None = None,
    ) -> list[MemoryCandidate]:
        """
        Fetch the user's memories closest to the query vector.

        Args:
            user_id: Owner user ID
            query_embedding: Query vector
            limit: Maximum candidates
            role_filter: Restrict to user, assistant or any role
            conversation_id: Optional conversation scope

        Returns:
            Candidates ordered by ascending raw distance
        """
        pass

    @abstractmethod
    async def latest_facts(
        self, user_id: str, conversation_id: int | None = None
    ) -> list[UserFact]:
        """Return the most recently written fact for every distinct key."""
        pass

    @abstractmethod
    async def recent_user_memories(
        self, user_id: str, limit: int = 5, conversation_id: int | None = None
    ) -> list[UserMemory]:
        """Return the user's own memories, newest first."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        pass
