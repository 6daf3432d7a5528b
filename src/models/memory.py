"""
User memory models: keyed facts and append-only chat turns.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class MemoryType(str, Enum):
    """Kind of stored memory."""

    FACT = "fact"  # Keyed personal attribute, upserted per (user_id, memory_key)
    CHAT = "chat"  # Append-only conversation turn, never keyed


class MemoryRole(str, Enum):
    """Who produced the memory content."""

    USER = "user"
    ASSISTANT = "assistant"


class MemoryRoleFilter(str, Enum):
    """Role restriction applied when retrieving memories."""

    USER = "user"
    ASSISTANT = "assistant"
    ANY = "any"


class MemoryRecord(BaseModel):
    """
    A row of the ``user_memories`` collection.

    Invariants:
    - For a non-null memory_key at most one FACT row exists per user.
    - CHAT rows always have memory_key=None and are never merged.
    """

    id: str = Field(..., description="Store point ID")
    user_id: str = Field(..., description="Owner user ID")
    role: MemoryRole = Field(..., description="Author of the content")
    content: str = Field(..., description="Memory text")
    embedding: list[float] = Field(default_factory=list, description="Vector embedding")
    memory_key: str | None = Field(default=None, description="Fact key, None for chat rows")
    memory_type: MemoryType = Field(default=MemoryType.CHAT, description="fact or chat")
    conversation_id: int | None = Field(default=None, description="Optional conversation scope")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last write timestamp"
    )


class SavedMemory(BaseModel):
    """Result of a memory write."""

    id: str
    content: str
    memory_key: str | None = None


class UserFact(BaseModel):
    """Current value of one fact key."""

    memory_key: str
    content: str


class UserMemory(BaseModel):
    """Recent user-authored memory."""

    memory_key: str | None = None
    content: str


class MemoryCandidate(BaseModel):
    """
    Raw candidate returned by a distance-ordered memory query.

    Carries everything the ranking formula needs.
    """

    content: str
    memory_key: str | None = None
    memory_type: MemoryType = MemoryType.CHAT
    updated_at: datetime | None = None
    distance: float | None = None
