"""
ID generation utilities for MemoRAG.

Provides consistent ID generation for:
- Chat memories: UUID point ids (Qdrant accepts UUIDs or unsigned ints)
- Fact memories: deterministic UUIDs per (user_id, memory_key)
- Requests: req_xxx
"""

from uuid import NAMESPACE_URL, uuid4, uuid5


def generate_chat_memory_id() -> str:
    """
    Generate unique chat memory ID.

    Returns:
        Random UUID string
    """
    return str(uuid4())


def generate_fact_memory_id(user_id: str, memory_key: str) -> str:
    """
    Generate the fact memory ID for a user and key.

    The same (user_id, memory_key) pair always maps to the same ID, which is
    what turns a store write into an upsert.

    Args:
        user_id: Owner user ID
        memory_key: Fact key (e.g. "name")

    Returns:
        UUIDv5 string
    """
    return str(uuid5(NAMESPACE_URL, f"memorag:fact:{user_id}:{memory_key}"))


def generate_request_id() -> str:
    """
    Generate unique chat request ID for log correlation.

    Returns:
        ID in format "req_xxx" where xxx is 12 hex characters
    """
    return f"req_{uuid4().hex[:12]}"
