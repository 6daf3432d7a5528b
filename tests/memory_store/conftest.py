"""
Shared test fixtures for memory store tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.memory_store.qdrant import QdrantMemoryStore
from src.models.memory import MemoryRecord, MemoryRole, MemoryType


@pytest.fixture
def qdrant_client():
    """Mock AsyncQdrantClient whose collection has a conversation_id index."""
    client = AsyncMock()
    client.get_collection.return_value = MagicMock(
        payload_schema={"user_id": MagicMock(), "conversation_id": MagicMock()}
    )
    return client


@pytest.fixture
def memory_store(qdrant_client):
    """Create Qdrant memory store wired to the mock client."""
    store = QdrantMemoryStore(
        url="http://localhost:6333",
        collection_name="test_user_memories",
        vector_size=3,
    )
    store.client = qdrant_client
    return store


@pytest.fixture
def fact_record():
    return MemoryRecord(
        id="",
        user_id="u1",
        role=MemoryRole.USER,
        content="Aditia",
        embedding=[0.1, 0.2, 0.3],
        memory_key="name",
        memory_type=MemoryType.FACT,
        conversation_id=7,
    )


@pytest.fixture
def chat_record():
    return MemoryRecord(
        id="",
        user_id="u1",
        role=MemoryRole.ASSISTANT,
        content="Hello, Aditia!",
        embedding=[0.3, 0.2, 0.1],
    )
