"""
Tests for ID generation utilities.

Tests cover:
1. Chat memory ID generation
2. Fact memory ID determinism
3. Request ID generation
"""

from uuid import UUID

from src.utils.id_generator import (
    generate_chat_memory_id,
    generate_fact_memory_id,
    generate_request_id,
)


class TestGenerateChatMemoryId:
    """Tests for chat memory ID generation."""

    def test_format(self):
        """Chat memory IDs are UUID strings Qdrant accepts."""
        memory_id = generate_chat_memory_id()

        assert str(UUID(memory_id)) == memory_id

    def test_uniqueness(self):
        """Test that generated chat memory IDs are unique."""
        ids = [generate_chat_memory_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))


class TestGenerateFactMemoryId:
    """Tests for fact memory ID generation."""

    def test_deterministic(self):
        """Same user and key always give the same ID."""
        assert generate_fact_memory_id("u1", "name") == generate_fact_memory_id("u1", "name")

    def test_differs_by_user_and_key(self):
        ids = {
            generate_fact_memory_id("u1", "name"),
            generate_fact_memory_id("u2", "name"),
            generate_fact_memory_id("u1", "preference"),
        }
        assert len(ids) == 3

    def test_format(self):
        memory_id = generate_fact_memory_id("u1", "name")
        assert UUID(memory_id).version == 5


class TestGenerateRequestId:
    """Tests for request ID generation."""

    def test_format(self):
        """Test request ID format: req_xxx (12 hex chars)."""
        request_id = generate_request_id()

        assert request_id.startswith("req_")
        assert len(request_id) == 16  # "req_" (4) + 12 hex chars
        assert request_id[4:].isalnum()

    def test_uniqueness(self):
        ids = [generate_request_id() for _ in range(1000)]
        assert len(ids) == len(set(ids))
