"""
Integration tests for memory writes and recall against Qdrant.

Skipped unless an embedder and Qdrant are reachable.
"""

import pytest

from src.models.memory import MemoryRole, MemoryType
from src.services.memory_manager import MemoryManager


@pytest.mark.integration
@pytest.mark.asyncio
class TestLiveMemory:
    async def test_fact_upsert_replaces_value(self, live_memory_store, live_embedder):
        manager = MemoryManager(live_memory_store, live_embedder)

        await manager.save("it-user", MemoryRole.USER, "Aditia", "name", MemoryType.FACT)
        await manager.save("it-user", MemoryRole.USER, "Budi", "name", MemoryType.FACT)

        facts = await manager.latest_facts_by_key("it-user")

        assert [(f.memory_key, f.content) for f in facts] == [("name", "Budi")]

    async def test_recall_finds_user_memory(self, live_memory_store, live_embedder):
        manager = MemoryManager(live_memory_store, live_embedder)
        await manager.save("it-user", MemoryRole.USER, "I drink green tea every morning", "preference", MemoryType.FACT)
        await manager.save("it-user", MemoryRole.ASSISTANT, "Noted!")

        query = await live_embedder.embed("What do I drink?")
        memories = await manager.retrieve("it-user", query)

        assert memories == ["I drink green tea every morning"]

    async def test_new_collection_is_conversation_scoped(self, live_memory_store):
        assert await live_memory_store.supports_conversation_scope() is True
