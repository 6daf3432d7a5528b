"""Fixtures for integration tests against live backends.

Fixtures use function scope to avoid event loop issues.

Configuration is loaded from:
1. .env.test file (if exists)
2. Environment variables
3. Default test values
"""

import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.config import Config
from src.core.factory import EmbedderFactory, StoreFactory

# Configuration


def get_test_config() -> Config:
    """
    Get test configuration from environment or defaults.

    Loads from .env.test if exists, otherwise uses environment variables or defaults.
    """
    env_test_path = Path(".env.test")
    if env_test_path.exists():
        return Config.from_env(env_file=env_test_path)
    return Config.from_env()


# Fixtures


@pytest.fixture
async def live_embedder() -> AsyncGenerator:
    """
    Create embedder for testing using configuration.

    Tests will skip if the embedder is not available.
    """
    test_config = get_test_config()
    try:
        embedder = EmbedderFactory.create(test_config.embedder)
    except Exception as e:
        pytest.skip(f"Embedder not configured: {e}")

    try:
        await embedder.embed("test")
    except Exception as e:
        await embedder.close()
        pytest.skip(f"Embedder not available: {e}")

    yield embedder
    await embedder.close()


@pytest.fixture
async def live_memory_store(live_embedder) -> AsyncGenerator:
    """
    Create Qdrant memory store on a throwaway collection.

    Requires Qdrant to be running. Tests will skip if it is not available.
    """
    test_config = get_test_config()
    qdrant_config = test_config.qdrant.model_copy(
        update={"memory_collection": f"test_memories_{uuid.uuid4().hex[:8]}"}
    )
    vector_size = await EmbedderFactory.get_dimension(live_embedder, test_config.embedder)
    store = StoreFactory.create_memory_store(qdrant_config, vector_size)

    try:
        await store.initialize()
    except Exception as e:
        await store.close()
        pytest.skip(f"Qdrant not available: {e}")

    yield store

    # Clean up: delete test collection
    try:
        if store.client:
            await store.client.delete_collection(store.collection_name)
    except Exception:
        pass
    await store.close()
