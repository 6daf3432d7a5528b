"""
Factory modules for creating MemoRAG components.

Provides modular factories for LLM, Embedder and the storage backends.
"""

from src.core.factory.embedder_factory import EmbedderFactory
from src.core.factory.llm_factory import LLMFactory
from src.core.factory.store_factory import StoreFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "StoreFactory",
]
