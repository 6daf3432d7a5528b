"""
Text embedding providers.

OpenAI (hosted) and Ollama (local) share the Embedder interface; pick one
with ``EmbedderFactory``.
"""

from src.core.embeddings.base import Embedder
from src.core.embeddings.ollama import OllamaEmbedder
from src.core.embeddings.openai import OpenAIEmbedder

__all__ = ["Embedder", "OllamaEmbedder", "OpenAIEmbedder"]
