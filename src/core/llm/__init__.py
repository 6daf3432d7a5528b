"""
Completion providers.

OpenAI (hosted) and Ollama (local) share the LLMProvider interface and its
fixed memory/document prompt; pick one with ``LLMFactory``.
"""

from src.core.llm.base import NO_ANSWER, LLMProvider
from src.core.llm.ollama import OllamaLLM
from src.core.llm.openai import OpenAILLM

__all__ = ["NO_ANSWER", "LLMProvider", "OllamaLLM", "OpenAILLM"]
