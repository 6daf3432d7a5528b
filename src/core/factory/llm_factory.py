"""
LLM provider construction from configuration.
"""

from collections.abc import Callable

from src.config import LLMConfig
from src.core.llm.base import LLMProvider
from src.core.llm.ollama import OllamaLLM
from src.core.llm.openai import OpenAILLM
from src.utils.exceptions import ConfigurationError

OLLAMA_DEFAULT_HOST = "http://localhost:11434"


def require_api_key(api_key: str | None, provider: str) -> str:
    if not api_key:
        raise ConfigurationError(
            f"{provider} API key is required", context={"provider": provider.lower()}
        )
    return api_key


def _build_ollama(config: LLMConfig) -> LLMProvider:
    return OllamaLLM(
        host=config.base_url or OLLAMA_DEFAULT_HOST,
        model=config.model,
        timeout=config.timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def _build_openai(config: LLMConfig) -> LLMProvider:
    return OpenAILLM(
        api_key=require_api_key(config.api_key, "OpenAI"),
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


class LLMFactory:
    """Builds the completion provider named by ``LLMConfig.provider``."""

    builders: dict[str, Callable[[LLMConfig], LLMProvider]] = {
        "ollama": _build_ollama,
        "openai": _build_openai,
    }

    @classmethod
    def create(cls, config: LLMConfig) -> LLMProvider:
        """
        Create LLM provider from configuration.

        Raises:
            ConfigurationError: If provider is not supported or has no API key
        """
        builder = cls.builders.get(config.provider.lower())
        if builder is None:
            raise ConfigurationError(
                f"Unsupported LLM provider: {config.provider}",
                context={"supported": sorted(cls.builders)},
            )
        return builder(config)
