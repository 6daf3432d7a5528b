"""
Embedder construction and dimension discovery.
"""

from collections.abc import Callable

from src.config import EmbedderConfig
from src.core.embeddings.base import Embedder
from src.core.embeddings.ollama import OllamaEmbedder
from src.core.embeddings.openai import OpenAIEmbedder
from src.core.factory.llm_factory import OLLAMA_DEFAULT_HOST, require_api_key
from src.utils.exceptions import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _build_ollama(config: EmbedderConfig) -> Embedder:
    return OllamaEmbedder(
        host=config.base_url or OLLAMA_DEFAULT_HOST,
        model=config.model,
        timeout=config.timeout,
    )


def _build_openai(config: EmbedderConfig) -> Embedder:
    return OpenAIEmbedder(
        api_key=require_api_key(config.api_key, "OpenAI"),
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout,
    )


class EmbedderFactory:
    """Builds the embedder named by ``EmbedderConfig.provider``."""

    builders: dict[str, Callable[[EmbedderConfig], Embedder]] = {
        "ollama": _build_ollama,
        "openai": _build_openai,
    }

    @classmethod
    def create(cls, config: EmbedderConfig) -> Embedder:
        """
        Create embedder from configuration.

        Raises:
            ConfigurationError: If provider is not supported or has no API key
        """
        builder = cls.builders.get(config.provider.lower())
        if builder is None:
            raise ConfigurationError(
                f"Unsupported embedder provider: {config.provider}",
                context={"supported": sorted(cls.builders)},
            )
        return builder(config)

    @staticmethod
    async def get_dimension(embedder: Embedder, config: EmbedderConfig | None = None) -> int:
        """
        Vector size for new collections.

        A configured dimension is trusted as is; otherwise the embedder is
        asked, which costs one embedding call.
        """
        if config and config.dimension:
            return config.dimension

        dimension = await embedder.get_dimension()
        logger.info(f"Detected embedding dimension: {dimension}")
        return dimension
