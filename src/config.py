"""
Configuration for MemoRAG.

Every setting has a default and can be overridden, in increasing priority,
by a YAML file and by ``MEMORAG_<SECTION>_<FIELD>`` environment variables
(logging uses ``MEMORAG_LOG_<FIELD>``). OPENAI_API_KEY fills any API key
left unset.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.utils.exceptions import ConfigurationError

ENV_PREFIX = "MEMORAG"
SECTION_ENV_NAMES = {"logging": "LOG"}
SHARED_API_KEY_ENV = "OPENAI_API_KEY"


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "openai"  # openai, ollama
    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.0
    max_tokens: int = 1000
    timeout: float = 60.0


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "openai"  # openai, ollama
    model: str = "text-embedding-3-small"
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 60.0
    dimension: int | None = None  # None: ask the embedder


class RAGConfig(BaseModel):
    """Document retrieval configuration."""

    top_k: int = 5
    distance_threshold: float = 1.2


class MemoryConfig(BaseModel):
    """User memory retrieval configuration."""

    similar_top_k: int = 5


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class QdrantConfig(BaseModel):
    """Qdrant vector index configuration."""

    url: str = "http://localhost:6333"
    memory_collection: str = "user_memories"
    chunk_collection: str = "chunks"
    use_grpc: bool = False
    timeout: int = 30


class SQLiteConfig(BaseModel):
    """Document registry configuration."""

    db_path: str = "data/memorag.db"


def env_name(section: str, field: str) -> str:
    """Environment variable that overrides ``section.field``."""
    section_name = SECTION_ENV_NAMES.get(section, section.upper())
    field = field.removeprefix(f"{section_name.lower()}_")
    return f"{ENV_PREFIX}_{section_name}_{field.upper()}"


def read_env_overrides() -> dict[str, dict[str, str]]:
    """Collect non-empty MEMORAG_* variables as raw strings per section."""
    overrides: dict[str, dict[str, str]] = {}
    for section, section_field in Config.model_fields.items():
        for field in section_field.annotation.model_fields:
            value = os.getenv(env_name(section, field))
            if value:
                overrides.setdefault(section, {})[field] = value
    return overrides


def merge_sections(base: dict[str, Any], overrides: dict[str, dict[str, Any]]) -> dict[str, Any]:
    merged = {section: dict(values or {}) for section, values in base.items()}
    for section, values in overrides.items():
        merged.setdefault(section, {}).update(values)
    return merged


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    rag: RAGConfig = Field(default_factory=RAGConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    sqlite: SQLiteConfig = Field(default_factory=SQLiteConfig)

    @classmethod
    def build(cls, data: dict[str, Any]) -> "Config":
        """
        Validate raw settings, filling unset API keys from OPENAI_API_KEY.

        Raises:
            ConfigurationError: If a value has the wrong type
        """
        shared_key = os.getenv(SHARED_API_KEY_ENV)
        if shared_key:
            for section in ("llm", "embedder"):
                values = data[section] = dict(data.get(section) or {})
                if not values.get("api_key"):
                    values["api_key"] = shared_key

        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            issues = [
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            raise ConfigurationError("Invalid configuration", context={"issues": issues}) from e

    @staticmethod
    def load_env_file(env_file: str | Path | None = None) -> None:
        """Load ``env_file``, or ``.env`` in the working directory when present."""
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables over defaults.

        Examples: MEMORAG_LLM_PROVIDER, MEMORAG_EMBEDDER_DIMENSION,
        MEMORAG_RAG_DISTANCE_THRESHOLD, MEMORAG_QDRANT_USE_GRPC,
        MEMORAG_SQLITE_DB_PATH, MEMORAG_LOG_TO_FILE. Empty variables are
        ignored. Values are converted by the section models, so booleans
        accept true/false, 1/0 and yes/no.
        """
        cls.load_env_file(env_file)
        return cls.build(read_env_overrides())

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from a YAML file over defaults.

        Raises:
            FileNotFoundError: If the file doesn't exist
            yaml.YAMLError: If the YAML is invalid
        """
        return cls.build(cls._read_yaml(yaml_path))

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Merging is per field, so a single environment variable overrides only
        its own setting.
        """
        data = cls._read_yaml(yaml_path) if yaml_path and Path(yaml_path).exists() else {}
        cls.load_env_file(env_file)
        return cls.build(merge_sections(data, read_env_overrides()))

    @staticmethod
    def _read_yaml(yaml_path: str | Path) -> dict[str, Any]:
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with yaml_path.open() as f:
            return yaml.safe_load(f) or {}
