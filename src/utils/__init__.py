"""Utility modules for MemoRAG."""

from src.utils.exceptions import (
    AppError,
    ConfigurationError,
    DocumentStoreError,
    DomainError,
    EmbeddingError,
    InfrastructureError,
    LLMError,
    NotFoundError,
    StoreError,
    ValidationError,
    VectorStoreError,
)
from src.utils.id_generator import (
    generate_chat_memory_id,
    generate_fact_memory_id,
    generate_request_id,
)
from src.utils.logger import get_logger, log_event, request_scope, setup_logging
from src.utils.retry import is_retryable_error, with_retry

__all__ = [
    # Logging
    "get_logger",
    "log_event",
    "request_scope",
    "setup_logging",
    # Retry
    "with_retry",
    "is_retryable_error",
    # ID Generators
    "generate_chat_memory_id",
    "generate_fact_memory_id",
    "generate_request_id",
    # Exceptions
    "AppError",
    "ValidationError",
    "DomainError",
    "NotFoundError",
    "ConfigurationError",
    "InfrastructureError",
    "StoreError",
    "VectorStoreError",
    "DocumentStoreError",
    "EmbeddingError",
    "LLMError",
]
