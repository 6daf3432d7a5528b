"""
Custom exception hierarchy for MemoRAG.

Provides structured error types that the HTTP boundary maps to status codes.
All exceptions inherit from AppError for easy catching.
"""


class AppError(Exception):
    """
    Base exception for all MemoRAG errors.
    All custom exceptions should inherit from this class.
    """

    default_status_code: int = 500

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        status_code: int | None = None,
    ):
        """
        Initialize MemoRAG error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
            status_code: Optional HTTP status override
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.status_code = status_code if status_code is not None else self.default_status_code

    @property
    def code(self) -> str:
        """Error family name exposed to API clients."""
        return "AppError"


class ValidationError(AppError):
    """
    Validation errors.
    Raised when caller input is invalid. Recoverable by the caller.
    """

    default_status_code = 400

    @property
    def code(self) -> str:
        return "ValidationError"


class DomainError(AppError):
    """
    Business rule violations.
    """

    default_status_code = 422

    @property
    def code(self) -> str:
        return "DomainError"


class NotFoundError(DomainError):
    """
    Resource not found errors.
    Raised when a requested resource (document, file) doesn't exist.
    """

    default_status_code = 404


class ConfigurationError(AppError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class InfrastructureError(AppError):
    """
    Store or network failures.
    Surfaced to API clients as 502.
    """

    default_status_code = 502

    @property
    def code(self) -> str:
        return "InfrastructureError"


class StoreError(InfrastructureError):
    """
    Base exception for store operations.
    """

    pass


class VectorStoreError(StoreError):
    """
    Vector store operation errors.
    Raised when Qdrant operations fail.
    """

    pass


class DocumentStoreError(StoreError):
    """
    Document registry errors.
    Raised when SQLite operations on documents/chunks fail.
    """

    pass


class EmbeddingError(InfrastructureError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class LLMError(InfrastructureError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, timeouts, etc.).
    """

    pass
