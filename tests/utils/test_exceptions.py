"""
Tests for the exception hierarchy and its HTTP mapping.
"""

import pytest

from src.utils.exceptions import (
    AppError,
    DocumentStoreError,
    EmbeddingError,
    InfrastructureError,
    LLMError,
    NotFoundError,
    ValidationError,
    VectorStoreError,
)


class TestExceptionHierarchy:
    """Status codes and error families."""

    @pytest.mark.parametrize(
        "error_cls,status,code",
        [
            (ValidationError, 400, "ValidationError"),
            (NotFoundError, 404, "DomainError"),
            (InfrastructureError, 502, "InfrastructureError"),
            (VectorStoreError, 502, "InfrastructureError"),
            (DocumentStoreError, 502, "InfrastructureError"),
            (EmbeddingError, 502, "InfrastructureError"),
            (LLMError, 502, "InfrastructureError"),
        ],
    )
    def test_status_and_code(self, error_cls, status, code):
        error = error_cls("boom")

        assert isinstance(error, AppError)
        assert error.status_code == status
        assert error.code == code
        assert error.message == "boom"
        assert error.context == {}

    def test_status_override(self):
        error = InfrastructureError("not ready", status_code=503)
        assert error.status_code == 503

    def test_context_kept(self):
        error = ValidationError("bad", context={"field": "query"})
        assert error.context == {"field": "query"}
        assert str(error) == "bad"
