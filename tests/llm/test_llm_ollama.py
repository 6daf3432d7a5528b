"""
Tests for Ollama LLM provider.
"""

from unittest.mock import AsyncMock, patch

import pytest

from src.core.llm.ollama import OllamaLLM
from src.utils.exceptions import LLMError


@pytest.fixture
def ollama_llm():
    """Create Ollama LLM for testing."""
    return OllamaLLM(host="http://localhost:11434", model="llama3.1:8b", timeout=120.0)


@pytest.mark.unit
@pytest.mark.asyncio
class TestOllamaLLM:
    """Test Ollama LLM provider."""

    async def test_initialization(self, ollama_llm):
        """Test provider initialization."""
        assert ollama_llm.host == "http://localhost:11434"
        assert ollama_llm.model == "llama3.1:8b"
        assert ollama_llm.timeout == 120.0
        assert ollama_llm.client is not None

    async def test_complete_simple(self, ollama_llm):
        """Test simple text completion."""
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {"message": {"content": "Breaks are 15 minutes"}}

            result = await ollama_llm.complete("How long is a break?", context="Breaks: 15 min")

            assert result == "Breaks are 15 minutes"
            mock_chat.assert_called_once()

    async def test_complete_options(self, ollama_llm):
        """Temperature and token limit are passed as Ollama options."""
        llm = OllamaLLM(model="mistral", temperature=0.3, max_tokens=200)

        with patch.object(llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {"message": {"content": "test"}}

            await llm.complete("test")

            call_args = mock_chat.call_args
            assert call_args.kwargs["model"] == "mistral"
            assert call_args.kwargs["options"]["temperature"] == 0.3
            assert call_args.kwargs["options"]["num_predict"] == 200

    async def test_complete_sends_memory_and_context(self, ollama_llm):
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.return_value = {"message": {"content": "ok"}}

            await ollama_llm.complete("q", context="doc", memory_text="mem")

            messages = mock_chat.call_args.kwargs["messages"]
            assert messages[1]["content"] == "MEMORY:\nmem"
            assert messages[2]["content"] == "DOCUMENT CONTEXT:\ndoc"
            assert messages[-1] == {"role": "user", "content": "q"}

    async def test_failure_raises_llm_error(self, ollama_llm):
        with patch.object(ollama_llm.client, "chat", new_callable=AsyncMock) as mock_chat:
            mock_chat.side_effect = RuntimeError("model not found")

            with pytest.raises(LLMError, match="Ollama chat error"):
                await ollama_llm.complete("test")

    async def test_close(self, ollama_llm):
        """Test close method."""
        await ollama_llm.close()  # Should not raise


@pytest.mark.integration
@pytest.mark.asyncio
class TestOllamaLLMIntegration:
    """
    Integration tests for Ollama LLM.
    Requires running Ollama server.
    Run with: pytest -m integration
    """

    async def test_real_completion(self):
        """Test real completion with Ollama."""
        llm = OllamaLLM(model="llama3.1:8b", max_tokens=10)

        try:
            result = await llm.complete("Say 'Hello' and nothing else")
            assert isinstance(result, str)
            assert len(result) > 0
        except LLMError as e:
            pytest.skip(f"Ollama not available: {e}")
        finally:
            await llm.close()
