"""
Tests for LLM base class.
"""
import pytest

from src.core.llm.base import NO_ANSWER, SYSTEM_INSTRUCTIONS, LLMProvider
from src.models.chat import ChatTurn


class MockLLM(LLMProvider):
    """Mock LLM provider for testing."""

    def __init__(self):
        self.messages = None

    async def complete(self, question, context="", history=None, memory_text=""):
        self.messages = self.build_messages(question, context, history, memory_text)
        return "test response"

    async def close(self):
        """Mock close implementation."""
        pass


@pytest.mark.unit
@pytest.mark.asyncio
class TestLLMProviderBase:
    """Test base LLM provider functionality."""

    async def test_abstract_instantiation(self):
        """Test that abstract class cannot be instantiated."""
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            LLMProvider()

    async def test_complete_interface(self):
        """Test complete method interface."""
        provider = MockLLM()
        result = await provider.complete("test prompt")
        assert result == "test response"

    async def test_message_order(self):
        """System instructions, memory, documents, history, then question."""
        provider = MockLLM()
        history = [
            ChatTurn(role="user", content="hi"),
            ChatTurn(role="assistant", content="hello"),
        ]

        await provider.complete(
            "What is the break policy?",
            context="Breaks are 15 minutes.",
            history=history,
            memory_text="name: Aditia",
        )

        messages = provider.messages
        assert [m["role"] for m in messages] == [
            "system",
            "system",
            "system",
            "user",
            "assistant",
            "user",
        ]
        assert messages[0]["content"] == SYSTEM_INSTRUCTIONS
        assert messages[1]["content"] == "MEMORY:\nname: Aditia"
        assert messages[2]["content"] == "DOCUMENT CONTEXT:\nBreaks are 15 minutes."
        assert messages[-1] == {"role": "user", "content": "What is the break policy?"}

    async def test_empty_inputs_use_placeholders(self):
        provider = MockLLM()

        await provider.complete("ping")

        assert provider.messages[1]["content"] == "MEMORY:\nNo memory."
        assert provider.messages[2]["content"] == "DOCUMENT CONTEXT:\nNo documents."
        assert len(provider.messages) == 4

    async def test_instructions_name_the_fallback_answer(self):
        assert NO_ANSWER in SYSTEM_INSTRUCTIONS

    async def test_close_default(self):
        """Test default close implementation."""
        provider = MockLLM()
        await provider.close()  # Should not raise
