"""
Ollama LLM provider using native ollama-python SDK.
"""

import time

import ollama

from src.core.llm.base import LLMProvider
from src.models.chat import ChatTurn
from src.utils.exceptions import LLMError
from src.utils.logger import log_event
from src.utils.retry import with_retry


class OllamaLLM(LLMProvider):
    """
    Ollama chat provider for local models.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 60.0,
        temperature: float = 0.0,
        max_tokens: int = 1000,
    ):
        """
        Initialize Ollama LLM provider.

        Args:
            host: Ollama server URL
            model: Model name (e.g., "llama3.1:8b", "mistral")
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def complete(
        self,
        question: str,
        context: str = "",
        history: list[ChatTurn] | None = None,
        memory_text: str = "",
    ) -> str:
        """
        Generate a completion with Ollama.

        Raises:
            LLMError: If the request fails after retries
        """
        history = history or []
        messages = self.build_messages(question, context, history, memory_text)
        options = {"temperature": self.temperature, "num_predict": self.max_tokens}

        started = time.perf_counter()
        try:
            response = await with_retry(
                lambda: self.client.chat(model=self.model, messages=messages, options=options),
                "ollama.chat",
            )
        except Exception as e:
            log_event(
                "LLM_FAILURE",
                level="ERROR",
                model=self.model,
                host=self.host,
                duration_ms=int((time.perf_counter() - started) * 1000),
                message=str(e),
                name=type(e).__name__,
            )
            raise LLMError(
                f"Ollama chat error: {e}", context={"model": self.model, "host": self.host}
            ) from e

        text = response["message"]["content"] or ""

        log_event(
            "LLM_SUCCESS",
            model=self.model,
            duration_ms=int((time.perf_counter() - started) * 1000),
            question_length=len(question),
            context_length=len(context),
            memory_length=len(memory_text),
            history_count=len(history),
        )
        return text

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
