"""
OpenAI LLM provider using official SDK.
"""

import time

import httpx
from openai import AsyncOpenAI

from src.core.llm.base import LLMProvider
from src.models.chat import ChatTurn
from src.utils.exceptions import LLMError
from src.utils.logger import log_event
from src.utils.retry import with_retry


class OpenAILLM(LLMProvider):
    """
    OpenAI chat-completions provider.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 60.0,
        temperature: float = 0.0,
        max_tokens: int = 1000,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize OpenAI LLM provider.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o-mini", "gpt-4o")
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        # with_retry is the only retry layer
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(
        self,
        question: str,
        context: str = "",
        history: list[ChatTurn] | None = None,
        memory_text: str = "",
    ) -> str:
        """
        Generate a completion with OpenAI.

        Returns:
            Completion text, empty string when the model returned no content

        Raises:
            LLMError: If the API call fails after retries
        """
        history = history or []
        messages = self.build_messages(question, context, history, memory_text)

        started = time.perf_counter()
        try:
            response = await with_retry(
                lambda: self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                "llm.generate",
            )
        except Exception as e:
            log_event(
                "LLM_FAILURE",
                level="ERROR",
                model=self.model,
                duration_ms=int((time.perf_counter() - started) * 1000),
                message=str(e),
                name=type(e).__name__,
            )
            raise LLMError(
                "LLM request failed. Check API key or model.",
                context={"model": self.model, "error": str(e)},
            ) from e

        text = response.choices[0].message.content or ""

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
        """Close OpenAI client."""
        await self.client.close()
