"""
Bounded retry wrapper for embedding and completion calls.

Three attempts in total. A failed attempt is retried only for transient
conditions (connection reset, timeout, httpx transport failure, HTTP
429/500/502/503); the wait before the n-th retry is ``RETRY_DELAYS[n - 1]``
seconds. Anything else, or the last failure once the budget is spent, is
re-raised unchanged.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import openai

from src.utils.logger import log_event


T = TypeVar("T")

RETRY_DELAYS: tuple[float, ...] = (0.0, 0.2, 0.5)
MAX_ATTEMPTS = 3

RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionResetError,
    TimeoutError,
    httpx.TimeoutException,
    httpx.NetworkError,
    openai.APITimeoutError,
    openai.APIConnectionError,
)
RETRYABLE_CODES = frozenset({"ECONNRESET", "ETIMEDOUT"})
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503})


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value

    return None


def _cause_chain(error: BaseException):
    seen = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def is_retryable_error(error: BaseException) -> bool:
    """
    Return True if the error is a transient network or rate-limit failure.

    Transport errors and error codes are recognised anywhere on the
    ``__cause__`` chain, so a timeout wrapped by an SDK still counts.
    """
    for link in _cause_chain(error):
        if isinstance(link, RETRYABLE_EXCEPTIONS):
            return True
        code = getattr(link, "code", None)
        if code is not None and str(code) in RETRYABLE_CODES:
            return True

    return _status_of(error) in RETRYABLE_STATUSES


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    operation: str,
    delays: tuple[float, ...] = RETRY_DELAYS,
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``fn`` with the bounded retry policy.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        operation: Name used in retry log records
        delays: Wait (seconds) before each retry
        max_attempts: Total attempts including the first
        sleep: Awaitable sleep, injectable for tests

    Returns:
        Whatever ``fn`` returns on the first successful attempt

    Raises:
        The original exception from the failing attempt
    """
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= max_attempts or not is_retryable_error(e):
                raise

            delay = delays[min(attempt - 1, len(delays) - 1)]
            log_event(
                "LLM_RETRY",
                level="WARNING",
                attempt=attempt,
                operation=operation,
                message=str(e),
                name=type(e).__name__,
                delay_s=delay,
            )
            await sleep(delay)
            attempt += 1
