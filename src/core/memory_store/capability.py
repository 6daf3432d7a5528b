"""
Lazily detected, process-wide store capabilities.
"""

import asyncio
import threading
import weakref
from collections.abc import Awaitable, Callable

from src.utils.logger import log_event


class LazyCapability:
    """
    A boolean capability computed by an async check on first use.

    Callers on the same event loop share one in-flight check through a lock
    owned by that loop. Instances may be shared across threads that each run
    their own loop; each loop then gets its own lock, at most one check runs
    per loop, and the first value published wins for every caller. The value
    is guarded by a thread lock so readers on other threads see a complete
    result. A check that raises is logged and recorded as False.
    """

    def __init__(self, name: str, check: Callable[[], Awaitable[bool]]):
        self.name = name
        self._check = check
        self._value: bool | None = None
        self._lock = threading.Lock()
        self._loop_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock] = (
            weakref.WeakKeyDictionary()
        )

    @property
    def checked(self) -> bool:
        with self._lock:
            return self._value is not None

    def _cached(self) -> bool | None:
        with self._lock:
            return self._value

    def _publish(self, value: bool) -> bool:
        with self._lock:
            if self._value is None:
                self._value = value
            return self._value

    def _lock_for_running_loop(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._lock:
            lock = self._loop_locks.get(loop)
            if lock is None:
                lock = self._loop_locks[loop] = asyncio.Lock()
            return lock

    async def get(self) -> bool:
        """Return the capability, running the check on first call."""
        cached = self._cached()
        if cached is not None:
            return cached

        async with self._lock_for_running_loop():
            cached = self._cached()
            if cached is not None:
                return cached

            try:
                value = bool(await self._check())
            except Exception as e:
                log_event(
                    "CAPABILITY_CHECK_FAILED",
                    level="WARNING",
                    capability=self.name,
                    message=str(e),
                    name=type(e).__name__,
                )
                value = False

            return self._publish(value)
