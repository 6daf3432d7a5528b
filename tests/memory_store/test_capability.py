"""
Tests for lazily detected store capabilities.
"""

import asyncio
import threading

import pytest

from src.core.memory_store.capability import LazyCapability


@pytest.mark.unit
@pytest.mark.asyncio
class TestLazyCapability:
    """Check-once semantics."""

    async def test_check_runs_once(self):
        calls = []

        async def check():
            calls.append(1)
            return True

        capability = LazyCapability("test", check)

        assert capability.checked is False
        assert await capability.get() is True
        assert await capability.get() is True
        assert capability.checked is True
        assert len(calls) == 1

    async def test_concurrent_callers_share_one_check(self):
        calls = []

        async def check():
            calls.append(1)
            await asyncio.sleep(0.01)
            return True

        capability = LazyCapability("test", check)

        results = await asyncio.gather(*(capability.get() for _ in range(10)))

        assert results == [True] * 10
        assert len(calls) == 1

    async def test_failed_check_is_false_and_cached(self):
        calls = []

        async def check():
            calls.append(1)
            raise RuntimeError("collection missing")

        capability = LazyCapability("test", check)

        assert await capability.get() is False
        assert await capability.get() is False
        assert len(calls) == 1

    async def test_falsy_result(self):
        async def check():
            return None

        assert await LazyCapability("test", check).get() is False


@pytest.mark.unit
class TestLazyCapabilityAcrossLoops:
    """One instance shared by threads that each run their own event loop."""

    def test_contended_from_two_loops(self):
        calls = []
        started = threading.Barrier(2)

        async def check():
            calls.append(threading.get_ident())
            await asyncio.sleep(0.05)
            return True

        capability = LazyCapability("test", check)
        results, errors = [], []

        async def contend():
            # Two callers per loop so each loop's lock is actually waited on
            return await asyncio.gather(capability.get(), capability.get())

        def worker():
            started.wait()
            try:
                results.extend(asyncio.run(contend()))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert errors == []
        assert results == [True] * 4
        assert 1 <= len(calls) <= 2

    def test_first_published_value_wins(self):
        def run_in_thread(coro_factory):
            box = []
            thread = threading.Thread(target=lambda: box.append(asyncio.run(coro_factory())))
            thread.start()
            thread.join(timeout=5)
            return box[0]

        answers = iter([False, True])

        async def check():
            return next(answers)

        capability = LazyCapability("test", check)

        assert run_in_thread(capability.get) is False
        # Cached: a later loop never runs the check again
        assert run_in_thread(capability.get) is False
        assert asyncio.run(capability.get()) is False
