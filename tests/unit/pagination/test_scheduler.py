"""
Unit tests for ReflowScheduler.

Uses short real delays on the running event loop.
"""

import asyncio

import pytest

from src.pagination.scheduler import ReflowScheduler

SETTLE = 0.02


async def settle(multiplier: float = 3.0):
    await asyncio.sleep(SETTLE * multiplier)


class TestReflowSchedulerSync:
    """Behaviour outside a running event loop."""

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            ReflowScheduler(lambda: None, settle_delay=-1)

    def test_schedule_without_loop_is_ignored(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=SETTLE)

        assert scheduler.schedule() is False
        assert scheduler.pending is False
        assert calls == []

    def test_cancel_without_pending_returns_false(self):
        scheduler = ReflowScheduler(lambda: None)
        assert scheduler.cancel() is False


class TestReflowSchedulerAsync:
    """Debounce, cancellation and disposal on the event loop."""

    @pytest.mark.asyncio
    async def test_runs_once_after_delay(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=SETTLE)

        assert scheduler.schedule() is True
        assert scheduler.pending is True
        assert calls == []

        await settle()

        assert calls == [1]
        assert scheduler.pending is False
        assert scheduler.stats.executed == 1

    @pytest.mark.asyncio
    async def test_burst_of_triggers_collapses_to_one_run(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=SETTLE)

        for _ in range(10):
            scheduler.schedule()

        await settle()

        assert calls == [1]
        assert scheduler.stats.scheduled == 10
        assert scheduler.stats.replaced == 9
        assert scheduler.stats.executed == 1

    @pytest.mark.asyncio
    async def test_new_trigger_restarts_the_delay(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=0.2)

        scheduler.schedule()
        await asyncio.sleep(0.1)
        scheduler.schedule()
        await asyncio.sleep(0.15)

        # First timer would have fired by now; it was replaced
        assert calls == []

        await asyncio.sleep(0.2)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_cancel_prevents_run(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=SETTLE)

        scheduler.schedule()
        assert scheduler.cancel() is True
        await settle()

        assert calls == []
        assert scheduler.stats.cancelled == 1

    @pytest.mark.asyncio
    async def test_dispose_cancels_and_refuses_new_work(self):
        calls = []
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=SETTLE)

        scheduler.schedule()
        scheduler.dispose()

        assert scheduler.disposed is True
        assert scheduler.schedule() is False
        await settle()
        assert calls == []

    @pytest.mark.asyncio
    async def test_callback_error_is_contained(self):
        def boom():
            raise RuntimeError("layout exploded")

        scheduler = ReflowScheduler(boom, settle_delay=SETTLE)
        scheduler.schedule()
        await settle()

        assert scheduler.stats.executed == 1
        # Still usable afterwards
        assert scheduler.schedule() is True
        scheduler.dispose()

    @pytest.mark.asyncio
    async def test_explicit_loop(self):
        calls = []
        loop = asyncio.get_running_loop()
        scheduler = ReflowScheduler(lambda: calls.append(1), settle_delay=0, loop=loop)

        scheduler.schedule()
        await settle()

        assert calls == [1]
        assert scheduler.stats.to_dict()["executed"] == 1
