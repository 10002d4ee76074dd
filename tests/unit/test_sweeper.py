"""
Unit tests for the periodic expiry sweeper.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from session.memory_store import InMemorySessionStore
from session.sweeper import ExpirySweeper


class TestExpirySweeper:

    @pytest.mark.asyncio
    async def test_sweep_once_runs_gc_with_lifetime(self):
        handler = MagicMock()
        sweeper = ExpirySweeper(handler, max_lifetime_seconds=1800, interval_seconds=60)

        await sweeper.sweep_once()

        handler.gc.assert_called_once_with(1800)

    @pytest.mark.asyncio
    async def test_sweep_removes_expired_sessions(self, clock):
        store = InMemorySessionStore(30, clock=clock)
        store.write("abc", "X")
        clock.advance(minutes=45)
        sweeper = ExpirySweeper(store, max_lifetime_seconds=1800)

        await sweeper.sweep_once()

        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        handler = MagicMock()
        sweeper = ExpirySweeper(handler, max_lifetime_seconds=60, interval_seconds=0.01)

        sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert not sweeper.running
        assert handler.gc.call_count >= 1

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self):
        sweeper = ExpirySweeper(MagicMock(), max_lifetime_seconds=60, interval_seconds=10)

        sweeper.start()
        task = sweeper._task
        sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self):
        sweeper = ExpirySweeper(MagicMock(), max_lifetime_seconds=60)

        await sweeper.stop()

        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_failed_sweep_does_not_stop_loop(self):
        calls = []

        def flaky_gc(max_lifetime):
            calls.append(max_lifetime)
            if len(calls) == 1:
                raise RuntimeError("store down")
            return True

        handler = MagicMock()
        handler.gc.side_effect = flaky_gc
        sweeper = ExpirySweeper(handler, max_lifetime_seconds=60, interval_seconds=0.01)

        sweeper.start()
        await asyncio.sleep(0.05)
        still_running = sweeper.running
        await sweeper.stop()

        assert still_running
        assert handler.gc.call_count >= 2
