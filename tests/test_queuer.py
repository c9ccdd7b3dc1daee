"""
Parallax Discord Bot - Task Queue Tests
=======================================

Ordering, exclusivity, failure isolation and idle behavior of TaskQueue.
"""

import asyncio
import time

import pytest

from parallax.utils.queuer import QueueRegistry, TaskQueue


class TestTaskQueueOrdering:
    """FIFO completion and at-most-one execution."""

    @pytest.mark.asyncio
    async def test_tasks_settle_in_enqueue_order(self):
        queue = TaskQueue()
        settled = []

        def task(index, delay):
            async def run():
                await asyncio.sleep(delay)
                return index
            return run

        futures = [queue.enqueue(task(i, d)) for i, d in enumerate([0.03, 0.0, 0.02, 0.01, 0.0])]
        for future in futures:
            future.add_done_callback(lambda f: settled.append(f.result()))

        results = await asyncio.gather(*futures)

        assert results == [0, 1, 2, 3, 4]
        assert settled == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_never_runs_two_tasks_at_once(self):
        queue = TaskQueue()
        active = 0
        peak = 0

        async def task():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.005)
            active -= 1

        await asyncio.gather(*(queue.enqueue(task) for _ in range(10)))

        assert peak == 1
        assert active == 0

    @pytest.mark.asyncio
    async def test_sync_callables_are_supported(self):
        queue = TaskQueue()

        assert await queue.enqueue(lambda: 7) == 7


class TestTaskQueueFailures:
    """A failing task rejects only its own future."""

    @pytest.mark.asyncio
    async def test_slow_then_failing_then_fast(self):
        queue = TaskQueue()
        order = []

        async def task_a():
            await asyncio.sleep(0.03)
            return "a"

        def task_b():
            raise ValueError("b failed")

        async def task_c():
            await asyncio.sleep(0.01)
            return "c"

        start = time.monotonic()
        future_a = queue.enqueue(task_a)
        future_b = queue.enqueue(task_b)
        future_c = queue.enqueue(task_c)
        for name, future in (("a", future_a), ("b", future_b), ("c", future_c)):
            future.add_done_callback(lambda f, name=name: order.append(name))

        assert await future_a == "a"
        with pytest.raises(ValueError, match="b failed"):
            await future_b
        assert await future_c == "c"

        elapsed = time.monotonic() - start
        assert order == ["a", "b", "c"]
        assert 0.035 <= elapsed < 0.5

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_the_queue(self):
        queue = TaskQueue()

        async def boom():
            raise RuntimeError("boom")

        failed = queue.enqueue(boom)
        after = queue.enqueue(lambda: "still running")

        with pytest.raises(RuntimeError):
            await failed
        assert await after == "still running"

    @pytest.mark.asyncio
    async def test_self_cancelled_task_does_not_stop_the_queue(self):
        queue = TaskQueue()
        ran = []
        loop = asyncio.get_running_loop()

        async def cancelled_inside():
            gone = loop.create_future()
            gone.cancel()
            await gone

        def sync_cancel():
            raise asyncio.CancelledError()

        first = queue.enqueue(cancelled_inside)
        second = queue.enqueue(sync_cancel)
        after = queue.enqueue(lambda: ran.append("after"))

        await asyncio.wait_for(after, timeout=1)

        assert ran == ["after"]
        assert first.cancelled()
        assert second.cancelled()
        assert not queue.running


class TestTaskQueueLifecycle:
    """Idle state, delay and shutdown."""

    @pytest.mark.asyncio
    async def test_queue_goes_idle_after_draining(self):
        queue = TaskQueue()
        assert queue.idle

        future = queue.enqueue(lambda: None)
        assert queue.running
        await future
        await asyncio.sleep(0)

        assert queue.idle
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_restarts_after_idle(self):
        queue = TaskQueue()
        await queue.enqueue(lambda: 1)
        await asyncio.sleep(0)
        assert queue.idle

        assert await queue.enqueue(lambda: 2) == 2

    @pytest.mark.asyncio
    async def test_delay_between_tasks(self):
        queue = TaskQueue(delay=0.02)
        stamps = []

        start = time.monotonic()
        await asyncio.gather(*(queue.enqueue(lambda: stamps.append(time.monotonic())) for _ in range(3)))

        assert stamps[1] - stamps[0] >= 0.015
        assert stamps[2] - stamps[1] >= 0.015
        assert stamps[0] - start < 0.015

    @pytest.mark.asyncio
    async def test_cancelling_runner_cancels_pending(self):
        queue = TaskQueue()
        gate = asyncio.Event()

        running = queue.enqueue(gate.wait)
        waiting = queue.enqueue(lambda: "never")
        await asyncio.sleep(0)

        queue._runner.cancel()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert running.cancelled()
        assert waiting.cancelled()
        assert not queue.running


class TestQueueRegistry:
    """Lazily created per-key queues."""

    @pytest.mark.asyncio
    async def test_same_key_same_queue(self):
        registry = QueueRegistry()

        assert registry.of(1) is registry.of(1)
        assert registry.of(1) is not registry.of(2)
        assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_keys_do_not_block_each_other(self):
        registry = QueueRegistry()
        gate = asyncio.Event()

        blocked = registry.enqueue("guild-a", gate.wait)
        free = registry.enqueue("guild-b", lambda: "done")

        assert await asyncio.wait_for(free, timeout=1) == "done"
        assert not blocked.done()

        gate.set()
        await blocked

    @pytest.mark.asyncio
    async def test_prune_drops_idle_queues(self):
        registry = QueueRegistry(delay=0.0)
        gate = asyncio.Event()

        await registry.enqueue("idle", lambda: None)
        busy = registry.enqueue("busy", gate.wait)
        await asyncio.sleep(0)

        assert registry.active == 1
        assert registry.prune() == 1
        assert "idle" not in registry
        assert "busy" in registry

        gate.set()
        await busy

    def test_registry_passes_delay_to_queues(self):
        registry = QueueRegistry(delay=0.25)

        assert registry.of("x").delay == 0.25
