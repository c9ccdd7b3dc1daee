"""
Parallax Discord Bot - Task Queue
=================================

Serialized FIFO execution of async work per resource.

DESIGN:
    Handlers that mutate a shared guild resource (roles, channels, a
    screening message) funnel the mutation through a TaskQueue so two
    interactions never interleave their edits. One queue runs at most
    one task at a time and completes tasks strictly in enqueue order.

    QueueRegistry hands out one queue per key (usually a guild ID), so
    unrelated resources still proceed concurrently.

Usage:
    queue = context.queues.of(guild.id)
    member = await queue.enqueue(lambda: member.add_roles(role))
"""

import asyncio
import inspect
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Hashable, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

QueuedCallable = Callable[[], Union[Awaitable[T], T]]


# =============================================================================
# Task Queue
# =============================================================================

class TaskQueue:
    """
    FIFO runner that executes one queued callable at a time.

    DESIGN:
        The runner task exists only while work is pending. An idle queue
        holds no task, timer or handle until enqueue() is called again.
        A failing task rejects its own future and the runner moves on. A
        task that cancels itself cancels only its own future; the pending
        queue is torn down only when the runner itself is cancelled.

    Attributes:
        delay: Seconds to wait after each task before starting the next.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self._pending: Deque[Tuple[QueuedCallable, asyncio.Future]] = deque()
        self._runner: Optional[asyncio.Task] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def running(self) -> bool:
        """Whether the runner is currently draining the queue."""
        return self._runner is not None

    @property
    def pending(self) -> int:
        """Number of tasks waiting to start."""
        return len(self._pending)

    @property
    def idle(self) -> bool:
        """True when nothing is running or waiting."""
        return not self.running and not self._pending

    # =========================================================================
    # Enqueue
    # =========================================================================

    def enqueue(self, func: QueuedCallable) -> "asyncio.Future[T]":
        """
        Append a callable to the queue.

        Must be called from within a running event loop.

        Args:
            func: Zero-argument callable returning a value or an awaitable.

        Returns:
            Future settling with the callable's result or exception.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending.append((func, future))

        if self._runner is None:
            self._runner = loop.create_task(self._run())

        return future

    # =========================================================================
    # Runner
    # =========================================================================

    async def _run(self) -> None:
        """Drain pending tasks one at a time, then go idle."""
        future: Optional[asyncio.Future] = None
        try:
            while self._pending:
                func, future = self._pending.popleft()
                task: Optional[asyncio.Future] = None

                try:
                    result = func()
                    if inspect.isawaitable(result):
                        task = asyncio.ensure_future(result)
                        await asyncio.wait((task,))
                        result = task.result()
                except asyncio.CancelledError:
                    if task is not None and not task.cancelled():
                        task.cancel()
                        raise
                    # The task cancelled itself; the runner keeps going
                    if not future.done():
                        future.cancel()
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)

                if self.delay > 0:
                    await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            # Runner cancelled at shutdown; nothing left here will ever run
            if future is not None and not future.done():
                future.cancel()
            while self._pending:
                _, future = self._pending.popleft()
                future.cancel()
            raise
        finally:
            self._runner = None

    def __repr__(self) -> str:
        return f"<TaskQueue running={self.running} pending={self.pending} delay={self.delay}>"


# =============================================================================
# Queue Registry
# =============================================================================

class QueueRegistry:
    """
    Lazily created TaskQueues, one per resource key.

    Attributes:
        delay: Inter-task delay given to every queue this registry creates.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self._queues: Dict[Hashable, TaskQueue] = {}

    def of(self, key: Hashable) -> TaskQueue:
        """Get the queue for a key, creating it on first use."""
        queue = self._queues.get(key)
        if queue is None:
            queue = TaskQueue(self.delay)
            self._queues[key] = queue
        return queue

    def enqueue(self, key: Hashable, func: QueuedCallable) -> "asyncio.Future[Any]":
        """Shortcut for of(key).enqueue(func)."""
        return self.of(key).enqueue(func)

    def prune(self) -> int:
        """
        Drop queues that are idle.

        Returns:
            Number of queues removed.
        """
        idle = [key for key, queue in self._queues.items() if queue.idle]
        for key in idle:
            del self._queues[key]
        return len(idle)

    @property
    def active(self) -> int:
        """Number of queues currently running."""
        return sum(1 for queue in self._queues.values() if queue.running)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._queues

    def __len__(self) -> int:
        return len(self._queues)


__all__ = ["TaskQueue", "QueueRegistry"]
