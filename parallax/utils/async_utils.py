"""
Parallax Discord Bot - Async Utilities
======================================

Background tasks that log their failures instead of losing them.

Usage:
    from parallax.utils.async_utils import create_safe_task

    # Instead of:
    asyncio.create_task(self.on_member_join(member))

    # Use:
    create_safe_task(self.on_member_join(member), "Gateway Member Join")
"""

import asyncio
from typing import Any, Coroutine, Set

from parallax.core.logger import logger

_background_tasks: Set[asyncio.Task] = set()


def create_safe_task(
    coro: Coroutine[Any, Any, Any],
    name: str = "Background Task",
) -> asyncio.Task:
    """
    Create a background task with automatic error logging.

    The task is referenced until it finishes so it cannot be garbage
    collected mid-flight.

    Args:
        coro: The coroutine to run as a background task.
        name: Name for logging purposes.

    Returns:
        The created asyncio.Task.
    """
    async def wrapped() -> None:
        try:
            await coro
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Background Task Failed", [
                ("Task", name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:200]),
            ])

    task = asyncio.create_task(wrapped(), name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


__all__ = ["create_safe_task"]
