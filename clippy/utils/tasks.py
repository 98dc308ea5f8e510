"""
Fire-and-forget helpers for side effects (persistence, speech).

Side effects must never block or break the conversation, so they run
as detached tasks whose failures end up in the log instead of
propagating.
"""

import asyncio
import logging
from typing import Coroutine, Optional

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected mid-flight
_background_tasks: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Background task {task.get_name()} failed: {error!r}")


def fire_and_forget(coro: Coroutine, name: str = "side-effect") -> Optional[asyncio.Task]:
    """
    Schedule `coro` on the running loop without awaiting it.

    Returns None (and discards the coroutine) when no loop is running.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        logger.warning(f"No running event loop, dropped {name}")
        return None

    task = loop.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_on_done)
    return task


async def drain_background_tasks(timeout: float = 2.0) -> None:
    """Wait (bounded) for pending side effects, used on shutdown and in tests."""
    pending = [t for t in _background_tasks if not t.done()]
    if pending:
        await asyncio.wait(pending, timeout=timeout)
