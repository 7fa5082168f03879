"""Detached tasks: work whose result nobody awaits.

The event loop only keeps weak references to tasks, so a task that nobody
holds can be garbage-collected mid-flight. Detached tasks are parked in a
module-level set until they finish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Coroutine

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.debug("Detached task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Detached task %s failed: %s", task.get_name(), exc)


def spawn_detached(coro: Coroutine, name: str | None = None) -> asyncio.Task:
    """Schedule ``coro`` on the running loop and return without awaiting it.

    Failures are logged and never propagate to the caller.
    """
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_tasks() -> set[asyncio.Task]:
    return set(_pending)
