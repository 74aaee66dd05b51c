"""
Keyed concurrent fan-out for data acquisition.

gather_keyed() runs one unit of work per key inside an asyncio.TaskGroup
and returns a mapping from key to Fetched result:

- every unit is bounded by its own timeout
- a timeout or AdminError in one unit becomes that key's failure and never
  cancels its siblings
- results are keyed, so completion order never affects the outcome
- the task group is the join; nothing counts completions by hand

Anything other than an AdminError (a bug) propagates out of the task group.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from curvefs_admin.exceptions import AdminError, TransportError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class Fetched(Generic[V]):
    """
    Outcome of one unit of work: a value or the error that replaced it.

    Attributes:
        target: Printable name of what was fetched
        value: Fetched value (None on failure)
        error: Captured failure (None on success)
    """

    target: str
    value: V | None = None
    error: AdminError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _run_one(
    target: str, call: Callable[[], Awaitable[V]], timeout: float | None
) -> Fetched[V]:
    try:
        value = await asyncio.wait_for(call(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %ss", target, timeout)
        return Fetched(target=target, error=TransportError(target, f"timed out after {timeout}s"))
    except AdminError as e:
        logger.warning("%s failed: %s", target, e)
        return Fetched(target=target, error=e)
    return Fetched(target=target, value=value)


async def gather_keyed(
    calls: Mapping[K, Callable[[], Awaitable[V]]],
    timeout: float | None = None,
) -> dict[K, Fetched[V]]:
    """
    Run every call concurrently and collect results by key.

    Args:
        calls: Mapping from key to a zero-argument coroutine factory
        timeout: Seconds each call may take (None = unbounded)

    Returns:
        Dict with exactly one Fetched per key, in the order of `calls`.
    """
    tasks: dict[K, asyncio.Task[Fetched[V]]] = {}
    async with asyncio.TaskGroup() as tg:
        for key, call in calls.items():
            tasks[key] = tg.create_task(_run_one(str(key), call, timeout))

    return {key: task.result() for key, task in tasks.items()}
