"""Bounded waits for outbound calls.

run_with_deadline() runs a coroutine as a background task and waits for it
with an explicit deadline. On expiry the task is cancelled and the caller is
released immediately, even when the task does not honour cancellation
promptly. Cancelling the caller cancels the task too.
"""

import asyncio
from typing import Awaitable, TypeVar

from recipe_generator.utils.logger import logger


T = TypeVar("T")


def _drain(task: asyncio.Task) -> None:
    """Consume the outcome of an abandoned task so it is never reported as unretrieved."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned task finished with error after deadline: {exc!r}")


async def run_with_deadline(awaitable: Awaitable[T], timeout: float, operation_name: str = "operation") -> T:
    """Await `awaitable` for at most `timeout` seconds.

    Args:
        awaitable: Coroutine to run.
        timeout: Deadline in seconds (must be > 0).
        operation_name: Label used in log messages.

    Returns:
        The coroutine's result.

    Raises:
        asyncio.TimeoutError: If the deadline elapses first.
        Exception: Whatever the coroutine raised, unchanged.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_drain)
        raise

    if task not in done:
        logger.warning(f"{operation_name} exceeded {timeout}s deadline, abandoning request")
        task.cancel()
        task.add_done_callback(_drain)
        raise asyncio.TimeoutError(f"{operation_name} timed out after {timeout}s")

    return task.result()
