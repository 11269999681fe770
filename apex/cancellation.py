"""Cooperative cancellation for agent runs.

A run is cancelled through a plain ``asyncio.Event``. Every suspension
point in the pipeline (network calls and the pacing delay) goes through
``cancellable`` so a set token aborts the awaited operation mid-flight.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class RunCancelled(Exception):
    """Raised when a run's cancellation token is set."""


def check_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise RunCancelled if the token has been set."""
    if cancel is not None and cancel.is_set():
        raise RunCancelled("Run cancelled")


async def cancellable(aw: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await ``aw`` unless ``cancel`` is set first.

    A token set while the operation is pending cancels the operation. A
    token set by the time the operation finishes discards its result.
    Either way RunCancelled is raised.
    """
    if cancel is None:
        return await aw
    if cancel.is_set():
        # Don't leave an un-awaited coroutine behind
        if asyncio.iscoroutine(aw):
            aw.close()
        raise RunCancelled("Run cancelled")

    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if not cancel.is_set():
        return task.result()

    if task.done():
        # Result is discarded; mark any exception as retrieved
        if not task.cancelled():
            task.exception()
    else:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    raise RunCancelled("Run cancelled")
