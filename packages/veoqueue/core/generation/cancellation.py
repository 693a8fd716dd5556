"""Cooperative cancellation on ``asyncio.Event`` tokens.

A token is set once by the caller (e.g. a Stop button or Ctrl+C) and
observed at checkpoints: before and after every sleep and around every
network call. Nothing is preempted; in-flight calls are aborted by
cancelling the task that awaits them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from veoqueue.core.generation.errors import Cancelled

T = TypeVar("T")


def is_cancelled(token: asyncio.Event | None) -> bool:
    return token is not None and token.is_set()


def raise_if_cancelled(token: asyncio.Event | None) -> None:
    """Raise Cancelled if the token has been set."""
    if is_cancelled(token):
        raise Cancelled()


async def sleep_or_cancel(seconds: float, token: asyncio.Event | None) -> None:
    """Sleep for ``seconds``, waking early if the token is set.

    Raises:
        Cancelled: If the token is set before or during the sleep
    """
    raise_if_cancelled(token)
    if token is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(token.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise Cancelled()


async def run_cancellable(awaitable: Awaitable[T], token: asyncio.Event | None) -> T:
    """Await ``awaitable`` unless the token is set first.

    When the token wins the race the underlying task is cancelled and its
    outcome discarded, so no result is propagated after cancellation.

    Raises:
        Cancelled: If the token is set before or while the call is in flight
    """
    if token is None:
        return await awaitable
    if token.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise Cancelled()

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()
        # Settle both tasks so no exception goes unretrieved
        await asyncio.gather(work, waiter, return_exceptions=True)

    if token.is_set():
        raise Cancelled()
    return work.result()
