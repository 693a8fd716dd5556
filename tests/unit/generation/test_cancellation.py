"""Tests for cooperative cancellation helpers."""

from __future__ import annotations

import asyncio
import time

import pytest

from veoqueue.core.generation.cancellation import (
    is_cancelled,
    raise_if_cancelled,
    run_cancellable,
    sleep_or_cancel,
)
from veoqueue.core.generation.errors import Cancelled


class TestChecks:
    def test_none_token_never_cancelled(self):
        assert not is_cancelled(None)
        raise_if_cancelled(None)

    def test_set_token_raises(self):
        token = asyncio.Event()
        token.set()
        assert is_cancelled(token)
        with pytest.raises(Cancelled):
            raise_if_cancelled(token)


@pytest.mark.asyncio
class TestSleepOrCancel:
    async def test_sleeps_full_interval(self):
        await sleep_or_cancel(0.01, asyncio.Event())

    async def test_wakes_early_when_set(self):
        token = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, token.set)
        start = time.monotonic()
        with pytest.raises(Cancelled):
            await sleep_or_cancel(10.0, token)
        assert time.monotonic() - start < 1.0

    async def test_already_set(self):
        token = asyncio.Event()
        token.set()
        with pytest.raises(Cancelled):
            await sleep_or_cancel(10.0, token)


@pytest.mark.asyncio
class TestRunCancellable:
    async def test_returns_result(self):
        async def work() -> int:
            return 42

        assert await run_cancellable(work(), asyncio.Event()) == 42

    async def test_no_token(self):
        async def work() -> str:
            return "ok"

        assert await run_cancellable(work(), None) == "ok"

    async def test_propagates_errors(self):
        async def work() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await run_cancellable(work(), asyncio.Event())

    async def test_aborts_in_flight_call(self):
        token = asyncio.Event()
        state = {"finished": False, "aborted": False}

        async def slow() -> None:
            try:
                await asyncio.sleep(10.0)
                state["finished"] = True
            except asyncio.CancelledError:
                state["aborted"] = True
                raise

        asyncio.get_running_loop().call_later(0.02, token.set)
        with pytest.raises(Cancelled):
            await run_cancellable(slow(), token)

        assert state == {"finished": False, "aborted": True}

    async def test_already_set_never_starts(self):
        token = asyncio.Event()
        token.set()
        started = {"n": 0}

        async def work() -> None:
            started["n"] += 1

        with pytest.raises(Cancelled):
            await run_cancellable(work(), token)
        assert started["n"] == 0
