"""Tests for BatchOrchestrator."""

from __future__ import annotations

import asyncio
from collections import defaultdict

import httpx
import pytest

from veoqueue.core.generation.batch import (
    IMAGE_CONCURRENCY,
    VIDEO_CONCURRENCY,
    BatchOrchestrator,
)
from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.generator import ItemGenerator, VideoGenerator
from veoqueue.core.generation.models import (
    GenerationRequest,
    GenerationStatus,
    GenerationUpdate,
    PollOutcome,
)
from veoqueue.core.generation.poller import OperationPoller
from veoqueue.core.generation.submitter import RequestSubmitter


def _make_requests(*prompts: str) -> list[GenerationRequest]:
    return [GenerationRequest(prompt=p, model="veo", credential="k") for p in prompts]


def _make_orchestrator(api, fs, clock, concurrency: int, interval_s: float = 0.0):
    downloader = MediaDownloader(api, fs, clock=clock)
    poller = OperationPoller(api, downloader, "/videos", interval_s=interval_s)
    return BatchOrchestrator(VideoGenerator(RequestSubmitter(api), poller), concurrency)


class _CountingGenerator(ItemGenerator):
    """Tracks how many items are in flight at once."""

    def __init__(self, delay_s: float = 0.01) -> None:
        self.delay_s = delay_s
        self.active = 0
        self.max_active = 0
        self.started: list[str] = []

    async def _produce(self, request: GenerationRequest) -> PollOutcome:
        self.started.append(request.prompt)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay_s)
        finally:
            self.active -= 1
        return PollOutcome(preview_urls=[f"file:///{request.prompt}"], local_paths=[request.prompt])


def test_default_caps():
    assert VIDEO_CONCURRENCY == 2
    assert IMAGE_CONCURRENCY == 3


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        BatchOrchestrator(_CountingGenerator(), 0)


@pytest.mark.asyncio
class TestGenerateBatch:
    @pytest.mark.parametrize("cap", [1, 2, 3])
    async def test_concurrency_cap_respected(self, cap: int):
        generator = _CountingGenerator()
        orchestrator = BatchOrchestrator(generator, cap)

        await orchestrator.generate_batch(
            _make_requests(*[f"p{i}" for i in range(7)]), lambda i, u: None
        )

        assert generator.max_active == cap

    async def test_items_enter_pool_in_input_order(self):
        generator = _CountingGenerator()
        prompts = [f"p{i}" for i in range(6)]

        await BatchOrchestrator(generator, 2).generate_batch(
            _make_requests(*prompts), lambda i, u: None
        )

        assert generator.started == prompts

    async def test_exactly_one_terminal_update_per_item(self):
        updates: dict[int, list[GenerationUpdate]] = defaultdict(list)

        result = await BatchOrchestrator(_CountingGenerator(), 2).generate_batch(
            _make_requests("a", "b", "c", "d"), lambda i, u: updates[i].append(u)
        )

        assert result == [None] * 4
        for i in range(4):
            statuses = [u.status for u in updates[i]]
            assert statuses == [GenerationStatus.LOADING, GenerationStatus.SUCCESS]
            assert updates[i][-1].local_paths == [["a", "b", "c", "d"][i]]

    async def test_updates_carry_stable_task_id(self):
        seen: dict[int, set[str]] = defaultdict(set)

        await BatchOrchestrator(_CountingGenerator(), 3).generate_batch(
            _make_requests("a", "b", "c"), lambda i, u: seen[i].add(u.task_id)
        )

        assert all(len(ids) == 1 for ids in seen.values())
        assert len({next(iter(ids)) for ids in seen.values()}) == 3

    async def test_empty_batch(self):
        assert await BatchOrchestrator(_CountingGenerator(), 2).generate_batch([], None) == []

    async def test_cap_one_end_to_end(self, provider, provider_api, fake_fs, fixed_clock):
        orchestrator = _make_orchestrator(provider_api, fake_fs, fixed_clock, concurrency=1)
        updates: dict[int, list[GenerationUpdate]] = defaultdict(list)

        await orchestrator.generate_batch(
            _make_requests("a cat", "a dog"), lambda i, u: updates[i].append(u)
        )

        assert provider.events == [
            ("submit", "a cat"),
            ("poll", "a cat"),
            ("poll", "a cat"),
            ("download", "a cat"),
            ("submit", "a dog"),
            ("poll", "a dog"),
            ("poll", "a dog"),
            ("download", "a dog"),
        ]
        for i in (0, 1):
            assert [u.status for u in updates[i]] == [
                GenerationStatus.LOADING,
                GenerationStatus.SUCCESS,
            ]
            assert len(updates[i][-1].local_paths) == 1

    async def test_one_failure_does_not_affect_siblings(
        self, make_provider, make_api, fake_fs, fixed_clock
    ):
        provider = make_provider(pending_checks=0)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith(":predictLongRunning") and b"bad" in request.content:
                return httpx.Response(400, json={"error": {"message": "rejected"}})
            return provider.handler(request)

        orchestrator = _make_orchestrator(make_api(handler), fake_fs, fixed_clock, concurrency=2)
        results = await orchestrator.collect(_make_requests("good one", "bad one", "good two"))

        assert [r.status for r in results] == [
            GenerationStatus.SUCCESS,
            GenerationStatus.ERROR,
            GenerationStatus.SUCCESS,
        ]
        assert results[1].error == "rejected"


@pytest.mark.asyncio
class TestBatchCancellation:
    async def test_cancel_settles_everything_within_one_interval(
        self, make_provider, make_api, fake_fs, fixed_clock
    ):
        provider = make_provider(pending_checks=10_000)
        orchestrator = _make_orchestrator(
            make_api(provider.handler), fake_fs, fixed_clock, concurrency=2, interval_s=10.0
        )
        token = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, token.set)

        results = await asyncio.wait_for(
            orchestrator.collect(_make_requests("a", "b", "c", "d"), cancel_token=token), 2.0
        )

        assert all(r.status == GenerationStatus.ERROR for r in results)
        assert all(r.cancelled for r in results)
        # Two items submitted before the token was set; queued ones never called out
        assert provider.count("submit") == 2
        assert provider.count("poll") == 0

    async def test_no_new_calls_after_cancel(self, make_provider, make_api, fake_fs, fixed_clock):
        provider = make_provider(pending_checks=10_000)
        token = asyncio.Event()
        calls_at_cancel: list[int] = []

        def on_poll(name: str, checks: int) -> None:
            if checks == 3 and not token.is_set():
                token.set()
                calls_at_cancel.append(len(provider.requests))

        provider.on_poll = on_poll
        orchestrator = _make_orchestrator(
            make_api(provider.handler), fake_fs, fixed_clock, concurrency=1
        )

        results = await orchestrator.collect(_make_requests("a", "b", "c"), cancel_token=token)

        assert len(provider.requests) == calls_at_cancel[0]
        assert [r.cancelled for r in results] == [True, True, True]

    async def test_preset_token(self, provider, provider_api, fake_fs, fixed_clock):
        token = asyncio.Event()
        token.set()
        orchestrator = _make_orchestrator(provider_api, fake_fs, fixed_clock, concurrency=2)

        results = await orchestrator.collect(_make_requests("a", "b"), cancel_token=token)

        assert [r.error for r in results] == ["Cancelled", "Cancelled"]
        assert provider.requests == []


@pytest.mark.asyncio
class TestStreamAndCollect:
    async def test_stream_yields_index_tagged_updates(self):
        orchestrator = BatchOrchestrator(_CountingGenerator(), 2)

        seen = [u async for u in orchestrator.stream(_make_requests("a", "b", "c"))]

        assert len(seen) == 6
        assert {u.index for u in seen} == {0, 1, 2}
        for u in seen:
            assert u.task_id == u.update.task_id

    async def test_collect_returns_results_in_input_order(self):
        orchestrator = BatchOrchestrator(_CountingGenerator(), 3)
        folded: list[tuple[int, GenerationStatus]] = []

        results = await orchestrator.collect(
            _make_requests("a", "b", "c"), on_result=lambda i, r: folded.append((i, r.status))
        )

        assert [r.prompt for r in results] == ["a", "b", "c"]
        assert [r.local_paths for r in results] == [["a"], ["b"], ["c"]]
        assert all(r.task_id for r in results)
        assert len(folded) == 6

    async def test_closing_stream_early_cancels_work(self):
        generator = _CountingGenerator(delay_s=10.0)
        orchestrator = BatchOrchestrator(generator, 2)

        stream = orchestrator.stream(_make_requests("a", "b"))
        first = await stream.__anext__()
        await stream.aclose()

        assert first.update.status == GenerationStatus.LOADING
        assert generator.active == 0
