"""Bounded-concurrency batch orchestration.

Runs many single-item generations with at most ``concurrency`` in flight.
Items enter the pool in input order; completion order is unconstrained.
Every update is routed back with the item's index and a stable task id so
the caller can fold it into its own result collection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence

from veoqueue.core.generation.generator import ItemGenerator
from veoqueue.core.generation.models import (
    BatchTask,
    BatchUpdate,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    GenerationUpdate,
)

logger = logging.getLogger(__name__)

VIDEO_CONCURRENCY = 2
IMAGE_CONCURRENCY = 3

BatchCallback = Callable[[int, GenerationUpdate], None]
ResultCallback = Callable[[int, GenerationResult], None]


class BatchOrchestrator:
    """Drives a batch of requests through an ItemGenerator.

    Args:
        generator: Single-item generator (video or image variants).
        concurrency: Maximum number of items in flight.

    Example:
        >>> orchestrator = BatchOrchestrator(video_generator, VIDEO_CONCURRENCY)
        >>> results = await orchestrator.collect(requests, cancel_token=stop)
        >>> [r.status for r in results]
    """

    def __init__(self, generator: ItemGenerator, concurrency: int) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._generator = generator
        self.concurrency = concurrency

    def plan(
        self,
        requests: Sequence[GenerationRequest],
        cancel_token: asyncio.Event | None = None,
    ) -> list[BatchTask]:
        """Pair each request with its index, binding the batch-wide token."""
        return [
            BatchTask(index=i, request=request.with_cancel_token(cancel_token))
            for i, request in enumerate(requests)
        ]

    async def generate_batch(
        self,
        requests: Sequence[GenerationRequest],
        on_update: BatchCallback,
        cancel_token: asyncio.Event | None = None,
    ) -> list[None]:
        """Generate every request, reporting updates as ``on_update(index, update)``.

        Resolves once every item has reached a terminal state. Setting
        ``cancel_token`` settles all in-flight and queued items as cancelled.

        Args:
            requests: Requests in caller order
            on_update: Observer receiving index-tagged updates
            cancel_token: Batch-wide cancellation token

        Returns:
            One ``None`` per request
        """
        return await self._run(self.plan(requests, cancel_token), on_update)

    async def _run(self, tasks: list[BatchTask], on_update: BatchCallback) -> list[None]:
        if not tasks:
            return []

        logger.info("Starting batch of %d (concurrency=%d)", len(tasks), self.concurrency)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _generate_one(task: BatchTask) -> None:
            def _route(update: GenerationUpdate) -> None:
                on_update(task.index, update.model_copy(update={"task_id": task.task_id}))

            async with semaphore:
                logger.debug("Item %d (%s) started", task.index, task.task_id)
                await self._generator.generate(task.request, _route)

        results = list(await asyncio.gather(*[_generate_one(t) for t in tasks]))
        logger.info("Batch of %d finished", len(tasks))
        return results

    async def stream(
        self,
        requests: Sequence[GenerationRequest],
        cancel_token: asyncio.Event | None = None,
    ) -> AsyncIterator[BatchUpdate]:
        """Run the batch, yielding updates to a single consumer as they arrive.

        Closing the iterator early cancels the remaining work.
        """
        queue: asyncio.Queue[BatchUpdate | None] = asyncio.Queue()

        def _enqueue(index: int, update: GenerationUpdate) -> None:
            queue.put_nowait(
                BatchUpdate(index=index, task_id=update.task_id or "", update=update)
            )

        runner = asyncio.create_task(self._run(self.plan(requests, cancel_token), _enqueue))
        runner.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield item
            await runner
        finally:
            if not runner.done():
                runner.cancel()
                await asyncio.gather(runner, return_exceptions=True)

    async def collect(
        self,
        requests: Sequence[GenerationRequest],
        cancel_token: asyncio.Event | None = None,
        on_result: ResultCallback | None = None,
    ) -> list[GenerationResult]:
        """Run the batch and fold every update into per-item results.

        Args:
            requests: Requests in caller order
            cancel_token: Batch-wide cancellation token
            on_result: Called with ``(index, result)`` after each fold

        Returns:
            Final results, in input order
        """
        results = [
            GenerationResult(prompt=r.prompt, status=GenerationStatus.QUEUED) for r in requests
        ]
        async for batch_update in self.stream(requests, cancel_token):
            i = batch_update.index
            results[i] = results[i].apply(batch_update.update)
            if on_result is not None:
                on_result(i, results[i])
        return results
