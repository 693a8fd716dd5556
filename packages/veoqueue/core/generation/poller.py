"""Long-running operation polling."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path

from veoqueue.core.api.http import ApiError, AsyncApiClient
from veoqueue.core.generation.cancellation import (
    raise_if_cancelled,
    run_cancellable,
    sleep_or_cancel,
)
from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.errors import (
    DownloadFailed,
    NoContentProduced,
    OperationFailed,
    PollingFailed,
    PollingTimedOut,
)
from veoqueue.core.generation.models import OperationHandle, PollOutcome
from veoqueue.core.generation.protocol import OperationStatus
from veoqueue.core.io import path_to_url

logger = logging.getLogger(__name__)

DEFAULT_POLL_ERROR = "Failed to check operation status"


class OperationPoller:
    """Waits for an operation to finish, then downloads what it produced.

    The cancellation token is checked before and after every sleep, and the
    status query itself is raced against it, so cancellation latency is
    bounded by one poll interval.

    Args:
        api: HTTP client bound to the provider base URL.
        downloader: Fetches and persists produced media.
        default_directory: Output directory used when the caller gives none.
        interval_s: Delay before each status query.
        max_duration_s: Give up with PollingTimedOut after this long
            (None polls until done or cancelled).
        clock: Monotonic clock (injectable for tests).
    """

    def __init__(
        self,
        api: AsyncApiClient,
        downloader: MediaDownloader,
        default_directory: str | Path,
        *,
        interval_s: float = 10.0,
        max_duration_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._downloader = downloader
        self.default_directory = Path(default_directory)
        self.interval_s = interval_s
        self.max_duration_s = max_duration_s
        self._clock = clock

    async def poll(
        self,
        handle: OperationHandle,
        credential: str,
        target_directory: str | Path | None = None,
        cancel_token: asyncio.Event | None = None,
    ) -> PollOutcome:
        """Poll ``handle`` to completion and persist its samples.

        Args:
            handle: Operation returned by the submitter
            credential: Provider API key
            target_directory: Output directory override
            cancel_token: Cooperative cancellation token

        Returns:
            Preview URLs and local paths of the samples that were persisted

        Raises:
            Cancelled: If the token is observed
            PollingFailed: If a status query fails or the deadline passes
            NoContentProduced: If the operation finished without samples
        """
        started = self._clock()
        checks = 0

        while True:
            raise_if_cancelled(cancel_token)
            await sleep_or_cancel(self.interval_s, cancel_token)
            raise_if_cancelled(cancel_token)

            waited = self._clock() - started
            if self.max_duration_s is not None and waited >= self.max_duration_s:
                raise PollingTimedOut(waited)

            checks += 1
            status = await run_cancellable(self._query(handle, credential), cancel_token)
            if not status.done:
                logger.debug("Operation %s still running (check %d)", handle.name, checks)
                continue

            logger.info("Operation %s finished after %d checks", handle.name, checks)
            directory = Path(target_directory) if target_directory else self.default_directory
            return await self._collect(handle, status, credential, directory, cancel_token)

    async def _query(self, handle: OperationHandle, credential: str) -> OperationStatus:
        try:
            resp = await self._api.get(handle.name, params={"key": credential})
            return self._api.parse_pydantic(resp, OperationStatus)
        except ApiError as e:
            raise PollingFailed(e.provider_message(DEFAULT_POLL_ERROR)) from e

    async def _collect(
        self,
        handle: OperationHandle,
        status: OperationStatus,
        credential: str,
        directory: Path,
        cancel_token: asyncio.Event | None,
    ) -> PollOutcome:
        if status.error is not None:
            raise OperationFailed(status.error.message or "unknown error")

        uris = [sample.uri for sample in status.samples if sample.uri]
        if not uris:
            reasons = status.filtered_reasons
            raise NoContentProduced("; ".join(reasons) if reasons else None)

        preview_urls: list[str] = []
        local_paths: list[str] = []

        # One download at a time per item
        for index, uri in enumerate(uris):
            raise_if_cancelled(cancel_token)
            try:
                path = await run_cancellable(
                    self._downloader.download(uri, credential, directory, index),
                    cancel_token,
                )
            except (DownloadFailed, OSError) as e:
                logger.warning(
                    "Skipping sample %d of %s: %s", index, handle.name, e
                )
                continue
            local_paths.append(path)
            preview_urls.append(path_to_url(path))

        return PollOutcome(preview_urls=preview_urls, local_paths=local_paths)
