"""Wiring helpers: build clients and orchestrators from AppConfig."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import httpx

from veoqueue.core.api.http import AsyncApiClient, HttpClientConfig, RetryPolicy
from veoqueue.core.config.models import AppConfig
from veoqueue.core.generation.batch import BatchOrchestrator
from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.generator import VideoGenerator
from veoqueue.core.generation.images import ImageVariantGenerator
from veoqueue.core.generation.planner import PromptPlanner
from veoqueue.core.generation.poller import OperationPoller
from veoqueue.core.generation.submitter import RequestSubmitter
from veoqueue.core.io import FileSystem

VIDEO_FILE_PREFIX = "veo3"
IMAGE_FILE_PREFIX = "imagen"


def build_provider_client(
    config: AppConfig, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncApiClient:
    """Create the HTTP client for the generative provider."""
    provider = config.provider
    http_config = HttpClientConfig(
        base_url=provider.base_url,
        timeout=httpx.Timeout(provider.request_timeout_s, connect=10.0),
    )
    return AsyncApiClient(
        http_config,
        retry_policy=RetryPolicy(max_attempts=provider.max_attempts),
        transport=transport,
    )


def build_video_orchestrator(
    config: AppConfig,
    api: AsyncApiClient,
    fs: FileSystem,
    *,
    output_dir: str | Path | None = None,
    concurrency: int | None = None,
    clock: Callable[[], float] = time.time,
) -> BatchOrchestrator:
    """Submit -> poll -> download pipeline with the video concurrency cap.

    Args:
        config: Application configuration
        api: Provider client (see build_provider_client)
        fs: Filesystem for persisted media
        output_dir: Default output directory (config default when None)
        concurrency: Override for config.concurrency.video
        clock: Wall clock used in filenames
    """
    downloader = MediaDownloader(api, fs, clock=clock, prefix=VIDEO_FILE_PREFIX, extension="mp4")
    poller = OperationPoller(
        api,
        downloader,
        output_dir or config.storage.default_output_dir,
        interval_s=config.polling.interval_s,
        max_duration_s=config.polling.max_duration_s,
    )
    generator = VideoGenerator(RequestSubmitter(api), poller)
    return BatchOrchestrator(generator, concurrency or config.concurrency.video)


def build_image_orchestrator(
    config: AppConfig,
    api: AsyncApiClient,
    fs: FileSystem,
    *,
    output_dir: str | Path | None = None,
    concurrency: int | None = None,
    clock: Callable[[], float] = time.time,
) -> BatchOrchestrator:
    """Image variant pipeline with the image concurrency cap."""
    downloader = MediaDownloader(api, fs, clock=clock, prefix=IMAGE_FILE_PREFIX, extension="png")
    generator = ImageVariantGenerator(
        api, downloader, output_dir or config.storage.default_output_dir
    )
    return BatchOrchestrator(generator, concurrency or config.concurrency.image)


def build_prompt_planner(
    config: AppConfig, api: AsyncApiClient, model: str | None = None
) -> PromptPlanner:
    """Script-to-prompts planner on the configured text model."""
    return PromptPlanner(api, model or config.provider.planner_model)
