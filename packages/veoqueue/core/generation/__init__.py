"""Batch generation: submit, poll, download, with bounded concurrency.

Example:
    >>> config = load_app_config()
    >>> async with build_provider_client(config) as api:
    ...     orchestrator = build_video_orchestrator(config, api, RealFileSystem())
    ...     results = await orchestrator.collect(requests, cancel_token=stop)
"""

from veoqueue.core.generation.batch import (
    IMAGE_CONCURRENCY,
    VIDEO_CONCURRENCY,
    BatchOrchestrator,
)
from veoqueue.core.generation.cancellation import (
    is_cancelled,
    raise_if_cancelled,
    run_cancellable,
    sleep_or_cancel,
)
from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.errors import (
    Cancelled,
    DownloadFailed,
    GenerationError,
    NoContentProduced,
    OperationFailed,
    PollingFailed,
    PollingTimedOut,
    SubmissionFailed,
)
from veoqueue.core.generation.factory import (
    build_image_orchestrator,
    build_prompt_planner,
    build_provider_client,
    build_video_orchestrator,
)
from veoqueue.core.generation.generator import ItemGenerator, VideoGenerator
from veoqueue.core.generation.images import ImageVariantGenerator
from veoqueue.core.generation.models import (
    AspectRatio,
    BatchTask,
    BatchUpdate,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    GenerationUpdate,
    InlineImage,
    OperationHandle,
    PollOutcome,
)
from veoqueue.core.generation.planner import PromptPlanner, build_plan, split_prompt_lines
from veoqueue.core.generation.poller import OperationPoller
from veoqueue.core.generation.submitter import RequestSubmitter

__all__ = [
    "AspectRatio",
    "BatchOrchestrator",
    "BatchTask",
    "BatchUpdate",
    "Cancelled",
    "DownloadFailed",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "GenerationUpdate",
    "IMAGE_CONCURRENCY",
    "ImageVariantGenerator",
    "InlineImage",
    "ItemGenerator",
    "MediaDownloader",
    "NoContentProduced",
    "OperationFailed",
    "OperationHandle",
    "OperationPoller",
    "PollOutcome",
    "PollingFailed",
    "PollingTimedOut",
    "PromptPlanner",
    "RequestSubmitter",
    "SubmissionFailed",
    "VIDEO_CONCURRENCY",
    "VideoGenerator",
    "build_image_orchestrator",
    "build_plan",
    "build_prompt_planner",
    "build_provider_client",
    "build_video_orchestrator",
    "is_cancelled",
    "raise_if_cancelled",
    "run_cancellable",
    "sleep_or_cancel",
    "split_prompt_lines",
]
