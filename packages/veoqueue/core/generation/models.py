"""Generation workflow models.

Defines the data that flows through the generation workflow:
- AspectRatio / GenerationStatus: small enums
- InlineImage: encoded image input
- GenerationRequest: immutable input for one generation
- OperationHandle: provider-side job name
- PollOutcome: produced media of one finished operation
- GenerationUpdate: partial result delivered to observers
- GenerationResult: caller-owned accumulator of updates
- BatchTask / BatchUpdate: batch routing records
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import uuid
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

MAX_REFERENCE_IMAGES = 3


class AspectRatio(str, Enum):
    """Output aspect ratios accepted by the video provider."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


class GenerationStatus(str, Enum):
    """Per-item generation state.

    ``idle`` and ``queued`` are caller-side defaults and are never emitted by
    a generator. ``loading`` is emitted on invocation; ``success`` and
    ``error`` are terminal.
    """

    IDLE = "idle"
    QUEUED = "queued"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    def is_terminal(self) -> bool:
        return self in {GenerationStatus.SUCCESS, GenerationStatus.ERROR}

    def can_transition_to(self, other: GenerationStatus) -> bool:
        """Whether ``self -> other`` moves forward along the state machine."""
        return other in _TRANSITIONS[self]


_TRANSITIONS: dict[GenerationStatus, frozenset[GenerationStatus]] = {
    GenerationStatus.IDLE: frozenset(
        {
            GenerationStatus.QUEUED,
            GenerationStatus.LOADING,
            GenerationStatus.SUCCESS,
            GenerationStatus.ERROR,
        }
    ),
    GenerationStatus.QUEUED: frozenset(
        {GenerationStatus.LOADING, GenerationStatus.SUCCESS, GenerationStatus.ERROR}
    ),
    GenerationStatus.LOADING: frozenset({GenerationStatus.SUCCESS, GenerationStatus.ERROR}),
    GenerationStatus.SUCCESS: frozenset(),
    GenerationStatus.ERROR: frozenset(),
}


class InlineImage(BaseModel):
    """An image sent inline with a request.

    Attributes:
        mime_type: Media type, e.g. ``image/png``.
        data: Base64-encoded image bytes.
    """

    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(default="image/png", min_length=1)
    data: str = Field(min_length=1, repr=False)

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str = "image/png") -> InlineImage:
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    @classmethod
    def from_path(cls, path: str | Path) -> InlineImage:
        """Read and encode an image file, guessing its media type from the suffix."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(path.read_bytes(), mime_type or "image/png")


class GenerationRequest(BaseModel):
    """Input to one generation. Immutable once constructed.

    Attributes:
        prompt: Prompt text (required, non-empty).
        model: Provider model identifier.
        credential: Provider API key; hidden from repr and dumps.
        aspect_ratio: Optional output aspect ratio.
        output_dir: Optional directory override for persisted media.
        image: Optional primary (first frame / subject) image.
        last_frame: Optional last-frame image.
        reference_images: Up to three reference images.
        cancel_token: Optional cooperative cancellation token.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    prompt: str = Field(min_length=1)
    model: str = Field(min_length=1)
    credential: str = Field(min_length=1, repr=False, exclude=True)
    aspect_ratio: AspectRatio | None = None
    output_dir: Path | None = None
    image: InlineImage | None = None
    last_frame: InlineImage | None = None
    reference_images: list[InlineImage] = Field(
        default_factory=list, max_length=MAX_REFERENCE_IMAGES
    )
    cancel_token: asyncio.Event | None = Field(default=None, exclude=True, repr=False)

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt must not be blank")
        return v

    def with_cancel_token(self, token: asyncio.Event | None) -> GenerationRequest:
        """Return a copy bound to ``token`` (unchanged if token is None)."""
        if token is None:
            return self
        return self.model_copy(update={"cancel_token": token})


class OperationHandle(BaseModel):
    """Provider-assigned name of an in-flight long-running operation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)


class PollOutcome(BaseModel):
    """Media produced by a finished operation.

    ``preview_urls[i]`` and ``local_paths[i]`` describe the same sample; only
    samples that were persisted appear.
    """

    model_config = ConfigDict(frozen=True)

    preview_urls: list[str] = Field(default_factory=list)
    local_paths: list[str] = Field(default_factory=list)


class GenerationUpdate(BaseModel):
    """Partial result delivered to an observer.

    Attributes:
        status: New status of the item.
        preview_urls: Preview URLs (terminal success only).
        local_paths: Persisted files (terminal success only).
        error: Error message (terminal error only).
        cancelled: True when the error is a user cancellation.
        task_id: Stable batch task identifier (set by the orchestrator).
    """

    model_config = ConfigDict(frozen=True)

    status: GenerationStatus
    preview_urls: list[str] = Field(default_factory=list)
    local_paths: list[str] = Field(default_factory=list)
    error: str | None = None
    cancelled: bool = False
    task_id: str | None = None

    @classmethod
    def loading(cls) -> GenerationUpdate:
        return cls(status=GenerationStatus.LOADING)

    @classmethod
    def success(cls, outcome: PollOutcome) -> GenerationUpdate:
        return cls(
            status=GenerationStatus.SUCCESS,
            preview_urls=list(outcome.preview_urls),
            local_paths=list(outcome.local_paths),
        )

    @classmethod
    def failure(cls, message: str, *, cancelled: bool = False) -> GenerationUpdate:
        return cls(status=GenerationStatus.ERROR, error=message, cancelled=cancelled)


class GenerationResult(BaseModel):
    """Caller-owned view of one item, folded from its updates.

    ``apply`` never mutates; it returns the next state so concurrent
    deliveries can be merged by a single owner.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = ""
    status: GenerationStatus = GenerationStatus.IDLE
    preview_urls: list[str] = Field(default_factory=list)
    local_paths: list[str] = Field(default_factory=list)
    error: str | None = None
    cancelled: bool = False
    task_id: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    @property
    def is_empty_success(self) -> bool:
        """Succeeded without any persisted media (a soft anomaly)."""
        return self.status == GenerationStatus.SUCCESS and not self.local_paths

    def apply(self, update: GenerationUpdate) -> GenerationResult:
        """Fold an update into a new result.

        Updates that would move backwards (or arrive after a terminal state)
        are dropped.
        """
        if not self.status.can_transition_to(update.status):
            logger.warning(
                "Ignoring out-of-order update %s -> %s", self.status.value, update.status.value
            )
            return self

        changes: dict[str, object] = {"status": update.status}
        if update.task_id is not None:
            changes["task_id"] = update.task_id
        if update.status == GenerationStatus.SUCCESS:
            changes.update(
                preview_urls=list(update.preview_urls),
                local_paths=list(update.local_paths),
                error=None,
            )
        elif update.status == GenerationStatus.ERROR:
            changes.update(error=update.error, cancelled=update.cancelled)
        return self.model_copy(update=changes)


class BatchTask(BaseModel):
    """A request paired with its position in the caller's sequence."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    task_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    request: GenerationRequest


class BatchUpdate(BaseModel):
    """An update routed back to its batch slot."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    task_id: str
    update: GenerationUpdate
