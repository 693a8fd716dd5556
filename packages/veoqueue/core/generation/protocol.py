"""Provider wire models.

Request bodies are dumped with camelCase aliases and ``exclude_none`` so
optional members are absent rather than null; the provider distinguishes an
absent ``parameters`` object from an empty one.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from veoqueue.core.generation.models import GenerationRequest, InlineImage

REFERENCE_TYPE_ASSET = "asset"


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ============================================================================
# predictLongRunning (video)
# ============================================================================


class InlineData(_Wire):
    mime_type: str
    data: str = Field(repr=False)

    @classmethod
    def from_image(cls, image: InlineImage) -> InlineData:
        return cls(mime_type=image.mime_type, data=image.data)


class ImagePart(_Wire):
    inline_data: InlineData

    @classmethod
    def from_image(cls, image: InlineImage) -> ImagePart:
        return cls(inline_data=InlineData.from_image(image))


class ReferenceImage(_Wire):
    image: ImagePart
    reference_type: str = REFERENCE_TYPE_ASSET


class PredictInstance(_Wire):
    prompt: str
    image: ImagePart | None = None


class PredictParameters(_Wire):
    aspect_ratio: str | None = None
    last_frame: ImagePart | None = None
    reference_images: list[ReferenceImage] | None = None

    def is_empty(self) -> bool:
        return (
            self.aspect_ratio is None
            and self.last_frame is None
            and not self.reference_images
        )


class PredictRequest(_Wire):
    instances: list[PredictInstance] = Field(min_length=1, max_length=1)
    parameters: PredictParameters | None = None


def build_predict_request(request: GenerationRequest) -> PredictRequest:
    """Translate a GenerationRequest into the provider request body.

    Exactly one instance is produced; ``parameters`` is dropped when no
    aspect ratio, last frame or reference image applies.
    """
    instance = PredictInstance(
        prompt=request.prompt,
        image=ImagePart.from_image(request.image) if request.image else None,
    )

    parameters = PredictParameters(
        aspect_ratio=request.aspect_ratio.value if request.aspect_ratio else None,
        last_frame=ImagePart.from_image(request.last_frame) if request.last_frame else None,
        reference_images=[
            ReferenceImage(image=ImagePart.from_image(img)) for img in request.reference_images
        ]
        or None,
    )

    return PredictRequest(
        instances=[instance],
        parameters=None if parameters.is_empty() else parameters,
    )


class OperationResponse(_Wire):
    """Body returned by the creation call."""

    name: str | None = None


class OperationError(_Wire):
    code: int | None = None
    message: str = ""


class VideoRef(_Wire):
    uri: str | None = None


class GeneratedSample(_Wire):
    video: VideoRef | None = None

    @property
    def uri(self) -> str | None:
        return self.video.uri if self.video else None


class GenerateVideoResponse(_Wire):
    generated_samples: list[GeneratedSample] = Field(default_factory=list)
    rai_media_filtered_count: int | None = None
    rai_media_filtered_reasons: list[str] = Field(default_factory=list)


class OperationResult(_Wire):
    generate_video_response: GenerateVideoResponse | None = None


class OperationStatus(_Wire):
    """Body returned by a status query."""

    name: str | None = None
    done: bool = False
    error: OperationError | None = None
    response: OperationResult | None = None

    @property
    def samples(self) -> list[GeneratedSample]:
        if self.response is None or self.response.generate_video_response is None:
            return []
        return self.response.generate_video_response.generated_samples

    @property
    def filtered_reasons(self) -> list[str]:
        if self.response is None or self.response.generate_video_response is None:
            return []
        return self.response.generate_video_response.rai_media_filtered_reasons


# ============================================================================
# generateContent (image variants)
# ============================================================================


class ContentPart(_Wire):
    text: str | None = None
    inline_data: InlineData | None = None


class Content(_Wire):
    role: Literal["user", "model"] | None = None
    parts: list[ContentPart] = Field(default_factory=list)


class GenerateContentRequest(_Wire):
    contents: list[Content] = Field(min_length=1)


def build_generate_content_request(request: GenerationRequest) -> GenerateContentRequest:
    """Prompt text first, then the subject image and any reference images inline."""
    parts = [ContentPart(text=request.prompt)]
    images = ([request.image] if request.image else []) + list(request.reference_images)
    parts.extend(ContentPart(inline_data=InlineData.from_image(img)) for img in images)
    return GenerateContentRequest(contents=[Content(role="user", parts=parts)])


class Candidate(_Wire):
    content: Content | None = None
    finish_reason: str | None = None


class PromptFeedback(_Wire):
    block_reason: str | None = None


class GenerateContentResponse(_Wire):
    candidates: list[Candidate] = Field(default_factory=list)
    prompt_feedback: PromptFeedback | None = None

    def inline_images(self) -> list[InlineData]:
        """Inline image parts of the first candidate, in order."""
        if not self.candidates or self.candidates[0].content is None:
            return []
        return [p.inline_data for p in self.candidates[0].content.parts if p.inline_data]

    def first_text(self) -> str | None:
        """First text part of the first candidate."""
        if not self.candidates or self.candidates[0].content is None:
            return None
        return next((p.text for p in self.candidates[0].content.parts if p.text), None)

    def empty_reason(self) -> str | None:
        if self.prompt_feedback and self.prompt_feedback.block_reason:
            return f"blocked ({self.prompt_feedback.block_reason})"
        if self.candidates and self.candidates[0].finish_reason not in (None, "STOP"):
            return f"finish reason {self.candidates[0].finish_reason}"
        return None
