"""Prompt/result history per tab.

Only terminal results are kept; items still queued or running when a
history is saved are dropped.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from veoqueue.core.generation.models import GenerationResult, GenerationStatus

TAB_TEXT_TO_VIDEO = "text_to_video"
TAB_IMAGE_TO_VIDEO = "image_to_video"
TAB_IMAGE_VARIANTS = "banana"
TABS = (TAB_TEXT_TO_VIDEO, TAB_IMAGE_TO_VIDEO, TAB_IMAGE_VARIANTS)


class _HistoryModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SavedResult(_HistoryModel):
    prompt: str
    status: Literal["success", "error"]
    video_file_paths: list[str] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, result: GenerationResult) -> SavedResult | None:
        """Snapshot a terminal result; None for anything still in progress."""
        if result.status == GenerationStatus.SUCCESS:
            return cls(prompt=result.prompt, status="success", video_file_paths=result.local_paths)
        if result.status == GenerationStatus.ERROR:
            return cls(prompt=result.prompt, status="error", error=result.error)
        return None


class SavedPrompt(_HistoryModel):
    text: str
    results: list[SavedResult] = Field(default_factory=list)


class TabHistory(_HistoryModel):
    prompts: list[SavedPrompt] = Field(default_factory=list)

    def add(self, text: str, results: Sequence[GenerationResult]) -> TabHistory:
        """Return a copy with one more prompt entry appended."""
        entry = build_tab_history([(text, results)]).prompts
        return self.model_copy(update={"prompts": [*self.prompts, *entry]})

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def build_tab_history(
    prompts_with_results: Iterable[tuple[str, Sequence[GenerationResult]]],
) -> TabHistory:
    """Build a TabHistory keeping only terminal results.

    Example:
        >>> history = build_tab_history([("a cat", results)])
        >>> history.prompts[0].results[0].status
        'success'
    """
    prompts: list[SavedPrompt] = []
    for text, results in prompts_with_results:
        saved = [s for s in (SavedResult.from_result(r) for r in results) if s is not None]
        prompts.append(SavedPrompt(text=text, results=saved))
    return TabHistory(prompts=prompts)


class PromptDraft(_HistoryModel):
    """Last script turned into prompts, kept so it can be reused."""

    script: str
    prompts: list[str] = Field(default_factory=list)
    style: dict[str, Any] | None = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
