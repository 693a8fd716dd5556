"""Tests for tab history models."""

from __future__ import annotations

from veoqueue.core.generation.models import (
    GenerationResult,
    GenerationStatus,
    GenerationUpdate,
    PollOutcome,
)
from veoqueue.core.store import SavedResult, TabHistory, build_tab_history


def _success(prompt: str, *paths: str) -> GenerationResult:
    outcome = PollOutcome(preview_urls=[f"file://{p}" for p in paths], local_paths=list(paths))
    return GenerationResult(prompt=prompt).apply(GenerationUpdate.success(outcome))


def _failure(prompt: str, message: str) -> GenerationResult:
    return GenerationResult(prompt=prompt).apply(GenerationUpdate.failure(message))


class TestSavedResult:
    def test_success(self):
        saved = SavedResult.from_result(_success("a", "/v/1.mp4"))
        assert saved is not None
        assert saved.status == "success"
        assert saved.video_file_paths == ["/v/1.mp4"]

    def test_error(self):
        saved = SavedResult.from_result(_failure("a", "quota"))
        assert saved is not None
        assert saved.error == "quota"

    def test_in_progress_not_saved(self):
        assert SavedResult.from_result(GenerationResult(status=GenerationStatus.LOADING)) is None
        assert SavedResult.from_result(GenerationResult(status=GenerationStatus.QUEUED)) is None


class TestBuildTabHistory:
    def test_keeps_only_terminal_results(self):
        loading = GenerationResult(prompt="b", status=GenerationStatus.LOADING)
        history = build_tab_history(
            [("a", [_success("a", "/v/1.mp4")]), ("b", [loading, _failure("b", "x")])]
        )

        assert [p.text for p in history.prompts] == ["a", "b"]
        assert len(history.prompts[1].results) == 1
        assert history.prompts[1].results[0].status == "error"

    def test_add_appends(self):
        history = TabHistory().add("a", [_success("a", "/1")]).add("b", [_failure("b", "e")])
        assert [p.text for p in history.prompts] == ["a", "b"]

    def test_accepts_camel_case_documents(self):
        history = TabHistory.model_validate(
            {
                "prompts": [
                    {
                        "text": "a",
                        "results": [
                            {"prompt": "a", "status": "success", "videoFilePaths": ["/1"]}
                        ],
                    }
                ]
            }
        )
        assert history.prompts[0].results[0].video_file_paths == ["/1"]
