"""Tests for SettingsStore and AppSettings."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from veoqueue.core.generation.models import (
    GenerationResult,
    GenerationUpdate,
    PollOutcome,
)
from veoqueue.core.io import FakeFileSystem, RealFileSystem
from veoqueue.core.store import AppSettings, PromptDraft, SettingsStore, TabHistory


@pytest.fixture
def store(fake_fs: FakeFileSystem) -> SettingsStore:
    return SettingsStore(fake_fs, "/data/settings.json")


@pytest.fixture
def settings(store: SettingsStore) -> AppSettings:
    return AppSettings(store)


@pytest.mark.asyncio
class TestSettingsStore:
    async def test_missing_key_returns_default(self, store: SettingsStore):
        assert await store.get("nope") is None
        assert await store.get("nope", 5) == 5

    async def test_set_autosaves(self, store: SettingsStore, fake_fs: FakeFileSystem):
        await store.set("veo_model", "veo-x")
        saved = json.loads(fake_fs.files["/data/settings.json"])
        assert saved == {"veo_model": "veo-x"}

    async def test_loads_existing_document(self, fake_fs: FakeFileSystem):
        await fake_fs.write_text("/data/settings.json", '{"save_path": "/v"}')
        assert await SettingsStore(fake_fs, "/data/settings.json").get("save_path") == "/v"

    async def test_corrupt_document_starts_empty(self, fake_fs: FakeFileSystem):
        await fake_fs.write_text("/data/settings.json", "{not json")
        store = SettingsStore(fake_fs, "/data/settings.json")
        assert await store.snapshot() == {}

    async def test_delete(self, store: SettingsStore):
        await store.set("a", 1)
        assert await store.delete("a")
        assert not await store.delete("a")

    async def test_concurrent_sets_all_persist(self, store: SettingsStore, fake_fs):
        await asyncio.gather(*[store.set(f"k{i}", i) for i in range(10)])
        saved = json.loads(fake_fs.files["/data/settings.json"])
        assert saved == {f"k{i}": i for i in range(10)}

    async def test_real_filesystem_roundtrip(self, tmp_path: Path):
        path = tmp_path / "app" / "settings.json"
        await SettingsStore(RealFileSystem(), path).set("app_language", "en")
        assert await SettingsStore(RealFileSystem(), path).get("app_language") == "en"


@pytest.mark.asyncio
class TestAppSettings:
    async def test_defaults(self, settings: AppSettings):
        assert await settings.get_api_key() is None
        assert await settings.get_model() == "veo-3.1-generate-preview"
        assert await settings.get_language() == "vi"
        assert await settings.get_save_path() is None
        assert await settings.get_tab_history("text_to_video") is None

    async def test_api_key_trimmed(self, settings: AppSettings):
        await settings.set_api_key("  abc  ")
        assert await settings.get_api_key() == "abc"

    async def test_device_id_is_stable(self, settings: AppSettings):
        first = await settings.get_device_id()
        assert first
        assert await settings.get_device_id() == first

    async def test_tab_history_roundtrip(self, settings: AppSettings, fake_fs):
        result = GenerationResult(prompt="a cat").apply(
            GenerationUpdate.success(PollOutcome(preview_urls=["file:///v/a"], local_paths=["/v/a"]))
        )
        history = TabHistory().add("a cat", [result])

        await settings.save_tab_history("text_to_video", history)

        raw = json.loads(fake_fs.files["/data/settings.json"])["history_text_to_video"]
        assert raw["prompts"][0]["results"][0]["videoFilePaths"] == ["/v/a"]
        assert await settings.get_tab_history("text_to_video") == history

    async def test_model_default_comes_from_caller(self, settings: AppSettings):
        assert await settings.get_model("veo-3.1-fast-generate-preview") == (
            "veo-3.1-fast-generate-preview"
        )
        await settings.set_model("veo-3.0-generate-001")
        assert await settings.get_model("veo-3.1-fast-generate-preview") == "veo-3.0-generate-001"

    async def test_prompt_draft_roundtrip(self, settings: AppSettings, fake_fs):
        assert await settings.get_prompt_draft() is None
        draft = PromptDraft(script="a story", prompts=["shot one", "shot two"])

        await settings.save_prompt_draft(draft)

        raw = json.loads(fake_fs.files["/data/settings.json"])["visual_prompts"]
        assert raw == {"script": "a story", "prompts": ["shot one", "shot two"]}
        assert await settings.get_prompt_draft() == draft
