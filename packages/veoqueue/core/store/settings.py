"""Persistent key-value settings.

A single JSON document holds user settings, tab histories and license
state. It is loaded lazily on first access and rewritten atomically after
every change.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any

from veoqueue.core.config.models import DEFAULT_VIDEO_MODEL
from veoqueue.core.io import AbsolutePath, FileSystem, absolute_path
from veoqueue.core.store.history import PromptDraft, TabHistory

logger = logging.getLogger(__name__)

API_KEY = "gemini_api_key"
MODEL_KEY = "veo_model"
SAVE_PATH_KEY = "save_path"
LANGUAGE_KEY = "app_language"
LICENSE_KEY = "license_data"
DEVICE_ID_KEY = "device_id"
HISTORY_KEY_PREFIX = "history_"
PROMPT_DRAFT_KEY = "visual_prompts"

DEFAULT_LANGUAGE = "vi"


class SettingsStore:
    """Async key-value store backed by one JSON file.

    Args:
        fs: Filesystem holding the document.
        path: Location of the settings document.
    """

    def __init__(self, fs: FileSystem, path: str | Path) -> None:
        self._fs = fs
        self.path: AbsolutePath = absolute_path(path)
        self._data: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            data = await self._load_locked()
            return data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value and save the document."""
        async with self._lock:
            data = await self._load_locked()
            data[key] = value
            await self._save_locked(data)

    async def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it was present."""
        async with self._lock:
            data = await self._load_locked()
            if key not in data:
                return False
            del data[key]
            await self._save_locked(data)
            return True

    async def snapshot(self) -> dict[str, Any]:
        async with self._lock:
            return dict(await self._load_locked())

    async def _load_locked(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        data: dict[str, Any] = {}
        if await self._fs.exists(self.path):
            text = await self._fs.read_text(self.path)
            try:
                loaded = json.loads(text) if text.strip() else {}
            except ValueError as e:
                logger.warning("Settings file %s is not valid JSON, starting empty: %s", self.path, e)
                loaded = {}
            if isinstance(loaded, dict):
                data = loaded
            else:
                logger.warning("Settings file %s is not a JSON object, starting empty", self.path)

        self._data = data
        return data

    async def _save_locked(self, data: dict[str, Any]) -> None:
        await self._fs.mkdirs(absolute_path(Path(self.path).parent), exist_ok=True)
        await self._fs.write_text(self.path, json.dumps(data, indent=2, ensure_ascii=False))


class AppSettings:
    """Typed accessors over a SettingsStore."""

    def __init__(self, store: SettingsStore) -> None:
        self.store = store

    async def get_api_key(self) -> str | None:
        return await self.store.get(API_KEY)

    async def set_api_key(self, api_key: str) -> None:
        await self.store.set(API_KEY, api_key.strip())

    async def get_model(self, default: str = DEFAULT_VIDEO_MODEL) -> str:
        """Stored video model, else ``default`` (normally the configured model)."""
        return await self.store.get(MODEL_KEY) or default

    async def set_model(self, model: str) -> None:
        await self.store.set(MODEL_KEY, model)

    async def get_save_path(self) -> str | None:
        return await self.store.get(SAVE_PATH_KEY)

    async def set_save_path(self, path: str | Path) -> None:
        await self.store.set(SAVE_PATH_KEY, str(absolute_path(path)))

    async def get_language(self) -> str:
        return await self.store.get(LANGUAGE_KEY) or DEFAULT_LANGUAGE

    async def set_language(self, language: str) -> None:
        await self.store.set(LANGUAGE_KEY, language)

    async def get_tab_history(self, tab: str) -> TabHistory | None:
        raw = await self.store.get(f"{HISTORY_KEY_PREFIX}{tab}")
        if raw is None:
            return None
        return TabHistory.model_validate(raw)

    async def save_tab_history(self, tab: str, history: TabHistory) -> None:
        await self.store.set(f"{HISTORY_KEY_PREFIX}{tab}", history.to_json_dict())

    async def get_prompt_draft(self) -> PromptDraft | None:
        raw = await self.store.get(PROMPT_DRAFT_KEY)
        return PromptDraft.model_validate(raw) if raw is not None else None

    async def save_prompt_draft(self, draft: PromptDraft) -> None:
        await self.store.set(PROMPT_DRAFT_KEY, draft.to_json_dict())

    async def get_license_payload(self) -> dict[str, Any] | None:
        raw = await self.store.get(LICENSE_KEY)
        return raw if isinstance(raw, dict) else None

    async def save_license_payload(self, payload: dict[str, Any]) -> None:
        await self.store.set(LICENSE_KEY, payload)

    async def get_device_id(self) -> str:
        """Stable identifier of this installation, created on first use."""
        device_id = await self.store.get(DEVICE_ID_KEY)
        if not device_id:
            device_id = str(uuid.uuid4())
            await self.store.set(DEVICE_ID_KEY, device_id)
            logger.info("Generated device id %s", device_id)
        return device_id
