"""Local persistence: settings document and tab histories."""

from veoqueue.core.store.history import (
    TAB_IMAGE_TO_VIDEO,
    TAB_IMAGE_VARIANTS,
    TAB_TEXT_TO_VIDEO,
    TABS,
    PromptDraft,
    SavedPrompt,
    SavedResult,
    TabHistory,
    build_tab_history,
)
from veoqueue.core.store.settings import AppSettings, SettingsStore

__all__ = [
    "AppSettings",
    "PromptDraft",
    "SavedPrompt",
    "SavedResult",
    "SettingsStore",
    "TAB_IMAGE_TO_VIDEO",
    "TAB_IMAGE_VARIANTS",
    "TAB_TEXT_TO_VIDEO",
    "TABS",
    "TabHistory",
    "build_tab_history",
]
