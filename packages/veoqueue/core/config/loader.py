"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from veoqueue.core.config.models import AppConfig

logger = logging.getLogger(__name__)

_DEFAULT_APP_CONFIG_PATH = Path("veoqueue.yaml")


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("config.json")
        'json'
        >>> detect_format("config.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)
    text = path.read_text(encoding="utf-8")

    if fmt == "json":
        try:
            content = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        # safe_load returns None for empty files
        if content is None:
            content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing file yields all defaults; an explicitly requested path that
    does not exist is an error. Environment variables fill the API key and
    license URL when the file leaves them unset.

    Args:
        path: Path to app config file, or None for ./veoqueue.yaml if present

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValidationError: If config is invalid
    """
    if path is None:
        config_path = _DEFAULT_APP_CONFIG_PATH
        raw = load_config(config_path) if config_path.exists() else {}
    else:
        raw = load_config(path)

    config = AppConfig.model_validate(raw)
    return _load_env_vars_into_config(config)


def _load_env_vars_into_config(config: AppConfig) -> AppConfig:
    """Return a copy of ``config`` with environment fallbacks applied."""
    provider_updates: dict[str, Any] = {}
    license_updates: dict[str, Any] = {}

    if config.provider.api_key is None:
        api_key = os.getenv("GEMINI_API_KEY")
        if api_key:
            logger.debug("Loaded GEMINI_API_KEY from environment")
            provider_updates["api_key"] = api_key

    license_url = os.getenv("VEOQUEUE_LICENSE_URL")
    if license_url:
        logger.debug("Using license URL from VEOQUEUE_LICENSE_URL")
        license_updates["base_url"] = license_url

    if not provider_updates and not license_updates:
        return config

    return config.model_copy(
        update={
            "provider": config.provider.model_copy(update=provider_updates),
            "license": config.license.model_copy(update=license_updates),
        }
    )
