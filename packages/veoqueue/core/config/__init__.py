"""Application configuration."""

from veoqueue.core.config.loader import load_app_config, load_config
from veoqueue.core.config.models import (
    AppConfig,
    ConcurrencyConfig,
    LicenseConfig,
    LoggingConfig,
    PollingConfig,
    ProviderConfig,
    StorageConfig,
)

__all__ = [
    "AppConfig",
    "ConcurrencyConfig",
    "LicenseConfig",
    "LoggingConfig",
    "PollingConfig",
    "ProviderConfig",
    "StorageConfig",
    "load_app_config",
    "load_config",
]
