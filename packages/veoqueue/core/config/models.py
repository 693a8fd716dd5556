"""Configuration models for veoqueue."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PROVIDER_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_VIDEO_MODEL = "veo-3.1-generate-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_PLANNER_MODEL = "gemini-2.0-flash"

VIDEO_MODELS = ("veo-3.1-generate-preview", "veo-3.1-fast-generate-preview")
IMAGE_MODELS = ("gemini-2.5-flash-image", "gemini-3-pro-image-preview")


class ProviderConfig(BaseModel):
    """Generative API endpoint and model selection."""

    base_url: str = Field(default=DEFAULT_PROVIDER_URL, description="Provider API base URL")

    api_key: str | None = Field(
        default=None, repr=False, description="API key (falls back to GEMINI_API_KEY)"
    )

    video_model: str = Field(default=DEFAULT_VIDEO_MODEL, description="Default video model")

    image_model: str = Field(default=DEFAULT_IMAGE_MODEL, description="Default image model")

    planner_model: str = Field(
        default=DEFAULT_PLANNER_MODEL, description="Text model that turns scripts into prompts"
    )

    request_timeout_s: float = Field(
        default=120.0, gt=0, description="Per-request timeout (downloads included)"
    )

    max_attempts: int = Field(
        default=1, ge=1, description="HTTP attempts per call (1 = no transport retries)"
    )


class PollingConfig(BaseModel):
    """Long-running operation polling."""

    interval_s: float = Field(default=10.0, ge=0.0, description="Delay between status checks")

    max_duration_s: float | None = Field(
        default=None,
        gt=0,
        description="Give up after this many seconds (None = poll until done or cancelled)",
    )


class ConcurrencyConfig(BaseModel):
    """In-flight generation caps per batch."""

    video: int = Field(default=2, ge=1, description="Concurrent video generations")
    image: int = Field(default=3, ge=1, description="Concurrent image generations")


class StorageConfig(BaseModel):
    """Local persistence locations."""

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".veoqueue",
        description="Application data directory",
    )

    settings_file: str = Field(default="settings.json", description="Settings document name")

    @property
    def settings_path(self) -> Path:
        return self.data_dir / self.settings_file

    @property
    def default_output_dir(self) -> Path:
        """Where media lands when no output directory is chosen."""
        return self.data_dir / "videos"


class LicenseConfig(BaseModel):
    """Remote license service."""

    base_url: str = Field(default="http://127.0.0.1:8000", description="License API base URL")

    check_interval_s: float = Field(
        default=3600.0, gt=0, description="Seconds between background license checks"
    )

    timeout_s: float = Field(default=15.0, gt=0)


class LoggingConfig(BaseModel):
    """Application logging."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    structured: bool = Field(default=False, description="Emit JSON log lines")

    filename: str | None = Field(default=None, description="Log file (None = stderr)")


class AppConfig(BaseModel):
    """Top-level application configuration.

    Example:
        >>> config = AppConfig()
        >>> config.polling.interval_s
        10.0
        >>> config.concurrency.video
        2
    """

    model_config = ConfigDict(extra="ignore")

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    license: LicenseConfig = Field(default_factory=LicenseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
