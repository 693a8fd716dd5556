from __future__ import annotations

import httpx
from pydantic import BaseModel, Field, field_validator


class HttpClientConfig(BaseModel):
    """Configuration for AsyncApiClient.

    Defaults are tuned for long-running generation APIs: a generous read
    timeout so media downloads are not cut off, and redirects followed
    because generated media URIs redirect to storage hosts.

    Args:
        base_url: Base URL for all requests (e.g. "https://api.example.com")
        timeout: HTTPX timeout configuration
        limits: Connection pool limits
        follow_redirects: Whether to follow HTTP redirects
        user_agent: User-Agent header value
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    base_url: str
    timeout: httpx.Timeout = Field(default_factory=lambda: httpx.Timeout(120.0, connect=10.0))
    limits: httpx.Limits = Field(
        default_factory=lambda: httpx.Limits(max_keepalive_connections=10, max_connections=20)
    )
    follow_redirects: bool = True
    user_agent: str = "veoqueue/0.1"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is a valid URL."""
        if not v:
            raise ValueError("base_url cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v
