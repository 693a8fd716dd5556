"""Utility functions for HTTP client operations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx


def join_url(base_url: str, path: str) -> str:
    """Join base URL with a path or pass through an absolute URL.

    Operation names ("operations/abc") are joined onto the base URL, while
    media URIs returned by the provider are already absolute and are kept
    as-is.

    Args:
        base_url: Base URL (e.g. "https://api.example.com/v1beta")
        path: Request path or absolute URL

    Returns:
        Absolute request URL

    Example:
        >>> join_url("https://api.example.com/v1beta", "models/veo:predictLongRunning")
        'https://api.example.com/v1beta/models/veo:predictLongRunning'
        >>> join_url("https://api.example.com/v1beta", "https://cdn.example.com/v.mp4")
        'https://cdn.example.com/v.mp4'
    """
    if path.startswith(("http://", "https://")):
        return path
    base = base_url if base_url.endswith("/") else base_url + "/"
    return urljoin(base, path.lstrip("/"))


def strip_query(url: str) -> str:
    """Drop the query string and fragment from a URL (for logs and errors)."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def merge_query(url: str, params: Mapping[str, Any] | None) -> str:
    """Add ``params`` to a URL, keeping any query it already carries.

    httpx replaces an existing query when ``params=`` is passed, which would
    drop the ``alt=media`` on provider download URIs.

    Example:
        >>> merge_query("https://files.test/v?alt=media", {"key": "k"})
        'https://files.test/v?alt=media&key=k'
    """
    if not params:
        return url
    return str(httpx.URL(url).copy_merge_params(dict(params)))


def safe_snippet(content: bytes, limit: int) -> str:
    """Decode a truncated response body for logging.

    Args:
        content: Response body bytes
        limit: Maximum number of bytes to include

    Returns:
        Truncated, decoded text snippet
    """
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Extract request ID from common tracing headers (case-insensitive)."""
    for key in ("x-request-id", "x-goog-request-id", "x-correlation-id", "request-id"):
        for hk, hv in headers.items():
            if hk.lower() == key:
                return hv
    return None
