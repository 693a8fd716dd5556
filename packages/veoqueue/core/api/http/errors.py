from __future__ import annotations

import json

from pydantic import BaseModel, Field


class ApiErrorData(BaseModel):
    """Structured data for HTTP API errors.

    Args:
        message: Human-readable error description
        method: HTTP method (GET, POST, etc.)
        url: Request URL (query string stripped, so credentials never leak)
        status_code: HTTP status code (if available)
        request_id: Request ID for tracing
        response_body_snippet: Truncated response body for debugging
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    method: str
    url: str
    status_code: int | None = None
    request_id: str | None = None
    response_body_snippet: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class ApiError(Exception):
    """Base exception for all HTTP client errors.

    Attributes:
        data: Structured error data (ApiErrorData)
        message: Human-readable error description
        method: HTTP method
        url: Request URL
        status_code: HTTP status code (if available)
        request_id: Request ID for tracing
        response_body_snippet: Truncated response body
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: int | None = None,
        request_id: str | None = None,
        response_body_snippet: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.data = ApiErrorData(
            message=message,
            method=method,
            url=url,
            status_code=status_code,
            request_id=request_id,
            response_body_snippet=response_body_snippet,
            cause=cause,
        )
        self.message = self.data.message
        self.method = self.data.method
        self.url = self.data.url
        self.status_code = self.data.status_code
        self.request_id = self.data.request_id
        self.response_body_snippet = self.data.response_body_snippet
        self.cause = self.data.cause

        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message, f"{self.method} {self.url}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " | ".join(parts)

    def body_json(self) -> dict | None:
        """Decode the body snippet as a JSON object, if it is one."""
        if not self.response_body_snippet:
            return None
        try:
            payload = json.loads(self.response_body_snippet)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    def provider_message(self, default: str) -> str:
        """Extract the provider's ``error.message`` from the response body.

        Google-style APIs wrap failures as ``{"error": {"message": ...}}``.
        Falls back to ``default`` when the body is missing or shaped
        differently.

        Args:
            default: Message to use when none can be extracted

        Returns:
            Provider message or default
        """
        payload = self.body_json()
        if payload is None:
            return default
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"] or default
        if isinstance(error, str) and error:
            return error
        return default


class NetworkError(ApiError):
    """Network-level error (DNS, connection reset, etc.)."""


class TimeoutError(ApiError):
    """Request timed out."""


class DecodeError(ApiError):
    """Failed to decode response body (JSON/schema)."""


class RateLimitError(ApiError):
    """HTTP 429 rate limit error."""


class AuthError(ApiError):
    """HTTP 401/403 authentication or authorization error."""


class ClientError(ApiError):
    """HTTP 4xx client error (excluding auth and rate limit)."""


class ServerError(ApiError):
    """HTTP 5xx server error."""


class UnexpectedStatusError(ApiError):
    """Non-2xx status that doesn't match a more specific category."""
