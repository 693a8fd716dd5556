"""HTTPX wrapper used for provider and license traffic.

Exposes a small surface:
- AsyncApiClient: high-level async client
- HttpClientConfig / RetryPolicy: configuration
- Exceptions: ApiError and subclasses
"""

from veoqueue.core.api.http.client import AsyncApiClient
from veoqueue.core.api.http.config import HttpClientConfig
from veoqueue.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
)
from veoqueue.core.api.http.retry import RetryPolicy

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "RetryPolicy",
    "ApiError",
    "NetworkError",
    "TimeoutError",
    "DecodeError",
    "RateLimitError",
    "AuthError",
    "ClientError",
    "ServerError",
    "UnexpectedStatusError",
]
