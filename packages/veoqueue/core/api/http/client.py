"""Async HTTP client wrapper built on HTTPX.

Provides:
- Optional retries with exponential backoff (off by default)
- Structured error handling
- Request/response debug logging with the query stripped
- Pydantic response parsing
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

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
from veoqueue.core.api.http.logging_utils import RequestLogContext, log_request, log_response
from veoqueue.core.api.http.retry import RetryPolicy, parse_retry_after_seconds
from veoqueue.core.api.http.utils import (
    get_request_id,
    join_url,
    merge_query,
    safe_snippet,
    strip_query,
)

TModel = TypeVar("TModel", bound=BaseModel)

ERROR_BODY_LIMIT = 4096


def _default_request_id() -> str:
    """Generate simple timestamp-based request ID."""
    return f"req_{int(time.time() * 1000)}"


def _is_json_response(resp: httpx.Response) -> bool:
    """Check if response content-type indicates JSON."""
    ctype = resp.headers.get("content-type", "")
    return "application/json" in ctype or "+json" in ctype


def _categorize_http_error(status_code: int) -> type[ApiError]:
    """Map HTTP status code to appropriate error class."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError


def _build_api_error(
    *,
    exc_type: type[ApiError],
    message: str,
    method: str,
    url: str,
    status_code: int | None = None,
    response: httpx.Response | None = None,
    request_id: str | None = None,
    body_snippet_limit: int = ERROR_BODY_LIMIT,
    cause: BaseException | None = None,
) -> ApiError:
    """Build API error with response context.

    Args:
        exc_type: Error class to instantiate
        message: Human-readable error message
        method: HTTP method
        url: Request URL (query is stripped before storing)
        status_code: HTTP status code (if available)
        response: HTTP response (if available)
        request_id: Request ID for tracing
        body_snippet_limit: Max bytes to include in error
        cause: Original exception that triggered this error

    Returns:
        Constructed API error
    """
    snippet: str | None = None
    if response is not None:
        snippet = safe_snippet(response.content or b"", body_snippet_limit)
        request_id = get_request_id(response.headers) or request_id

    return exc_type(
        message=message,
        method=method,
        url=strip_query(url),
        status_code=status_code,
        request_id=request_id,
        response_body_snippet=snippet,
        cause=cause,
    )


class AsyncApiClient:
    """Asynchronous HTTP API client.

    Built on httpx.AsyncClient with structured errors and observability.
    Every awaited call is a suspension point, so many generations can share
    one client on a single event loop.

    Args:
        config: Client configuration
        retry_policy: Retry policy (defaults to a single attempt)
        transport: Optional custom transport (useful for testing)

    Example:
        >>> config = HttpClientConfig(base_url="https://api.example.com")
        >>> async with AsyncApiClient(config) as client:
        ...     resp = await client.get("/v1/operations/abc", params={"key": "secret"})
        ...     data = client.json(resp)
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent},
            timeout=config.timeout,
            limits=config.limits,
            follow_redirects=config.follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        timeout: httpx.Timeout | None = None,
        expected_status: Sequence[int] | None = None,
    ) -> httpx.Response:
        """Send a request, raising a categorized ApiError on failure.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            params: Query parameters (merged with any query already in the URL)
            json_body: JSON-serializable request body
            timeout: Per-request timeout override
            expected_status: Accepted status codes; defaults to any status < 400

        Returns:
            HTTP response

        Raises:
            ApiError: On network failure, timeout, or unexpected status
        """
        method_u = method.upper()
        url = merge_query(join_url(str(self._client.base_url), path), params)
        log_url = strip_query(url)
        req_id = _default_request_id()

        headers = {"X-Request-Id": req_id}

        attempts = 0

        while True:
            attempts += 1
            ctx = RequestLogContext(
                method=method_u, url=log_url, attempt=attempts, request_id=req_id
            )
            start = log_request(ctx)

            try:
                resp = await self._client.request(
                    method_u,
                    url,
                    headers=headers,
                    json=json_body,
                    timeout=timeout or self.config.timeout,
                )
            except httpx.TimeoutException as e:
                if not self.retry_policy.should_retry(method_u, attempts):
                    raise _build_api_error(
                        exc_type=TimeoutError,
                        message="Request timed out",
                        method=method_u,
                        url=url,
                        request_id=req_id,
                        cause=e,
                    ) from e
                await asyncio.sleep(self.retry_policy.compute_delay(attempts))
                continue
            except httpx.RequestError as e:
                if not self.retry_policy.should_retry(method_u, attempts):
                    raise _build_api_error(
                        exc_type=NetworkError,
                        message="Network error while sending request",
                        method=method_u,
                        url=url,
                        request_id=req_id,
                        cause=e,
                    ) from e
                await asyncio.sleep(self.retry_policy.compute_delay(attempts))
                continue

            log_response(ctx, resp.status_code, start)

            if expected_status is not None:
                ok = resp.status_code in expected_status
            else:
                ok = resp.status_code < 400
            if ok:
                return resp

            if self.retry_policy.should_retry(method_u, attempts, resp.status_code):
                retry_after = parse_retry_after_seconds(resp.headers.get("Retry-After"))
                delay = (
                    retry_after
                    if retry_after is not None
                    else self.retry_policy.compute_delay(attempts)
                )
                await asyncio.sleep(delay)
                continue

            raise _build_api_error(
                exc_type=_categorize_http_error(resp.status_code),
                message="HTTP error response",
                method=method_u,
                url=url,
                status_code=resp.status_code,
                response=resp,
                request_id=req_id,
                body_snippet_limit=ERROR_BODY_LIMIT,
            )

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async POST request."""
        return await self.request("POST", path, **kwargs)

    def json(self, response: httpx.Response) -> Any:
        """Decode JSON response with structured error handling.

        Raises:
            DecodeError: If response is not JSON or parsing fails
        """
        if response.status_code == 204 or not response.content:
            return None
        if not _is_json_response(response):
            raise _build_api_error(
                exc_type=DecodeError,
                message="Response is not JSON (content-type mismatch)",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=ERROR_BODY_LIMIT,
            )
        try:
            return response.json()
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to parse JSON response",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=ERROR_BODY_LIMIT,
                cause=e,
            ) from e

    def parse_pydantic(self, response: httpx.Response, model: type[TModel]) -> TModel:
        """Parse and validate a JSON response with a Pydantic model.

        Raises:
            DecodeError: If JSON parsing or validation fails
        """
        data = self.json(response)
        try:
            return model.model_validate(data if data is not None else {})
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to validate response with Pydantic model",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=ERROR_BODY_LIMIT,
                cause=e,
            ) from e
