from __future__ import annotations

import logging
import time

from pydantic import BaseModel

logger = logging.getLogger("veoqueue.core.api.http")


class RequestLogContext(BaseModel):
    """One attempt of one request, as it appears in debug logs.

    ``url`` never carries the query string: the provider credential
    travels as a query parameter.
    """

    method: str
    url: str
    attempt: int
    request_id: str | None = None

    def as_extra(self) -> dict[str, object]:
        return self.model_dump()


def log_request(ctx: RequestLogContext) -> float:
    """Log an outgoing attempt and return its start time."""
    logger.debug("%s %s (attempt %d)", ctx.method, ctx.url, ctx.attempt, extra=ctx.as_extra())
    return time.perf_counter()


def log_response(ctx: RequestLogContext, status_code: int, started: float) -> None:
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.debug(
        "%s %s -> %d in %dms",
        ctx.method,
        ctx.url,
        status_code,
        elapsed_ms,
        extra={**ctx.as_extra(), "status_code": status_code, "elapsed_ms": elapsed_ms},
    )
