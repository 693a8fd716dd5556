"""Long-running operation submission."""

from __future__ import annotations

import logging

from veoqueue.core.api.http import ApiError, AsyncApiClient
from veoqueue.core.generation.errors import SubmissionFailed
from veoqueue.core.generation.models import GenerationRequest, OperationHandle
from veoqueue.core.generation.protocol import OperationResponse, build_predict_request

logger = logging.getLogger(__name__)

DEFAULT_SUBMIT_ERROR = "Failed to start video generation"


class RequestSubmitter:
    """Starts a video generation job and returns its operation handle.

    Args:
        api: HTTP client bound to the provider base URL.
    """

    def __init__(self, api: AsyncApiClient) -> None:
        self._api = api

    async def submit(self, request: GenerationRequest) -> OperationHandle:
        """Submit ``request`` as a long-running operation.

        Args:
            request: Generation request (prompt, model, credential, options)

        Returns:
            Handle naming the provider-side operation

        Raises:
            SubmissionFailed: On a non-2xx response, transport failure, or a
                response without an operation name
        """
        body = build_predict_request(request).to_wire()
        try:
            resp = await self._api.post(
                f"models/{request.model}:predictLongRunning",
                params={"key": request.credential},
                json_body=body,
            )
            parsed = self._api.parse_pydantic(resp, OperationResponse)
        except ApiError as e:
            message = e.provider_message(DEFAULT_SUBMIT_ERROR)
            logger.debug("Submission rejected: %s", e)
            raise SubmissionFailed(message) from e

        if not parsed.name:
            raise SubmissionFailed("No operation name returned")

        logger.info("Started operation %s (model=%s)", parsed.name, request.model)
        return OperationHandle(name=parsed.name)
