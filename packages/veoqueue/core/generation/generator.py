"""Single-item generation.

``ItemGenerator`` owns the per-item state machine: it reports ``loading``,
runs the backend-specific ``_produce`` step, and resolves the item to exactly
one terminal update. ``generate`` never raises for generation failures; the
only exception it lets through is asyncio task cancellation, after the
terminal update has been delivered.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from veoqueue.core.generation.cancellation import raise_if_cancelled, run_cancellable
from veoqueue.core.generation.errors import Cancelled, GenerationError
from veoqueue.core.generation.models import GenerationRequest, GenerationUpdate, PollOutcome
from veoqueue.core.generation.poller import OperationPoller
from veoqueue.core.generation.submitter import RequestSubmitter

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[GenerationUpdate], None]


def _short(prompt: str, limit: int = 40) -> str:
    return prompt if len(prompt) <= limit else prompt[: limit - 3] + "..."


class ItemGenerator(ABC):
    """Base class for generators that resolve one request to one result."""

    async def generate(self, request: GenerationRequest, on_update: UpdateCallback) -> None:
        """Run one generation, reporting progress through ``on_update``.

        Exactly one ``loading`` update is delivered first, followed by exactly
        one terminal ``success`` or ``error`` update.

        Args:
            request: Generation request
            on_update: Observer receiving partial results
        """
        self._emit(on_update, GenerationUpdate.loading())

        try:
            outcome = await self._produce(request)
        except Cancelled as e:
            logger.info("Generation cancelled: %s", _short(request.prompt))
            self._emit(on_update, GenerationUpdate.failure(e.message, cancelled=True))
            return
        except GenerationError as e:
            logger.error("Generation failed for %r: %s", _short(request.prompt), e.message)
            self._emit(on_update, GenerationUpdate.failure(e.message))
            return
        except asyncio.CancelledError:
            self._emit(on_update, GenerationUpdate.failure(Cancelled().message, cancelled=True))
            raise
        except Exception as e:
            logger.exception("Unexpected error generating %r", _short(request.prompt))
            self._emit(on_update, GenerationUpdate.failure(str(e) or type(e).__name__))
            return

        if not outcome.local_paths:
            logger.warning("Generation produced no saved media: %s", _short(request.prompt))
        self._emit(on_update, GenerationUpdate.success(outcome))

    @abstractmethod
    async def _produce(self, request: GenerationRequest) -> PollOutcome:
        """Produce and persist media for ``request``.

        Raises:
            GenerationError: On any expected failure (including Cancelled)
        """

    @staticmethod
    def _emit(on_update: UpdateCallback, update: GenerationUpdate) -> None:
        try:
            on_update(update)
        except Exception:
            logger.exception("Update observer raised for status %s", update.status.value)


class VideoGenerator(ItemGenerator):
    """Submit, poll, download.

    Args:
        submitter: Starts the long-running operation.
        poller: Waits for it and persists the samples.
    """

    def __init__(self, submitter: RequestSubmitter, poller: OperationPoller) -> None:
        self._submitter = submitter
        self._poller = poller

    async def _produce(self, request: GenerationRequest) -> PollOutcome:
        token = request.cancel_token
        raise_if_cancelled(token)
        handle = await run_cancellable(self._submitter.submit(request), token)
        raise_if_cancelled(token)
        return await self._poller.poll(
            handle,
            request.credential,
            target_directory=request.output_dir,
            cancel_token=token,
        )
