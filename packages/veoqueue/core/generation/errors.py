"""Generation error taxonomy.

Every failure inside the generation workflow is one of these; the item
generator turns them into a terminal ``error`` update.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for generation failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SubmissionFailed(GenerationError):
    """The provider rejected (or never answered) the creation request."""

    def __init__(self, provider_message: str) -> None:
        self.provider_message = provider_message
        super().__init__(provider_message)


class PollingFailed(GenerationError):
    """A status check itself failed (the job may still be running)."""

    def __init__(self, provider_message: str) -> None:
        self.provider_message = provider_message
        super().__init__(provider_message)


class PollingTimedOut(PollingFailed):
    """The configured maximum poll duration elapsed before completion."""

    def __init__(self, waited_s: float) -> None:
        self.waited_s = waited_s
        super().__init__(f"Operation did not finish within {waited_s:.0f}s")


class NoContentProduced(GenerationError):
    """The job finished but produced nothing the caller can use."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        message = "No content in response"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class OperationFailed(NoContentProduced):
    """The job finished with a provider-side error instead of samples."""

    def __init__(self, provider_message: str) -> None:
        self.provider_message = provider_message
        GenerationError.__init__(self, f"Operation failed: {provider_message}")
        self.reason = provider_message


class DownloadFailed(GenerationError):
    """Fetching one produced resource failed. Non-fatal for the item."""

    def __init__(self, http_status: int | None = None, detail: str | None = None) -> None:
        self.http_status = http_status
        if http_status is not None:
            message = f"Failed to download media: {http_status}"
        else:
            message = f"Failed to download media: {detail or 'network error'}"
        super().__init__(message)


class Cancelled(GenerationError):
    """A cancellation token was observed."""

    def __init__(self, message: str = "Cancelled") -> None:
        super().__init__(message)
