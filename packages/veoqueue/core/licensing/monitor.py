"""Background license re-check loop.

For hosts that stay up for hours; CLI commands check once per run.
"""

from __future__ import annotations

import asyncio
import logging

from veoqueue.core.config.models import LicenseConfig
from veoqueue.core.generation.cancellation import sleep_or_cancel
from veoqueue.core.generation.errors import Cancelled
from veoqueue.core.licensing.client import LicenseClient

logger = logging.getLogger(__name__)


class LicenseMonitor:
    """Re-checks the license at start and then every ``interval_s``.

    Args:
        client: License client.
        interval_s: Seconds between checks.
    """

    def __init__(self, client: LicenseClient, interval_s: float = 3600.0) -> None:
        self._client = client
        self.interval_s = interval_s
        self.is_licensed = False

    @classmethod
    def from_config(cls, client: LicenseClient, config: LicenseConfig) -> LicenseMonitor:
        """Monitor re-checking every ``config.check_interval_s``."""
        return cls(client, interval_s=config.check_interval_s)

    async def check_once(self) -> bool:
        self.is_licensed = await self._client.check_and_refresh()
        logger.debug("License check: licensed=%s", self.is_licensed)
        return self.is_licensed

    async def run(self, cancel_token: asyncio.Event) -> None:
        """Check until ``cancel_token`` is set."""
        while not cancel_token.is_set():
            await self.check_once()
            try:
                await sleep_or_cancel(self.interval_s, cancel_token)
            except Cancelled:
                break
        logger.debug("License monitor stopped")
