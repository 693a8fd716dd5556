"""License activation and periodic checks against the license service."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from veoqueue.core.api.http import (
    ApiError,
    AsyncApiClient,
    DecodeError,
    HttpClientConfig,
)
from veoqueue.core.config.models import LicenseConfig
from veoqueue.core.licensing.models import LicenseData, LicenseStatus
from veoqueue.core.store.settings import AppSettings

logger = logging.getLogger(__name__)

ACTIVATE_PATH = "api/activate/"
CHECK_PATH = "api/check/"


def build_license_api(
    config: LicenseConfig, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncApiClient:
    """Create the HTTP client for the license service."""
    http_config = HttpClientConfig(
        base_url=config.base_url,
        timeout=httpx.Timeout(config.timeout_s, connect=min(config.timeout_s, 10.0)),
    )
    return AsyncApiClient(http_config, transport=transport)


class LicenseClient:
    """Activates license keys and refreshes the cached license state.

    Args:
        api: HTTP client bound to the license service.
        settings: Where the license state and device id are kept.
        clock: Returns seconds since the epoch (injectable for tests).
    """

    def __init__(
        self,
        api: AsyncApiClient,
        settings: AppSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._api = api
        self._settings = settings
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def cached_license(self) -> LicenseData | None:
        payload = await self._settings.get_license_payload()
        if payload is None:
            return None
        return LicenseData.model_validate(payload)

    async def _save(self, data: LicenseData) -> None:
        await self._settings.save_license_payload(data.model_dump(by_alias=True, mode="json"))

    async def activate(self, key: str) -> LicenseData:
        """Activate ``key`` for this device and persist the outcome.

        Never raises for server or network failures; those yield an
        ``invalid`` license.

        Returns:
            The stored license state
        """
        key = key.strip()
        device_id = await self._settings.get_device_id()
        ok = False
        payload: dict[str, Any] = {}

        try:
            resp = await self._api.post(
                ACTIVATE_PATH, json_body={"key": key, "device_id": device_id}
            )
            body = self._api.json(resp)
            payload = body if isinstance(body, dict) else {}
            ok = True
        except ApiError as e:
            if e.status_code is None:
                logger.error("License activation error: %s", e)
            payload = e.body_json() or {}

        if ok and payload.get("valid"):
            status = LicenseStatus.ACTIVE
        elif "expired" in str(payload.get("error") or ""):
            status = LicenseStatus.EXPIRED
        else:
            status = LicenseStatus.INVALID

        data = LicenseData(key=key, status=status, last_checked=self._now_ms())
        await self._save(data)
        logger.info("License activation result: %s", status.value)
        return data

    async def check_and_refresh(self) -> bool:
        """Ask the service whether this device is licensed.

        A 404 marks the cached license invalid. Network failures keep the
        cached status so a flaky connection does not lock the user out.

        Returns:
            Whether the device is currently licensed
        """
        device_id = await self._settings.get_device_id()

        try:
            resp = await self._api.get(CHECK_PATH, params={"device_id": device_id})
            body = self._api.json(resp)
        except DecodeError as e:
            logger.error("License check returned an unreadable response: %s", e)
            return await self._cached_is_active()
        except ApiError as e:
            if e.status_code == 404:
                cached = await self.cached_license()
                if cached is not None:
                    await self._save(
                        cached.model_copy(
                            update={
                                "status": LicenseStatus.INVALID,
                                "last_checked": self._now_ms(),
                            }
                        )
                    )
                return False
            if e.status_code is None:
                logger.error("Failed to check license: %s", e)
                return await self._cached_is_active()
            return False

        if isinstance(body, dict) and body.get("valid"):
            cached = await self.cached_license()
            key = body.get("license") or (cached.key if cached else "")
            await self._save(
                LicenseData(key=key, status=LicenseStatus.ACTIVE, last_checked=self._now_ms())
            )
            return True
        return False

    async def _cached_is_active(self) -> bool:
        cached = await self.cached_license()
        return cached is not None and cached.is_active
