"""Shared pytest fixtures for veoqueue tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest

from veoqueue.core.api.http import AsyncApiClient, HttpClientConfig
from veoqueue.core.io import FakeFileSystem

PROVIDER_URL = "https://provider.test/v1beta"
FILES_HOST = "files.test"
FIXED_EPOCH_S = 1_700_000_000.0

# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


# ============================================================================
# Fake provider
# ============================================================================


class FakeProvider:
    """Scripted video provider served through httpx.MockTransport.

    Each submitted prompt becomes an operation that reports ``done: false``
    for ``pending_checks`` status queries, then ``done: true`` with
    ``samples`` generated videos.

    Attributes:
        events: ``(kind, prompt)`` tuples in the order requests arrived,
            where kind is ``submit``, ``poll`` or ``download``.
        requests: Every request received.
    """

    def __init__(
        self,
        *,
        pending_checks: int = 1,
        samples: int = 1,
        fail_downloads: set[int] | None = None,
        submit_status: int = 200,
        submit_body: dict | None = None,
    ) -> None:
        self.pending_checks = pending_checks
        self.samples = samples
        self.fail_downloads = fail_downloads or set()
        self.submit_status = submit_status
        self.submit_body = submit_body
        self.events: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        self.on_poll = None
        self._ops: dict[str, dict] = {}

    def count(self, kind: str) -> int:
        return sum(1 for k, _ in self.events if k == kind)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith(":predictLongRunning"):
            body = json.loads(request.content)
            prompt = body["instances"][0]["prompt"]
            self.events.append(("submit", prompt))
            if self.submit_status != 200 or self.submit_body is not None:
                return httpx.Response(self.submit_status, json=self.submit_body or {})
            name = f"models/veo/operations/op{len(self._ops)}"
            self._ops[name] = {"checks": 0, "prompt": prompt}
            return httpx.Response(200, json={"name": name})

        if "/operations/" in path:
            name = path.split("/v1beta/", 1)[1]
            op = self._ops[name]
            op["checks"] += 1
            self.events.append(("poll", op["prompt"]))
            if self.on_poll is not None:
                self.on_poll(name, op["checks"])
            if op["checks"] <= self.pending_checks:
                return httpx.Response(200, json={"name": name, "done": False})
            op_id = name.rsplit("/", 1)[1]
            samples = [
                {"video": {"uri": f"https://{FILES_HOST}/{op_id}/{i}?alt=media"}}
                for i in range(self.samples)
            ]
            return httpx.Response(
                200,
                json={
                    "name": name,
                    "done": True,
                    "response": {"generateVideoResponse": {"generatedSamples": samples}},
                },
            )

        if request.url.host == FILES_HOST:
            op_id, index = path.strip("/").split("/")
            prompt = next(
                (op["prompt"] for n, op in self._ops.items() if n.endswith(f"/{op_id}")), ""
            )
            self.events.append(("download", prompt))
            if int(index) in self.fail_downloads:
                return httpx.Response(500, text="storage error")
            return httpx.Response(200, content=f"video:{op_id}:{index}".encode())

        return httpx.Response(404, json={"error": {"message": "not found"}})


@pytest.fixture
def make_provider():
    """Factory for FakeProvider with custom scripting."""
    return FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
async def make_api() -> AsyncIterator:
    """Factory for AsyncApiClients wired to a MockTransport handler."""
    clients: list[AsyncApiClient] = []

    def _make(handler, base_url: str = PROVIDER_URL) -> AsyncApiClient:
        cfg = HttpClientConfig(base_url=base_url)
        client = AsyncApiClient(cfg, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest.fixture
def provider_api(provider: FakeProvider, make_api) -> AsyncApiClient:
    """AsyncApiClient wired to the ``provider`` fixture."""
    return make_api(provider.handler)


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_EPOCH_S
