"""Tests for ImageVariantGenerator."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.images import ImageVariantGenerator, extension_for
from veoqueue.core.generation.models import (
    GenerationRequest,
    GenerationStatus,
    GenerationUpdate,
    InlineImage,
)


def _make_request(**overrides) -> GenerationRequest:
    fields = {"prompt": "a red fox", "model": "gemini-2.5-flash-image", "credential": "k"}
    fields.update(overrides)
    return GenerationRequest(**fields)


def _image_response(*images: tuple[str, bytes]) -> httpx.Response:
    parts = [{"text": "ok"}] + [
        {"inlineData": {"mimeType": mime, "data": base64.b64encode(data).decode()}}
        for mime, data in images
    ]
    return httpx.Response(
        200, json={"candidates": [{"content": {"role": "model", "parts": parts}}]}
    )


def _make_generator(api, fs, clock) -> ImageVariantGenerator:
    downloader = MediaDownloader(api, fs, clock=clock, prefix="imagen", extension="png")
    return ImageVariantGenerator(api, downloader, "/images")


async def _run(generator: ImageVariantGenerator, request: GenerationRequest):
    updates: list[GenerationUpdate] = []
    await generator.generate(request, updates.append)
    return updates


def test_extension_for():
    assert extension_for("image/jpeg") == "jpg"
    assert extension_for("image/PNG") == "png"
    assert extension_for("application/octet-stream") == "png"


@pytest.mark.asyncio
class TestImageVariantGenerator:
    async def test_persists_every_image(self, make_api, fake_fs, fixed_clock):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _image_response(("image/png", b"png-bytes"), ("image/jpeg", b"jpg-bytes"))

        updates = await _run(_make_generator(make_api(handler), fake_fs, fixed_clock), _make_request())

        final = updates[-1]
        assert final.status == GenerationStatus.SUCCESS
        assert final.local_paths == [
            "/images/imagen_1700000000000_0.png",
            "/images/imagen_1700000000000_1.jpg",
        ]
        assert fake_fs.files[final.local_paths[1]] == b"jpg-bytes"
        assert seen[0].url.path.endswith("/models/gemini-2.5-flash-image:generateContent")
        assert seen[0].url.params["key"] == "k"

    async def test_reference_images_sent_inline(self, make_api, fake_fs, fixed_clock):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return _image_response(("image/png", b"x"))

        reference = InlineImage.from_bytes(b"ref", "image/png")
        await _run(
            _make_generator(make_api(handler), fake_fs, fixed_clock),
            _make_request(reference_images=[reference]),
        )

        parts = bodies[0]["contents"][0]["parts"]
        assert parts[0]["text"] == "a red fox"
        assert parts[1]["inlineData"]["data"] == reference.data

    async def test_no_images_is_error(self, make_api, fake_fs, fixed_clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        updates = await _run(_make_generator(make_api(handler), fake_fs, fixed_clock), _make_request())

        assert updates[-1].status == GenerationStatus.ERROR
        assert updates[-1].error == "No content in response: blocked (SAFETY)"

    async def test_provider_error(self, make_api, fake_fs, fixed_clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": {"message": "Resource exhausted"}})

        updates = await _run(_make_generator(make_api(handler), fake_fs, fixed_clock), _make_request())

        assert updates[-1].error == "Resource exhausted"

    async def test_undecodable_image_skipped(self, make_api, fake_fs, fixed_clock):
        def handler(request: httpx.Request) -> httpx.Response:
            good = base64.b64encode(b"ok").decode()
            parts = [
                {"inlineData": {"mimeType": "image/png", "data": "%%%not-base64"}},
                {"inlineData": {"mimeType": "image/png", "data": good}},
            ]
            return httpx.Response(200, json={"candidates": [{"content": {"parts": parts}}]})

        updates = await _run(_make_generator(make_api(handler), fake_fs, fixed_clock), _make_request())

        assert updates[-1].status == GenerationStatus.SUCCESS
        assert updates[-1].local_paths == ["/images/imagen_1700000000000_1.png"]
