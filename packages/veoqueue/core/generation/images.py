"""Image variant generation.

Image models answer synchronously: one ``generateContent`` call returns the
produced images inline, so there is no operation to poll.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from veoqueue.core.api.http import ApiError, AsyncApiClient
from veoqueue.core.generation.cancellation import raise_if_cancelled, run_cancellable
from veoqueue.core.generation.downloader import MediaDownloader
from veoqueue.core.generation.errors import NoContentProduced, SubmissionFailed
from veoqueue.core.generation.generator import ItemGenerator
from veoqueue.core.generation.models import GenerationRequest, PollOutcome
from veoqueue.core.generation.protocol import (
    GenerateContentResponse,
    build_generate_content_request,
)
from veoqueue.core.io import path_to_url

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_ERROR = "Failed to generate image"

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def extension_for(mime_type: str) -> str:
    """File extension for an image media type (``png`` when unknown)."""
    return _EXTENSIONS.get(mime_type.lower(), "png")


class ImageVariantGenerator(ItemGenerator):
    """Generates image variants from a prompt and optional reference images.

    Args:
        api: HTTP client bound to the provider base URL.
        downloader: Used for filename synthesis and persistence.
        default_directory: Output directory used when the request gives none.
    """

    def __init__(
        self,
        api: AsyncApiClient,
        downloader: MediaDownloader,
        default_directory: str | Path,
    ) -> None:
        self._api = api
        self._downloader = downloader
        self.default_directory = Path(default_directory)

    async def _produce(self, request: GenerationRequest) -> PollOutcome:
        token = request.cancel_token
        raise_if_cancelled(token)
        response = await run_cancellable(self._request(request), token)
        raise_if_cancelled(token)

        images = response.inline_images()
        if not images:
            raise NoContentProduced(response.empty_reason())

        directory = request.output_dir or self.default_directory
        preview_urls: list[str] = []
        local_paths: list[str] = []

        for index, image in enumerate(images):
            raise_if_cancelled(token)
            try:
                data = base64.b64decode(image.data, validate=True)
                filename = self._downloader.build_filename(
                    index, extension_for(image.mime_type)
                )
                path = await self._downloader.persist(data, filename, directory)
            except (binascii.Error, OSError) as e:
                logger.warning("Skipping image %d: %s", index, e)
                continue
            local_paths.append(path)
            preview_urls.append(path_to_url(path))

        return PollOutcome(preview_urls=preview_urls, local_paths=local_paths)

    async def _request(self, request: GenerationRequest) -> GenerateContentResponse:
        body = build_generate_content_request(request).to_wire()
        try:
            resp = await self._api.post(
                f"models/{request.model}:generateContent",
                params={"key": request.credential},
                json_body=body,
            )
            return self._api.parse_pydantic(resp, GenerateContentResponse)
        except ApiError as e:
            raise SubmissionFailed(e.provider_message(DEFAULT_IMAGE_ERROR)) from e
