"""Media download and persistence."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from veoqueue.core.api.http import ApiError, AsyncApiClient
from veoqueue.core.generation.errors import DownloadFailed
from veoqueue.core.io import AbsolutePath, FileSystem, absolute_path, sanitize_path_component

logger = logging.getLogger(__name__)

# Upper bound on ``-N`` suffixes tried when a synthesized name is taken
_MAX_NAME_ATTEMPTS = 1000


class MediaDownloader:
    """Fetches produced resources and writes them into an output directory.

    Filenames follow ``{prefix}_{epoch_ms}_{index}.{ext}``. Files are
    created exclusively, so two items finishing in the same millisecond
    never overwrite each other: the later writer gets a ``-1`` suffix.

    Args:
        api: HTTP client used for resource downloads.
        fs: Filesystem used for persistence.
        clock: Returns seconds since the epoch (injectable for tests).
        prefix: Filename prefix naming the provider/model family.
        extension: File extension without the dot.
    """

    def __init__(
        self,
        api: AsyncApiClient,
        fs: FileSystem,
        *,
        clock: Callable[[], float] = time.time,
        prefix: str = "veo3",
        extension: str = "mp4",
    ) -> None:
        self._api = api
        self._fs = fs
        self._clock = clock
        self.prefix = sanitize_path_component(prefix)
        self.extension = extension.lstrip(".")

    def build_filename(self, index: int, extension: str | None = None) -> str:
        epoch_ms = int(self._clock() * 1000)
        return f"{self.prefix}_{epoch_ms}_{index}.{extension or self.extension}"

    async def fetch(self, resource_uri: str, credential: str) -> bytes:
        """Download a resource, following redirects.

        The credential is sent as the ``key`` query parameter, merged with
        any query the URI already carries.

        Raises:
            DownloadFailed: On a non-2xx response or transport failure
        """
        try:
            resp = await self._api.get(resource_uri, params={"key": credential})
        except ApiError as e:
            raise DownloadFailed(e.status_code, detail=e.message) from e
        return resp.content

    async def persist(self, data: bytes, filename: str, directory: str | Path) -> str:
        """Write ``data`` under ``directory``, creating it if needed.

        Returns:
            Absolute path of the written file

        Raises:
            OSError: If the directory cannot be created or the write fails
        """
        target_dir = absolute_path(directory)
        await self._fs.mkdirs(target_dir, exist_ok=True)

        stem, dot, ext = filename.rpartition(".")
        if not dot:
            stem, ext = filename, ""

        for attempt in range(_MAX_NAME_ATTEMPTS):
            name = filename if attempt == 0 else f"{stem}-{attempt}{dot}{ext}"
            path: AbsolutePath = self._fs.join(target_dir, name)
            try:
                result = await self._fs.write_bytes(path, data, exclusive=True)
            except FileExistsError:
                continue
            logger.debug("Saved %d bytes to %s", result.bytes_written, result.path)
            return result.path

        raise FileExistsError(f"No free filename for {filename} in {target_dir}")

    async def download(
        self, resource_uri: str, credential: str, directory: str | Path, index: int
    ) -> str:
        """Fetch one resource and persist it under a synthesized filename."""
        data = await self.fetch(resource_uri, credential)
        return await self.persist(data, self.build_filename(index), directory)
