"""Real filesystem implementation using aiofiles for async I/O.

Text writes are atomic via temp file + os.replace(). Byte writes stream the
whole buffer into the target and can claim the name exclusively.
"""

import asyncio
import os
import time
from pathlib import Path
from tempfile import NamedTemporaryFile

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from .models import AbsolutePath, WriteResult


class RealFileSystem:
    """Real filesystem implementation using aiofiles for async I/O."""

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (sync - no I/O)."""
        result = Path(base).joinpath(*parts).resolve()

        base_resolved = Path(base).resolve()
        try:
            result.relative_to(base_resolved)
        except ValueError as e:
            raise ValueError(f"Path traversal detected: {result} escapes {base}") from e

        return AbsolutePath(result)

    async def exists(self, path: AbsolutePath) -> bool:
        return bool(await aiofiles.os.path.exists(path))

    async def read_text(self, path: AbsolutePath, encoding: str = "utf-8") -> str:
        async with aiofiles.open(path, encoding=encoding) as f:
            content: str = await f.read()
            return content

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        """Atomically write text file asynchronously."""
        start = time.perf_counter()
        path_obj = Path(path)

        await aiofiles.os.makedirs(path_obj.parent, exist_ok=True)

        loop = asyncio.get_running_loop()

        def create_temp_file() -> str:
            tmp = NamedTemporaryFile(
                mode="w",
                encoding=encoding,
                dir=path_obj.parent,
                delete=False,
            )
            tmp_path = tmp.name
            tmp.close()
            return tmp_path

        tmp_path = await loop.run_in_executor(None, create_temp_file)

        try:
            async with aiofiles.open(tmp_path, mode="w", encoding=encoding) as f:
                await f.write(content)
            await loop.run_in_executor(None, os.replace, tmp_path, str(path))
        except BaseException:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.unlink(tmp_path)
            raise

        return WriteResult(
            path=str(path),
            bytes_written=len(content.encode(encoding)),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def write_bytes(
        self,
        path: AbsolutePath,
        data: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write bytes asynchronously; ``exclusive`` maps to open mode ``xb``.

        A failed write removes the file it opened, so no partial file is left
        holding the name.
        """
        start = time.perf_counter()
        mode = "xb" if exclusive else "wb"
        async with aiofiles.open(path, mode=mode) as f:
            try:
                await f.write(data)
            except BaseException:
                await f.close()
                if await aiofiles.os.path.exists(path):
                    await aiofiles.os.unlink(path)
                raise

        return WriteResult(
            path=str(path),
            bytes_written=len(data),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        await aiofiles.os.makedirs(path, exist_ok=exist_ok)
