"""Protocol for async filesystem operations."""

from typing import Protocol

from .models import AbsolutePath, WriteResult


class FileSystem(Protocol):
    """
    Protocol for async filesystem operations.

    Text writes are atomic (readers never observe partial documents).
    Byte writes support exclusive creation so concurrent writers into one
    directory can claim distinct filenames without locking.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """
        Safely join path components.

        Raises:
            ValueError: If result escapes base directory
        """
        ...

    async def exists(self, path: AbsolutePath) -> bool:
        """Check if path exists (file or directory)."""
        ...

    async def read_text(self, path: AbsolutePath, encoding: str = "utf-8") -> str:
        """
        Read text file contents.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        ...

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        """Atomically write text to file (temp file + replace)."""
        ...

    async def write_bytes(
        self,
        path: AbsolutePath,
        data: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """
        Write a complete byte buffer to a file.

        Args:
            path: Target file path (parent must exist)
            data: Bytes to write
            exclusive: Fail with FileExistsError instead of overwriting

        Raises:
            FileExistsError: If exclusive and the file already exists
            OSError: On write failure
        """
        ...

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and all parents."""
        ...
