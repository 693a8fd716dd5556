"""In-memory filesystem for fast, isolated testing.

Simulates filesystem operations without disk I/O.
Async operations complete immediately but maintain async interface.
"""

from pathlib import Path

from .models import AbsolutePath, WriteResult


class FakeFileSystem:
    """
    In-memory async filesystem for testing.

    Files are stored as bytes; text helpers encode/decode on the way in and
    out. Not thread-safe (use per-test instance).
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}

    @property
    def files(self) -> dict[str, bytes]:
        """Snapshot of stored files keyed by path string."""
        return dict(self._files)

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        result = Path(base).joinpath(*parts)
        if not result.is_absolute():
            result = Path("/") / result
        return AbsolutePath(result)

    async def exists(self, path: AbsolutePath) -> bool:
        path_str = str(Path(path))
        return path_str in self._files or path_str in self._dirs

    async def read_text(self, path: AbsolutePath, encoding: str = "utf-8") -> str:
        path_str = str(Path(path))
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[path_str].decode(encoding)

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        path_obj = Path(path)
        self._ensure_parents(path_obj.parent)
        data = content.encode(encoding)
        self._files[str(path_obj)] = data
        return WriteResult(path=str(path_obj), bytes_written=len(data), duration_ms=0.0)

    async def write_bytes(
        self,
        path: AbsolutePath,
        data: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        path_obj = Path(path)
        if str(path_obj.parent) not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path_obj.parent}")
        if exclusive and str(path_obj) in self._files:
            raise FileExistsError(f"File exists: {path}")
        self._files[str(path_obj)] = bytes(data)
        return WriteResult(path=str(path_obj), bytes_written=len(data), duration_ms=0.0)

    def _ensure_parents(self, path: Path) -> None:
        parts = path.parts
        for i in range(1, len(parts) + 1):
            self._dirs.add(str(Path(*parts[:i])))

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        path_str = str(Path(path))
        if not exist_ok and path_str in self._dirs:
            raise FileExistsError(f"Directory exists: {path}")
        self._ensure_parents(Path(path))
