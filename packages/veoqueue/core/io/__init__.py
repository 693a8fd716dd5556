"""Filesystem abstraction layer for veoqueue.

Async-first filesystem operations used for media persistence and the
settings document.

Example:
    >>> from veoqueue.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> directory = absolute_path("~/Videos/veoqueue")
    >>> await fs.mkdirs(directory)
    >>> await fs.write_bytes(fs.join(directory, "clip.mp4"), data, exclusive=True)
"""

from .impl_fake import FakeFileSystem
from .impl_real import RealFileSystem
from .models import AbsolutePath, WriteResult, absolute_path, path_to_url
from .protocols import FileSystem
from .utils import sanitize_path_component

__all__ = [
    "AbsolutePath",
    "absolute_path",
    "path_to_url",
    "WriteResult",
    "FileSystem",
    "RealFileSystem",
    "FakeFileSystem",
    "sanitize_path_component",
]
