"""Tests for FakeFileSystem (async)."""

import pytest

from veoqueue.core.io import AbsolutePath, FakeFileSystem, absolute_path


@pytest.fixture
def fs():
    """Provide fresh FakeFileSystem instance."""
    return FakeFileSystem()


@pytest.fixture
def test_root():
    """Provide test root path."""
    return absolute_path("/test")


class TestJoin:
    """Tests for path joining (sync operation)."""

    def test_join_single_part(self, fs: FakeFileSystem, test_root: AbsolutePath):
        result = fs.join(test_root, "subdir")
        assert str(result) == "/test/subdir"

    def test_join_multiple_parts(self, fs: FakeFileSystem, test_root: AbsolutePath):
        result = fs.join(test_root, "a", "b", "c")
        assert str(result) == "/test/a/b/c"


class TestExistence:
    async def test_exists_returns_false_for_nonexistent(
        self, fs: FakeFileSystem, test_root: AbsolutePath
    ):
        assert not await fs.exists(test_root)

    async def test_exists_returns_true_for_file(self, fs: FakeFileSystem, test_root: AbsolutePath):
        test_file = fs.join(test_root, "test.txt")
        await fs.write_text(test_file, "content")
        assert await fs.exists(test_file)

    async def test_exists_returns_true_for_directory(
        self, fs: FakeFileSystem, test_root: AbsolutePath
    ):
        await fs.mkdirs(test_root)
        assert await fs.exists(test_root)


class TestText:
    async def test_roundtrip(self, fs: FakeFileSystem, test_root: AbsolutePath):
        path = fs.join(test_root, "settings.json")
        result = await fs.write_text(path, "{}")
        assert result.bytes_written == 2
        assert await fs.read_text(path) == "{}"

    async def test_read_missing_raises(self, fs: FakeFileSystem, test_root: AbsolutePath):
        with pytest.raises(FileNotFoundError):
            await fs.read_text(fs.join(test_root, "missing.txt"))


class TestBytes:
    async def test_write_requires_parent(self, fs: FakeFileSystem, test_root: AbsolutePath):
        with pytest.raises(FileNotFoundError):
            await fs.write_bytes(fs.join(test_root, "clip.mp4"), b"data")

    async def test_exclusive_write_refuses_existing(
        self, fs: FakeFileSystem, test_root: AbsolutePath
    ):
        await fs.mkdirs(test_root)
        path = fs.join(test_root, "clip.mp4")
        await fs.write_bytes(path, b"first", exclusive=True)

        with pytest.raises(FileExistsError):
            await fs.write_bytes(path, b"second", exclusive=True)
        assert fs.files[str(path)] == b"first"

    async def test_non_exclusive_write_overwrites(
        self, fs: FakeFileSystem, test_root: AbsolutePath
    ):
        await fs.mkdirs(test_root)
        path = fs.join(test_root, "clip.mp4")
        await fs.write_bytes(path, b"first")
        await fs.write_bytes(path, b"second")
        assert fs.files[str(path)] == b"second"
