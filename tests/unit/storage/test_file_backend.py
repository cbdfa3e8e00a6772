"""Unit tests for FileBackend."""

import hashlib
from pathlib import Path

import pytest

from merkledb.errors import BackendReadError
from merkledb.storage import FileBackend


@pytest.fixture
def backend(tmp_path: Path) -> FileBackend:
    """Create a FileBackend rooted in a temporary directory."""
    return FileBackend(tmp_path)


def _key(content: bytes) -> bytes:
    return hashlib.sha256(content).digest()


class TestFileBackendInit:
    """Test FileBackend initialization."""

    def test_init_with_valid_dir(self, tmp_path: Path) -> None:
        """Test initialization with an existing directory."""
        backend = FileBackend(tmp_path)
        assert backend.root == tmp_path
        assert backend.objects_dir == tmp_path / "objects"

    def test_init_with_nonexistent_dir(self, tmp_path: Path) -> None:
        """Test initialization with a missing directory fails."""
        with pytest.raises(ValueError, match="not found"):
            FileBackend(tmp_path / "nonexistent")


class TestFileBackendLayout:
    """Test on-disk layout."""

    def test_put_creates_sharded_directory(self, backend: FileBackend) -> None:
        """Test that values are stored under 2-char shard directories."""
        key = _key(b"Test sharding")
        backend.put(key, b"Test sharding")

        shard_dir = backend.objects_dir / key.hex()[:2]
        assert shard_dir.is_dir()
        assert (shard_dir / key.hex()[2:]).read_bytes() == b"Test sharding"

    def test_no_temp_files_left(self, backend: FileBackend) -> None:
        """Test that atomic writes leave no temp files behind."""
        key = _key(b"atomic")
        backend.put(key, b"atomic")

        leftovers = list(backend.objects_dir.rglob(".tmp_*"))
        assert leftovers == []

    def test_existing_key_not_rewritten(self, backend: FileBackend) -> None:
        """Test that a key already on disk is not rewritten."""
        key = _key(b"original")
        backend.put(key, b"original")
        path = backend._get_path(key)
        mtime = path.stat().st_mtime_ns

        backend.put(key, b"original")

        assert path.stat().st_mtime_ns == mtime

    def test_small_values_uncompressed(self, backend: FileBackend) -> None:
        """Test that small values are not compressed by default."""
        key = _key(b"small")
        backend.put(key, b"small")

        assert backend._get_path(key, compressed=False).exists()
        assert not backend._get_path(key, compressed=True).exists()


class TestFileBackendCompression:
    """Test gzip compression of large values."""

    def test_compressed_round_trip(self, tmp_path: Path) -> None:
        """Test that values over the threshold are gzipped and read back."""
        backend = FileBackend(tmp_path, gzip_threshold=100)
        content = b"X" * 1000
        key = _key(content)

        backend.put(key, content)

        compressed_path = backend._get_path(key, compressed=True)
        assert compressed_path.exists()
        assert compressed_path.stat().st_size < len(content)
        assert backend.exists(key)
        assert backend.get(key) == content

    def test_compression_disabled(self, tmp_path: Path) -> None:
        """Test that a None threshold disables compression."""
        backend = FileBackend(tmp_path, gzip_threshold=None)
        content = b"Y" * 1000
        key = _key(content)

        backend.put(key, content)

        assert backend._get_path(key, compressed=False).exists()

    def test_corrupted_compressed_file(self, tmp_path: Path) -> None:
        """Test that an unreadable gzip file raises BackendReadError."""
        backend = FileBackend(tmp_path, gzip_threshold=10)
        content = b"Z" * 100
        key = _key(content)
        backend.put(key, content)

        backend._get_path(key, compressed=True).write_bytes(b"not gzip data")

        with pytest.raises(BackendReadError):
            backend.get(key)
