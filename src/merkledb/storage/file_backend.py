"""Filesystem storage backend.

Values are stored one file per key in a Git-like sharded layout under
``<root>/objects/``, with atomic writes and optional gzip compression for
large values.
"""

import gzip
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from merkledb.constants import GZIP_THRESHOLD, OBJECTS_DIR
from merkledb.errors import BackendReadError, BackendWriteError, NotFoundError
from merkledb.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class FileBackend(StorageBackend):
    """Key-value store backed by a directory of files.

    Storage layout:
        <root>/objects/<key[:2]>/<key[2:]>      # Raw value
        <root>/objects/<key[:2]>/<key[2:]>.gz   # Compressed value

    where ``key`` is the hex encoding of the raw key bytes.

    Since keys are content digests, a key that already exists on disk
    holds the same value and is not rewritten.

    Attributes:
        root: Directory holding the ``objects/`` tree
        objects_dir: Path to the objects directory

    Example:
        >>> backend = FileBackend(Path(".merkledb"))
        >>> backend.put(key, b"ENCUT = 520\\n")
        >>> assert backend.get(key) == b"ENCUT = 520\\n"
    """

    def __init__(self, root: Path, gzip_threshold: Optional[int] = GZIP_THRESHOLD) -> None:
        """Initialize the backend.

        Args:
            root: Existing directory to store objects under
            gzip_threshold: Compress values of at least this many bytes;
                None disables compression

        Raises:
            ValueError: If root doesn't exist
        """
        self.root = Path(root)
        self.objects_dir = self.root / OBJECTS_DIR
        self.gzip_threshold = gzip_threshold

        if not self.root.exists():
            raise ValueError(f"Storage directory not found: {root}")

    def put(self, key: bytes, value: bytes) -> None:
        """Write a value, skipping keys already on disk.

        Uses atomic write (tmp file + rename) to prevent partial files.

        Raises:
            BackendWriteError: If the write fails (permissions, disk full, etc.)
        """
        if self.exists(key):
            logger.debug("Key %s already stored, skipping write", key.hex())
            return

        compress = self.gzip_threshold is not None and len(value) >= self.gzip_threshold
        data_to_write = gzip.compress(value, compresslevel=6) if compress else value
        path = self._get_path(key, compressed=compress)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=".tmp_",
                suffix=".obj",
            )
        except OSError as e:
            raise BackendWriteError(f"Failed to prepare {path}: {e}") from e

        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(data_to_write)
                f.flush()
                os.fsync(f.fileno())

            try:
                os.replace(tmp_path, path)
            except OSError:
                # Another writer stored the same content first
                if path.exists():
                    os.unlink(tmp_path)
                    return
                raise

        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise BackendWriteError(f"Failed to write {path}: {e}") from e

        logger.debug("Wrote %d bytes to %s", len(data_to_write), path)

    def get(self, key: bytes) -> bytes:
        """Read a value, decompressing if it was stored compressed.

        Raises:
            NotFoundError: If the key doesn't exist
            BackendReadError: If the file can't be read or decompressed
        """
        compressed_path = self._get_path(key, compressed=True)
        uncompressed_path = self._get_path(key, compressed=False)

        if compressed_path.exists():
            path = compressed_path
        elif uncompressed_path.exists():
            path = uncompressed_path
        else:
            raise NotFoundError(f"Key not found: {key.hex()}")

        try:
            data = path.read_bytes()
            if path is compressed_path:
                return gzip.decompress(data)
            return data
        except (OSError, EOFError) as e:
            raise BackendReadError(f"Failed to read {path}: {e}") from e

    def exists(self, key: bytes) -> bool:
        return (
            self._get_path(key, compressed=True).exists()
            or self._get_path(key, compressed=False).exists()
        )

    def _get_path(self, key: bytes, compressed: bool = False) -> Path:
        """Get the filesystem path for a key.

        Uses Git-like sharding: objects/<hex[:2]>/<hex[2:]>[.gz]
        """
        hex_key = bytes(key).hex()
        filename = f"{hex_key[2:]}.gz" if compressed else hex_key[2:]
        return self.objects_dir / hex_key[:2] / filename
