"""In-memory storage backend, for tests and short-lived stores."""

from typing import Dict

from merkledb.errors import NotFoundError
from merkledb.storage.backend import StorageBackend


class MemoryBackend(StorageBackend):
    """Dictionary-backed key-value store.

    Nothing is persisted; the data lives as long as the instance.
    """

    # no locking needed, the dict operations used here are atomic
    def __init__(self) -> None:
        self._data: Dict[bytes, bytes] = {}

    def put(self, key: bytes, value: bytes) -> None:
        self._data[bytes(key)] = bytes(value)

    def get(self, key: bytes) -> bytes:
        value = self._data.get(bytes(key))
        if value is None:
            raise NotFoundError(f"Key not found: {bytes(key).hex()}")
        return value

    def exists(self, key: bytes) -> bool:
        return bytes(key) in self._data

    def __len__(self) -> int:
        return len(self._data)
