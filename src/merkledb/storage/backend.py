"""Storage backend contract.

The object store is agnostic about where bytes live. Anything implementing
these three methods can hold a MerkleDB repository: an in-memory dict, a
directory tree, an embedded database.
"""

from abc import ABC, abstractmethod
from typing import Any


class StorageBackend(ABC):
    """Byte-oriented key-value store.

    Keys are raw digest bytes (not hex). Implementations must raise
    ``merkledb.errors.NotFoundError`` from ``get`` when a key is absent and
    may raise ``BackendWriteError`` / ``BackendReadError`` for their own
    failures. Only single-key atomicity is expected.

    Example:
        class DictBackend(StorageBackend):
            def __init__(self):
                self.data = {}

            def put(self, key, value):
                self.data[key] = value

            def get(self, key):
                try:
                    return self.data[key]
                except KeyError:
                    raise NotFoundError(key.hex()) from None

            def exists(self, key):
                return key in self.data
    """

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def get(self, key: bytes) -> bytes:
        """Return the value stored under ``key``.

        Raises:
            NotFoundError: If the key is absent
        """

    @abstractmethod
    def exists(self, key: bytes) -> bool:
        """Check whether ``key`` is present."""

    def close(self) -> None:
        """Release any resources held by the backend.

        Override in backends holding connections or file handles.
        """

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
