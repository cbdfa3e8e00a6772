"""Storage layer for MerkleDB.

This module provides the backend contract, the reference backends and the
content-addressable object store built on top of them.
"""

from merkledb.storage.backend import StorageBackend
from merkledb.storage.file_backend import FileBackend
from merkledb.storage.memory_backend import MemoryBackend
from merkledb.storage.object_store import (
    ObjectStore,
    compute_hash,
    decode_hash,
    is_valid_hash,
)
from merkledb.storage.registry import BackendRegistry
from merkledb.storage.sqlite_backend import SqliteBackend

__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "FileBackend",
    "SqliteBackend",
    "BackendRegistry",
    "ObjectStore",
    "compute_hash",
    "decode_hash",
    "is_valid_hash",
]
