"""MerkleDB - a content-addressable object store with Git-like history.

Records are serialized to canonical bytes, hashed with SHA-256 and stored under
their hash. Trees map names to hashes and commits snapshot a tree together with
its parent commits, forming an append-only DAG.
"""

__version__ = "0.1.0"
__author__ = "MerkleDB Contributors"

from merkledb.core import (
    BlobRecord,
    Commit,
    JSONRecord,
    Record,
    Tree,
    Workspace,
    create_commit,
)
from merkledb.errors import (
    BackendReadError,
    BackendWriteError,
    DecodeError,
    InvalidArgumentError,
    MerkleDBError,
    NotFoundError,
    SerializationError,
)
from merkledb.storage import (
    FileBackend,
    MemoryBackend,
    ObjectStore,
    SqliteBackend,
    StorageBackend,
)

__all__ = [
    "__version__",
    "__author__",
    "BlobRecord",
    "Commit",
    "JSONRecord",
    "Record",
    "Tree",
    "Workspace",
    "create_commit",
    "ObjectStore",
    "StorageBackend",
    "MemoryBackend",
    "FileBackend",
    "SqliteBackend",
    "MerkleDBError",
    "SerializationError",
    "BackendWriteError",
    "BackendReadError",
    "NotFoundError",
    "DecodeError",
    "InvalidArgumentError",
]
