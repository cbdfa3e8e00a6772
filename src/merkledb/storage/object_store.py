"""Content-addressable object storage for MerkleDB.

This module implements the hashing engine: records are serialized, hashed
with SHA-256, and written to a storage backend under the raw digest. The hex
encoding of the digest is the object's identity.
"""

import hashlib
import logging
import string

from merkledb.constants import HASH_LENGTH
from merkledb.errors import (
    BackendReadError,
    BackendWriteError,
    DecodeError,
    NotFoundError,
    SerializationError,
)
from merkledb.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


def compute_hash(data: bytes) -> str:
    """Compute the SHA-256 hash of ``data`` as 64 lowercase hex characters."""
    hasher = hashlib.sha256()
    hasher.update(data)
    return hasher.hexdigest()


def is_valid_hash(object_hash: str) -> bool:
    """Check that a string is a 64-character hex digest."""
    return (
        isinstance(object_hash, str)
        and len(object_hash) == HASH_LENGTH
        and all(c in string.hexdigits for c in object_hash)
    )


def decode_hash(object_hash: str) -> bytes:
    """Decode a hex hash string to raw digest bytes.

    Raises:
        DecodeError: If the string is not a 64-character hex digest
    """
    if not isinstance(object_hash, str):
        raise DecodeError(f"Hash must be string, got {type(object_hash)}")
    if len(object_hash) != HASH_LENGTH:
        raise DecodeError(f"Hash must be {HASH_LENGTH} characters, got {len(object_hash)}")
    if not all(c in string.hexdigits for c in object_hash):
        raise DecodeError(f"Hash must be hexadecimal: {object_hash!r}")
    return bytes.fromhex(object_hash)


class ObjectStore:
    """Content-addressable storage for records.

    Every write serializes the record, hashes the bytes and puts them into
    the backend under the raw digest. Identical content always maps to the
    identical key and value, so writing the same record twice is harmless
    and is not skipped here (backends may skip it internally).

    The store holds no state besides the backend reference; it is as
    thread-safe as its backend.

    Attributes:
        backend: StorageBackend holding the serialized objects

    Example:
        >>> store = ObjectStore(MemoryBackend())
        >>> object_hash = store.write_object(BlobRecord(b"ENCUT = 520\\n"))
        >>> store.read_raw_object(object_hash)
        b'ENCUT = 520\\n'
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    def write_object(self, record) -> str:
        """Serialize, hash and store a record.

        Args:
            record: Any object with a ``serialize() -> bytes`` method

        Returns:
            SHA-256 hash of the serialized record (64 hex characters)

        Raises:
            SerializationError: If the record fails to produce bytes
            BackendWriteError: If the backend put fails
        """
        try:
            data = record.serialize()
        except Exception as e:
            raise SerializationError(f"failed to serialize object: {e}") from e
        if not isinstance(data, (bytes, bytearray)):
            raise SerializationError(
                f"failed to serialize object: expected bytes, got {type(data).__name__}"
            )
        data = bytes(data)

        digest = hashlib.sha256(data).digest()
        object_hash = digest.hex()

        try:
            self.backend.put(digest, data)
        except Exception as e:
            raise BackendWriteError(f"failed to store object {object_hash}: {e}") from e

        logger.debug("Stored object %s (%d bytes)", object_hash, len(data))
        return object_hash

    def read_raw_object(self, object_hash: str) -> bytes:
        """Fetch the serialized bytes of an object.

        Low-level accessor: the bytes are returned exactly as stored, without
        deserialization.

        Args:
            object_hash: Hex-encoded SHA-256 hash

        Raises:
            DecodeError: If object_hash is not valid hex
            NotFoundError: If no object is stored under the hash
            BackendReadError: If the backend get fails otherwise
        """
        key = decode_hash(object_hash)

        try:
            data = self.backend.get(key)
        except NotFoundError as e:
            raise NotFoundError(f"failed to read object {object_hash}: {e}") from e
        except Exception as e:
            raise BackendReadError(f"failed to read object {object_hash}: {e}") from e

        logger.debug("Read object %s (%d bytes)", object_hash, len(data))
        return data

    def object_exists(self, object_hash: str) -> bool:
        """Check if an object is stored under ``object_hash``.

        Raises:
            DecodeError: If object_hash is not valid hex
            BackendReadError: If the backend check fails
        """
        key = decode_hash(object_hash)
        try:
            return self.backend.exists(key)
        except Exception as e:
            raise BackendReadError(f"failed to check object {object_hash}: {e}") from e
