"""Exception hierarchy for MerkleDB.

Every failure raised by the library derives from MerkleDBError. Callers match
on the exception class, never on the message text:

    try:
        store.read_raw_object(object_hash)
    except NotFoundError:
        ...
"""

from typing import TypeVar


class MerkleDBError(Exception):
    """Base exception for all MerkleDB errors."""


class SerializationError(MerkleDBError):
    """Raised when a record fails to produce its canonical bytes."""


class BackendError(MerkleDBError):
    """Base exception for storage backend failures."""


class BackendWriteError(BackendError):
    """Raised when a backend put fails."""


class BackendReadError(BackendError):
    """Raised when a backend get or exists call fails."""


class NotFoundError(MerkleDBError, LookupError):
    """Raised when a key or object is absent from the backend."""


class DecodeError(MerkleDBError, ValueError):
    """Raised when a hash string is not a valid hex-encoded digest."""


class InvalidArgumentError(MerkleDBError, ValueError):
    """Raised when a required argument (e.g. an object store) is missing."""


E = TypeVar("E", bound=MerkleDBError)


def with_context(error: E, context: str) -> E:
    """Build an error of the same kind as ``error`` prefixed with ``context``.

    The original error is not modified; callers chain it explicitly:

        except MerkleDBError as e:
            raise with_context(e, "failed to write tree") from e
    """
    return type(error)(f"{context}: {error}")
