"""Commit objects and commit construction.

A commit is a snapshot of a tree at a point in time together with the hashes
of its parent commits. Commits form the append-only history DAG: a commit
with no parents is a root, one with several parents is a merge.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from merkledb.core.records import Record, dumps_canonical
from merkledb.errors import DecodeError, InvalidArgumentError, MerkleDBError, with_context
from merkledb.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d+)")


def format_timestamp(timestamp: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC string (``...Z``).

    Trailing zeros of the fractional seconds are trimmed and a zero fraction
    is omitted: ``2025-01-02T03:04:05.12Z``, ``2025-01-02T03:04:05Z``.
    """
    timestamp = timestamp.astimezone(timezone.utc)
    text = timestamp.strftime("%Y-%m-%dT%H:%M:%S")
    if timestamp.microsecond:
        text += f".{timestamp.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Fractions of any length are accepted; digits past microseconds are
    truncated.

    Raises:
        TypeError: If value is not a string
        ValueError: If value is not a valid timestamp
    """
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Commit(Record):
    """Immutable snapshot descriptor.

    Serialized as compact JSON with a fixed field order:

        {"tree":"<hash>","parents":["<hash>",...],"message":"...","timestamp":"...Z"}

    Parent order is kept exactly as given; it is neither sorted nor
    deduplicated.

    Attributes:
        tree_hash: Hash of the root tree of this snapshot
        parent_hashes: Hashes of the parent commits, in order
        message: Commit message
        timestamp: Creation time (UTC)
    """

    tree_hash: str
    parent_hashes: Tuple[str, ...] = field(default_factory=tuple)
    message: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_hashes", tuple(self.parent_hashes or ()))

    @property
    def is_root(self) -> bool:
        return len(self.parent_hashes) == 0

    @property
    def is_merge(self) -> bool:
        return len(self.parent_hashes) > 1

    def serialize(self) -> bytes:
        commit_obj = {
            "tree": self.tree_hash,
            "parents": list(self.parent_hashes),
            "message": self.message,
            "timestamp": format_timestamp(self.timestamp),
        }
        return dumps_canonical(commit_obj).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Commit":
        """Decode a commit from its serialized form.

        Raises:
            DecodeError: If data is not a valid commit object
        """
        try:
            commit_obj = json.loads(data)
            return cls(
                tree_hash=commit_obj["tree"],
                parent_hashes=tuple(commit_obj.get("parents") or ()),
                message=commit_obj["message"],
                timestamp=parse_timestamp(commit_obj["timestamp"]),
            )
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Invalid commit object: {e}") from e


def create_commit(
    store: Optional[ObjectStore],
    tree_hash: str,
    message: str,
    parent_hashes: Optional[Sequence[str]] = None,
) -> str:
    """Create a commit stamped with the current UTC time and write it.

    Args:
        store: ObjectStore to write the commit to
        tree_hash: Hash of the tree being committed
        message: Commit message
        parent_hashes: Parent commit hashes, in order; None or empty for a root

    Returns:
        Commit hash (SHA-256 hex string)

    Raises:
        InvalidArgumentError: If store is None
        SerializationError, BackendWriteError: If the commit can't be written
    """
    if store is None:
        raise InvalidArgumentError("object store cannot be None")

    commit = Commit(
        tree_hash=tree_hash,
        parent_hashes=tuple(parent_hashes or ()),
        message=message,
        timestamp=datetime.now(timezone.utc),
    )

    try:
        commit_hash = store.write_object(commit)
    except MerkleDBError as e:
        raise with_context(e, "failed to write commit") from e

    logger.debug(
        "Created commit %s (tree %s, %d parent(s))",
        commit_hash,
        tree_hash,
        len(commit.parent_hashes),
    )
    return commit_hash
