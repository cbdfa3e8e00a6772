"""Serializable-record contract.

Anything stored in MerkleDB must be able to turn itself into canonical bytes:
two logically equal values must always serialize to identical bytes, since
the bytes are what gets hashed.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, is_dataclass
from typing import Any

# Escaped as Go's encoding/json does; json.dumps leaves them as-is.
_HTML_SAFE_ESCAPES = (
    ("&", "\\u0026"),
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def dumps_canonical(obj: Any, **kwargs: Any) -> str:
    """Dump ``obj`` as compact UTF-8 JSON with HTML-safe escaping."""
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, **kwargs)
    for char, escaped in _HTML_SAFE_ESCAPES:
        text = text.replace(char, escaped)
    return text


class Record(ABC):
    """Base class for storable records."""

    @abstractmethod
    def serialize(self) -> bytes:
        """Return the canonical byte representation used for hashing."""


class JSONRecord(Record):
    """Mixin for dataclass records serialized as canonical JSON.

    Canonical JSON: sorted keys, no whitespace, UTF-8, with ``&``, ``<``
    and ``>`` escaped as ``\\u0026``, ``\\u003c`` and ``\\u003e``.

    Example:
        @dataclass
        class User(JSONRecord):
            name: str
            email: str

        User("Alice", "alice@example.com").serialize()
        # b'{"email":"alice@example.com","name":"Alice"}'
    """

    def serialize(self) -> bytes:
        if not is_dataclass(self):
            raise TypeError(f"{type(self).__name__} must be a dataclass to use JSONRecord")
        return dumps_canonical(asdict(self), sort_keys=True).encode("utf-8")


class BlobRecord(Record):
    """Opaque bytes, stored as-is (e.g. file contents)."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def serialize(self) -> bytes:
        return self.data

    def __eq__(self, other: object) -> bool:
        return isinstance(other, BlobRecord) and other.data == self.data

    def __repr__(self) -> str:
        return f"BlobRecord({len(self.data)} bytes)"
