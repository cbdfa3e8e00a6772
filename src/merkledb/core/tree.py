"""Tree objects: named collections of object hashes.

A tree maps names (file names, sub-directory names, record keys) to the
hashes of other objects or trees, like a Git tree. Trees are records
themselves and can be written to the object store.
"""

import json
from typing import Dict, Iterator, Optional

from merkledb.core.records import Record, dumps_canonical
from merkledb.errors import DecodeError


class Tree(Record):
    """Mapping from name to object hash with a canonical serialization.

    The serialized form is compact JSON (escaped like ``JSONRecord``) with
    keys sorted byte-wise, so two trees with the same entries hash
    identically no matter how they were assembled:

        >>> tree = Tree()
        >>> tree["file.txt"] = "hash_of_file"
        >>> tree["data.csv"] = "hash_of_data"
        >>> tree.serialize()
        b'{"data.csv":"hash_of_data","file.txt":"hash_of_file"}'

    Attributes:
        entries: Name to hash mapping
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None) -> None:
        self.entries: Dict[str, str] = dict(entries or {})

    def serialize(self) -> bytes:
        # json.dumps(sort_keys=True) sorts by code point; sort on the UTF-8
        # bytes instead and emit the pairs by hand.
        keys = sorted(self.entries, key=lambda k: k.encode("utf-8"))
        pairs = [
            f"{dumps_canonical(key)}:{dumps_canonical(self.entries[key])}"
            for key in keys
        ]
        return ("{" + ",".join(pairs) + "}").encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Tree":
        """Load a tree from its serialized form.

        Raises:
            DecodeError: If data is not a JSON object of string values
        """
        try:
            entries = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid tree object: {e}") from e

        if not isinstance(entries, dict) or not all(
            isinstance(v, str) for v in entries.values()
        ):
            raise DecodeError("Invalid tree object: expected a JSON object of hashes")
        return cls(entries)

    def __setitem__(self, name: str, object_hash: str) -> None:
        self.entries[name] = object_hash

    def __getitem__(self, name: str) -> str:
        return self.entries[name]

    def __delitem__(self, name: str) -> None:
        del self.entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        """Iterate names in canonical (byte-wise sorted) order."""
        return iter(sorted(self.entries, key=lambda k: k.encode("utf-8")))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Tree) and other.entries == self.entries

    def __repr__(self) -> str:
        return f"Tree({len(self.entries)} entries)"
