"""Workspace: staging area for building commits.

The workspace is an in-memory picture of the next commit's tree. Records are
written to the object store as soon as they are added; committing writes the
staged tree and a commit pointing at it.

The staged tree is NOT cleared by ``commit``: like a working tree, the next
snapshot keeps every entry of the previous one unless it is removed or
overwritten. Call ``clear`` to start the next commit from an empty tree.
"""

import logging
import threading
from typing import Dict, Optional, Sequence

from merkledb.core.commit import create_commit
from merkledb.core.tree import Tree
from merkledb.errors import InvalidArgumentError, MerkleDBError, with_context
from merkledb.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class Workspace:
    """Staging area bound to one object store.

    Access to the staged tree is serialized by a lock, so ``add`` and
    ``commit`` may be called from several threads.

    Attributes:
        store: ObjectStore records, trees and commits are written to
        last_tree_hash: Hash of the tree written by the latest ``commit``,
            None before the first one

    Example:
        >>> ws = Workspace(ObjectStore(MemoryBackend()))
        >>> ws.add("INCAR", BlobRecord(b"ENCUT = 520\\n"))
        >>> first = ws.commit("Initial setup")
        >>> ws.add("KPOINTS", BlobRecord(b"Automatic\\n"))
        >>> second = ws.commit("Add k-points", [first])  # tree has both files
    """

    def __init__(self, store: Optional[ObjectStore]) -> None:
        """Initialize an empty workspace.

        Raises:
            InvalidArgumentError: If store is None
        """
        if store is None:
            raise InvalidArgumentError("object store cannot be None")
        self.store = store
        self._tree = Tree()
        self._lock = threading.Lock()
        self.last_tree_hash: Optional[str] = None

    def add(self, name: str, record) -> str:
        """Write a record and stage it under ``name``.

        The record is persisted immediately, even if the workspace is never
        committed. An existing entry with the same name is replaced.

        Returns:
            Hash of the written record

        Raises:
            SerializationError, BackendWriteError: If the record can't be written
        """
        try:
            object_hash = self.store.write_object(record)
        except MerkleDBError as e:
            raise with_context(e, f"failed to write object '{name}'") from e

        with self._lock:
            self._tree[name] = object_hash
        logger.debug("Staged %s -> %s", name, object_hash)
        return object_hash

    def remove(self, name: str) -> bool:
        """Unstage ``name``. Returns True if an entry was removed."""
        with self._lock:
            if name not in self._tree:
                return False
            del self._tree[name]
        return True

    def commit(self, message: str, parent_hashes: Optional[Sequence[str]] = None) -> str:
        """Write the staged tree and a commit pointing at it.

        The full tree is written on every call, not a diff against the
        parents.

        Returns:
            Commit hash

        Raises:
            SerializationError, BackendWriteError: If the tree or commit can't
                be written; records added earlier stay persisted
        """
        with self._lock:
            try:
                tree_hash = self.store.write_object(self._tree)
            except MerkleDBError as e:
                raise with_context(e, "failed to write tree") from e

            try:
                commit_hash = create_commit(self.store, tree_hash, message, parent_hashes)
            except MerkleDBError as e:
                raise with_context(e, "failed to create commit") from e

            self.last_tree_hash = tree_hash

        logger.debug("Committed tree %s as %s", tree_hash, commit_hash)
        return commit_hash

    def staged(self) -> Dict[str, str]:
        """Return a copy of the staged name to hash entries."""
        with self._lock:
            return dict(self._tree.entries)

    def clear(self) -> None:
        """Unstage all entries."""
        with self._lock:
            self._tree = Tree()

    def is_empty(self) -> bool:
        with self._lock:
            return len(self._tree) == 0
