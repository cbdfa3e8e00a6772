"""Unit tests for Workspace."""

import json
import threading

import pytest

from merkledb.core.commit import Commit
from merkledb.core.records import BlobRecord
from merkledb.core.workspace import Workspace
from merkledb.errors import BackendWriteError, InvalidArgumentError, SerializationError
from merkledb.storage import MemoryBackend, ObjectStore, compute_hash


@pytest.fixture
def workspace(store: ObjectStore) -> Workspace:
    """Create an empty Workspace over the in-memory store."""
    return Workspace(store)


class TestWorkspaceInit:
    """Test Workspace initialization."""

    def test_init_empty(self, workspace: Workspace) -> None:
        assert workspace.is_empty()
        assert workspace.staged() == {}

    def test_init_none_store(self) -> None:
        """Test that a missing store is rejected."""
        with pytest.raises(InvalidArgumentError, match="cannot be None"):
            Workspace(None)


class TestAdd:
    """Test staging records."""

    def test_add_writes_immediately(self, workspace: Workspace, store: ObjectStore, make_record) -> None:
        """Test that add persists the record before any commit."""
        record = make_record("A", "Object A")
        object_hash = workspace.add("object_a", record)

        assert object_hash == compute_hash(record.serialize())
        assert store.read_raw_object(object_hash) == record.serialize()
        assert workspace.staged() == {"object_a": object_hash}

    def test_add_overwrites_same_name(self, workspace: Workspace, make_record) -> None:
        """Test that re-adding a name replaces its hash."""
        workspace.add("obj", make_record("A", "v1"))
        second = workspace.add("obj", make_record("A", "v2"))

        assert workspace.staged() == {"obj": second}

    def test_add_serialization_failure(self, workspace: Workspace, broken_record) -> None:
        """Test that failures keep their kind and name the entry."""
        with pytest.raises(SerializationError, match="failed to write object 'bad'"):
            workspace.add("bad", broken_record)

        assert workspace.is_empty()

    def test_staged_returns_copy(self, workspace: Workspace, make_record) -> None:
        workspace.add("a", make_record("A", "a"))
        staged = workspace.staged()
        staged["b"] = "tampered"

        assert "b" not in workspace.staged()


class TestRemoveAndClear:
    """Test unstaging."""

    def test_remove(self, workspace: Workspace, make_record) -> None:
        workspace.add("a", make_record("A", "a"))

        assert workspace.remove("a") is True
        assert workspace.remove("a") is False
        assert workspace.is_empty()

    def test_clear(self, workspace: Workspace, make_record) -> None:
        workspace.add("a", make_record("A", "a"))
        workspace.add("b", make_record("B", "b"))
        workspace.clear()

        assert workspace.is_empty()


class TestCommit:
    """Test committing staged entries."""

    def test_add_and_commit(self, workspace: Workspace, store: ObjectStore, make_record) -> None:
        """Test the full add, add, commit scenario."""
        obj_a = make_record("A", "Object A")
        obj_b = make_record("B", "Object B")
        hash_a = compute_hash(obj_a.serialize())
        hash_b = compute_hash(obj_b.serialize())

        workspace.add("object_a", obj_a)
        workspace.add("object_b", obj_b)
        commit_hash = workspace.commit("msg", [])

        decoded = json.loads(store.read_raw_object(commit_hash))
        assert decoded["message"] == "msg"
        assert decoded["parents"] == []
        assert decoded["timestamp"]

        raw_tree = store.read_raw_object(decoded["tree"])
        assert raw_tree == f'{{"object_a":"{hash_a}","object_b":"{hash_b}"}}'.encode()

    def test_commit_empty_workspace(self, workspace: Workspace, store: ObjectStore) -> None:
        """Test that an empty workspace commits an empty tree."""
        commit_hash = workspace.commit("empty")

        commit = Commit.from_bytes(store.read_raw_object(commit_hash))
        assert store.read_raw_object(commit.tree_hash) == b"{}"

    def test_commit_is_cumulative(self, workspace: Workspace, store: ObjectStore, make_record) -> None:
        """Test that entries from earlier commits carry into later ones."""
        workspace.add("first", make_record("1", "one"))
        first = workspace.commit("first")

        workspace.add("second", make_record("2", "two"))
        second = workspace.commit("second", [first])

        commit = Commit.from_bytes(store.read_raw_object(second))
        tree = json.loads(store.read_raw_object(commit.tree_hash))
        assert sorted(tree) == ["first", "second"]
        assert commit.parent_hashes == (first,)

    def test_last_tree_hash(self, workspace: Workspace, store: ObjectStore, make_record) -> None:
        """Test that the workspace exposes the tree it just wrote."""
        assert workspace.last_tree_hash is None

        workspace.add("a", make_record("A", "a"))
        commit = Commit.from_bytes(store.read_raw_object(workspace.commit("first")))

        assert workspace.last_tree_hash == commit.tree_hash

    def test_commit_after_clear_starts_fresh(self, workspace: Workspace, store: ObjectStore, make_record) -> None:
        workspace.add("first", make_record("1", "one"))
        workspace.commit("first")
        workspace.clear()
        workspace.add("second", make_record("2", "two"))

        commit = Commit.from_bytes(store.read_raw_object(workspace.commit("second")))
        assert sorted(json.loads(store.read_raw_object(commit.tree_hash))) == ["second"]

    def test_same_tree_same_hash(self, store: ObjectStore, make_record) -> None:
        """Test that two workspaces staging the same content in different order share a tree."""
        ws1 = Workspace(store)
        ws1.add("x", make_record("X", "x"))
        ws1.add("y", make_record("Y", "y"))

        ws2 = Workspace(store)
        ws2.add("y", make_record("Y", "y"))
        ws2.add("x", make_record("X", "x"))

        c1 = Commit.from_bytes(store.read_raw_object(ws1.commit("one")))
        c2 = Commit.from_bytes(store.read_raw_object(ws2.commit("two")))
        assert c1.tree_hash == c2.tree_hash

    def test_failed_tree_write_keeps_records(self, make_record) -> None:
        """Test that a failing commit leaves added records persisted and writes nothing else."""

        class FlakyBackend(MemoryBackend):
            fail = False

            def put(self, key: bytes, value: bytes) -> None:
                if self.fail:
                    raise OSError("disk full")
                super().put(key, value)

        backend = FlakyBackend()
        workspace = Workspace(ObjectStore(backend))
        workspace.add("a", make_record("A", "a"))
        backend.fail = True

        with pytest.raises(BackendWriteError, match="failed to write tree"):
            workspace.commit("msg")

        assert len(backend) == 1
        assert not workspace.is_empty()

    def test_concurrent_adds(self, workspace: Workspace) -> None:
        """Test that adds from several threads are all staged."""

        def adder(n: int) -> None:
            for i in range(25):
                workspace.add(f"{n}/{i}", BlobRecord(f"{n}-{i}".encode()))

        threads = [threading.Thread(target=adder, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(workspace.staged()) == 100
