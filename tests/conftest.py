"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Callable

import pytest

from merkledb.core.records import Record
from merkledb.errors import BackendWriteError
from merkledb.storage import MemoryBackend, ObjectStore


class SampleRecord(Record):
    """Simple record serialized as JSON with a fixed field order."""

    def __init__(self, record_id: str, data: str) -> None:
        self.record_id = record_id
        self.data = data

    def serialize(self) -> bytes:
        return json.dumps(
            {"id": self.record_id, "data": self.data}, separators=(",", ":")
        ).encode("utf-8")


class BrokenRecord(Record):
    """Record whose serialization always fails."""

    def serialize(self) -> bytes:
        raise RuntimeError("cannot serialize")


class ReadOnlyBackend(MemoryBackend):
    """Memory backend that rejects every write."""

    def put(self, key: bytes, value: bytes) -> None:
        raise BackendWriteError("backend is read-only")


@pytest.fixture
def backend() -> MemoryBackend:
    """Create an empty in-memory backend."""
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> ObjectStore:
    """Create an ObjectStore over the in-memory backend."""
    return ObjectStore(backend)


@pytest.fixture
def make_record() -> Callable[[str, str], Record]:
    """Factory for SampleRecord instances."""
    return SampleRecord


@pytest.fixture
def broken_record() -> Record:
    """A record that fails to serialize."""
    return BrokenRecord()


@pytest.fixture
def read_only_backend() -> MemoryBackend:
    """A backend that raises on every put."""
    return ReadOnlyBackend()


@pytest.fixture
def sample_dir(tmp_path: Path) -> Path:
    """Create a directory of sample files to snapshot."""
    root = tmp_path / "data"
    (root / "sub").mkdir(parents=True)
    (root / "file_a.txt").write_text("This is file A, version 1.")
    (root / "file_b.txt").write_text("This is file B.")
    (root / "sub" / "notes.md").write_text("# Notes\n")
    return root
