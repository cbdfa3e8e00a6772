"""Backend registry for MerkleDB.

Maps backend names to factories. Builtin backends are always available;
third-party backends are discovered through the ``merkledb.backends`` entry
point group. A factory takes the repository directory and returns a
StorageBackend:

    [project.entry-points."merkledb.backends"]
    redis = "merkledb_redis:open_backend"
"""

import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Callable, Dict, List

from merkledb.constants import BACKEND_ENTRY_POINT_GROUP, SQLITE_DB
from merkledb.storage.backend import StorageBackend
from merkledb.storage.file_backend import FileBackend
from merkledb.storage.memory_backend import MemoryBackend
from merkledb.storage.sqlite_backend import SqliteBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Path], StorageBackend]


def _open_file_backend(repo_dir: Path) -> StorageBackend:
    return FileBackend(repo_dir)


def _open_sqlite_backend(repo_dir: Path) -> StorageBackend:
    backend = SqliteBackend(Path(repo_dir) / SQLITE_DB)
    backend.open()
    return backend


def _open_memory_backend(repo_dir: Path) -> StorageBackend:
    return MemoryBackend()


class BackendRegistry:
    """Registry of named storage backend factories.

    Example:
        registry = BackendRegistry()
        registry.discover_backends()
        backend = registry.open("sqlite", Path(".merkledb"))
    """

    BUILTIN_BACKENDS: Dict[str, BackendFactory] = {
        "file": _open_file_backend,
        "sqlite": _open_sqlite_backend,
        "memory": _open_memory_backend,
    }

    def __init__(self) -> None:
        self.factories: Dict[str, BackendFactory] = dict(self.BUILTIN_BACKENDS)

    def register(self, name: str, factory: BackendFactory) -> None:
        """Register a backend factory under ``name``, replacing any existing one."""
        self.factories[name] = factory

    def names(self) -> List[str]:
        """Return registered backend names, sorted."""
        return sorted(self.factories)

    def discover_backends(self) -> None:
        """Load third-party backend factories from entry points.

        Builtin names can't be overridden; broken entry points are logged
        and skipped.
        """
        if sys.version_info >= (3, 10):
            entry_points = metadata.entry_points(group=BACKEND_ENTRY_POINT_GROUP)
        else:
            entry_points = metadata.entry_points().get(BACKEND_ENTRY_POINT_GROUP, [])

        for entry_point in entry_points:
            if entry_point.name in self.BUILTIN_BACKENDS:
                logger.warning("Backend plugin '%s' shadows a builtin backend, skipping", entry_point.name)
                continue
            try:
                factory = entry_point.load()
            except Exception as e:
                logger.warning("Failed to load backend plugin '%s': %s", entry_point.name, e)
                continue

            if not callable(factory):
                logger.warning("Backend plugin '%s' is not callable, skipping", entry_point.name)
                continue

            self.register(entry_point.name, factory)
            logger.debug("Loaded backend plugin '%s'", entry_point.name)

    def open(self, name: str, repo_dir: Path) -> StorageBackend:
        """Open the backend called ``name`` for the repository at ``repo_dir``.

        Raises:
            KeyError: If no backend is registered under ``name``
        """
        try:
            factory = self.factories[name]
        except KeyError:
            raise KeyError(
                f"Unknown backend '{name}' (available: {', '.join(self.names())})"
            ) from None
        return factory(Path(repo_dir))
