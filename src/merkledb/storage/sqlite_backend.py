"""SQLite storage backend for MerkleDB.

All objects live in a single table of an embedded SQLite database, which
keeps a repository to one file and gives single-key atomicity for free.
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional

from merkledb.errors import BackendReadError, BackendWriteError, NotFoundError
from merkledb.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class SqliteBackend(StorageBackend):
    """Key-value store in a SQLite database.

    Schema Tables:
        - objects: key (raw digest) to value (serialized object bytes)

    The connection is opened lazily on first use and shared between threads;
    a lock serializes access to it.

    Attributes:
        db_path: Path to the SQLite database file
        conn: Active database connection (if open)

    Example:
        >>> with SqliteBackend(Path(".merkledb/objects.db")) as backend:
        ...     backend.put(key, b"data")
        ...     backend.get(key)
        b'data'
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the backend.

        Args:
            db_path: Path to the database file (created if missing)
        """
        self.db_path = Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._wal_mode_supported: Optional[bool] = None

    def open(self) -> None:
        """Open the database connection and create the schema.

        Attempts to use WAL mode for better concurrency. Falls back to
        DELETE mode if WAL is not supported (e.g., on NFS).

        Raises:
            BackendError: If connection fails
        """
        if self.conn is not None:
            return  # Already open

        try:
            self.conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,  # Wait up to 30s for locks
                check_same_thread=False,
            )

            if self._wal_mode_supported is None:
                self._detect_wal_support()

            if self._wal_mode_supported:
                self.conn.execute("PRAGMA journal_mode=WAL")
            else:
                self.conn.execute("PRAGMA journal_mode=DELETE")

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS objects (
                    key BLOB PRIMARY KEY,
                    value BLOB NOT NULL
                )
            """)
            self.conn.commit()

        except sqlite3.Error as e:
            self.conn = None
            raise BackendReadError(f"Failed to open database {self.db_path}: {e}") from e

        logger.debug("Opened SQLite backend at %s", self.db_path)

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "SqliteBackend":
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _detect_wal_support(self) -> None:
        """Detect if WAL journal mode is supported.

        WAL may not work on network filesystems like NFS or some Lustre configs.
        """
        try:
            cursor = self.conn.execute("PRAGMA journal_mode=WAL")  # type: ignore
            result = cursor.fetchone()
            self._wal_mode_supported = result[0].upper() == "WAL"
        except sqlite3.Error:
            self._wal_mode_supported = False

    def _connection(self) -> sqlite3.Connection:
        self.open()
        return self.conn  # type: ignore

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace the value stored under ``key``.

        Raises:
            BackendWriteError: If the insert fails
        """
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute(
                        "INSERT OR REPLACE INTO objects (key, value) VALUES (?, ?)",
                        (bytes(key), bytes(value)),
                    )
            except sqlite3.Error as e:
                raise BackendWriteError(f"Failed to write key {bytes(key).hex()}: {e}") from e

    def get(self, key: bytes) -> bytes:
        """Fetch the value stored under ``key``.

        Raises:
            NotFoundError: If the key doesn't exist
            BackendReadError: If the query fails
        """
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT value FROM objects WHERE key = ?", (bytes(key),)
                ).fetchone()
            except sqlite3.Error as e:
                raise BackendReadError(f"Failed to read key {bytes(key).hex()}: {e}") from e

        if row is None:
            raise NotFoundError(f"Key not found: {bytes(key).hex()}")
        return bytes(row[0])

    def exists(self, key: bytes) -> bool:
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT 1 FROM objects WHERE key = ?", (bytes(key),)
                ).fetchone()
            except sqlite3.Error as e:
                raise BackendReadError(f"Failed to check key {bytes(key).hex()}: {e}") from e
        return row is not None

    def count(self) -> int:
        """Return the number of stored objects."""
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute("SELECT COUNT(*) FROM objects").fetchone()[0]
            except sqlite3.Error as e:
                raise BackendReadError(f"Failed to count objects: {e}") from e
