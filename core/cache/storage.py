"""Local persistent store for the translation cache.

Keeps the whole cache as a single serialized blob in SQLite, keyed by the cache format
version. A blob written under any other version is discarded on load, never migrated.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["CacheStorageError", "LocalCacheStorage"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class CacheStorageError(Exception):
    """The local cache store could not be read or written."""


class LocalCacheStorage:
    """Single-blob key/value store backed by an SQLite file in WAL mode.

    Args:
        path (str | Path): Database file path. ``":memory:"`` keeps everything in memory.
        version (str): Cache format version used as the blob key.
    """

    def __init__(self, path: str | Path, version: str) -> None:
        self._path: str = str(path)
        self._version: str = version
        self._db_conn: sqlite3.Connection | None = None

    @property
    def version(self) -> str:
        return self._version

    def _connection(self) -> sqlite3.Connection:
        if self._db_conn is not None:
            return self._db_conn

        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            conn: sqlite3.Connection = sqlite3.connect(self._path, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_blob (
                    version TEXT PRIMARY KEY,
                    payload TEXT NOT NULL
                )
                """
            )
            conn.commit()
        except (sqlite3.Error, OSError) as err:
            msg: str = f"Failed to open cache store '{self._path}': {err}"
            raise CacheStorageError(msg) from err

        self._db_conn = conn
        logger.debug("Cache store opened: %s", self._path)
        return conn

    def load(self) -> str | None:
        """Read the blob written under the current version.

        Blobs under other versions are deleted.

        Returns:
            str | None: The serialized blob, or None if nothing usable is stored.

        Raises:
            CacheStorageError: If the database cannot be read.
        """
        conn: sqlite3.Connection = self._connection()
        try:
            cursor: sqlite3.Cursor = conn.execute("DELETE FROM cache_blob WHERE version != ?", (self._version,))
            if cursor.rowcount:
                logger.info("Discarded %d cache blob(s) with an outdated format version", cursor.rowcount)
            conn.commit()
            row = conn.execute("SELECT payload FROM cache_blob WHERE version = ?", (self._version,)).fetchone()
        except sqlite3.Error as err:
            msg: str = f"Failed to read cache store: {err}"
            raise CacheStorageError(msg) from err
        return None if row is None else row[0]

    def save(self, payload: str) -> None:
        """Replace the blob for the current version.

        Raises:
            CacheStorageError: If the database cannot be written.
        """
        conn: sqlite3.Connection = self._connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO cache_blob (version, payload) VALUES (?, ?)",
                (self._version, payload),
            )
            conn.commit()
        except sqlite3.Error as err:
            msg: str = f"Failed to write cache store: {err}"
            raise CacheStorageError(msg) from err

    def clear(self) -> None:
        """Remove every stored blob.

        Raises:
            CacheStorageError: If the database cannot be written.
        """
        conn: sqlite3.Connection = self._connection()
        try:
            conn.execute("DELETE FROM cache_blob")
            conn.commit()
        except sqlite3.Error as err:
            msg: str = f"Failed to clear cache store: {err}"
            raise CacheStorageError(msg) from err

    def close(self) -> None:
        if self._db_conn is None:
            return
        try:
            self._db_conn.close()
            logger.debug("Cache store closed")
        except sqlite3.Error as err:
            logger.error("Error closing cache store: %s", err)
        finally:
            self._db_conn = None
