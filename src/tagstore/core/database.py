"""Database connection — thin sqlite3 wrapper that reports RepositoryError."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

from tagstore.core.config import get_database_path
from tagstore.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages a connection to the tagstore SQLite database."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path is not None else get_database_path()
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open the database connection."""
        try:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.row_factory = sqlite3.Row
        except Exception as e:
            raise RepositoryError(f"Failed to connect to database: {e}") from e
        logger.debug("Connected to %s", self.db_path)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection, raising if not connected."""
        if self._conn is None:
            raise RepositoryError("Database not connected. Call connect() first.")
        return self._conn

    def execute(self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> sqlite3.Cursor:
        """Execute a SQL statement."""
        conn = self.conn
        try:
            return conn.execute(sql, params)
        except Exception as e:
            logger.warning("SQL error: %s", e)
            raise RepositoryError(f"SQL error: {e}\nQuery: {sql}") from e

    def fetchone(self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> sqlite3.Row | None:
        """Execute and fetch one row."""
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> list[sqlite3.Row]:
        """Execute and fetch all rows."""
        return self.execute(sql, params).fetchall()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.conn.rollback()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Context manager for a database transaction."""
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise

    def __enter__(self) -> "DatabaseConnection":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
