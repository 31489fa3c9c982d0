"""SQLite connection management with profile support."""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Literal, Optional, Tuple

from sqlitelib.config import DatabaseProfile, resolve_profile
from sqlitelib.utils.identifiers import is_valid_identifier

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    """Row factory returning each row as a column name to value dict"""
    return {description[0]: value for description, value in zip(cursor.description, row)}


def _pragma_value(value: Any) -> str:
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if isinstance(value, (int, float)):
        return str(value)
    if is_valid_identifier(str(value)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


class SQLiteConnector:
    """
    SQLite connection manager with TOML profile support and context manager protocol.
    
    Settings come from a named profile in databases.toml, from keyword
    arguments, or both (keywords override the profile). Connections are
    opened in autocommit mode so that transactions are controlled
    explicitly with savepoints, and rows are returned as dicts.
    
    Example:
        >>> with SQLiteConnector(profile="app") as (conn, cur):
        ...     cur.execute("SELECT sqlite_version()")
        ...     print(cur.fetchone())
        
        >>> # No profile needed for a plain file
        >>> with SQLiteConnector("data.db", timeout=1.0) as (conn, cur):
        ...     cur.execute("SELECT COUNT(*) AS n FROM users")
    """
    
    def __init__(self, filename: Optional[str] = None, profile: Optional[str] = None, **kwargs: Any) -> None:
        if filename is not None:
            kwargs["filename"] = filename
        self._cfg: DatabaseProfile = resolve_profile(profile, **kwargs)
        self._profile = profile
        
        # Connection and cursor initialized lazily
        self._connection: Optional[sqlite3.Connection] = None
        self._cursor: Optional[sqlite3.Cursor] = None

    @property
    def settings(self) -> DatabaseProfile:
        """The validated connection settings"""
        return self._cfg

    def _target(self) -> Tuple[str, bool]:
        """Database argument and uri flag for sqlite3.connect"""
        cfg = self._cfg
        if cfg.uri or cfg.filename == MEMORY:
            return cfg.filename, cfg.uri
        
        path = str(Path(cfg.filename).expanduser())
        if cfg.readonly:
            return f"file:{path}?mode=ro", True
        return path, False

    def connect(self) -> Tuple[sqlite3.Connection, sqlite3.Cursor]:
        """
        Open the database if not already open.
        
        Returns:
            Tuple of (connection, cursor) objects
        """
        if self._connection is None:
            database, uri = self._target()
            self._connection = sqlite3.connect(
                database,
                timeout=self._cfg.timeout,
                detect_types=self._cfg.detect_types,
                isolation_level=None,
                cached_statements=self._cfg.cached_statements,
                uri=uri,
            )
            self._connection.row_factory = dict_factory
            for name, value in self._cfg.pragmas.items():
                self._connection.execute(f"PRAGMA {name} = {_pragma_value(value)}")
            self._cursor = self._connection.cursor()
            logger.debug("Opened SQLite database %s", database)
        
        assert self._connection is not None
        assert self._cursor is not None
        return self._connection, self._cursor

    def close(self) -> None:
        """Close the cursor and connection, releasing resources."""
        if self._cursor:
            self._cursor.close()
            self._cursor = None
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.debug("Closed SQLite database %s", self._cfg.filename)

    def __enter__(self) -> Tuple[sqlite3.Connection, sqlite3.Cursor]:
        """Context manager entry: open the database."""
        return self.connect()

    def __exit__(
        self, 
        exc_type: Any, 
        exc_val: Any, 
        exc_tb: Any
    ) -> Literal[False]:
        """
        Context manager exit: close connection.
        
        Always returns False to propagate any exceptions.
        """
        self.close()
        return False
    
    def __repr__(self) -> str:
        status = "connected" if self._connection else "not connected"
        if self._profile:
            return f"SQLiteConnector(profile='{self._profile}', {status})"
        return f"SQLiteConnector(filename='{self._cfg.filename}', {status})"
