"""SQLite connection context management"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from sqlitelib.connection import SQLiteConnector


class SQLiteContext:
    """Manages SQLite connection and cursor lifecycle with lazy initialization"""

    def __init__(
        self,
        filename: Optional[str] = None,
        profile: Optional[str] = None,
        connection: Optional[Any] = None,
        cursor: Optional[Any] = None,
        **overrides: Any,
    ):
        """Initialize with a filename, a profile, or an existing connection"""
        if filename is None and profile is None and connection is None:
            raise ValueError(
                "SQLiteContext requires 'filename', 'profile' or 'connection'"
            )
        if connection is not None and (filename is not None or profile is not None):
            raise ValueError(
                "SQLiteContext: provide either 'connection' or 'filename'/'profile', not both"
            )
        
        self._filename = filename
        self._profile = profile
        self._connection = connection
        self._cursor = cursor
        self._overrides = overrides
        self._connector: Optional["SQLiteConnector"] = None
        self._owns_connector = False

    @property
    def connection(self) -> Any:
        """Get SQLite connection, opening it if needed"""
        if self._connection is None:
            from sqlitelib.connection import SQLiteConnector

            self._connector = SQLiteConnector(
                filename=self._filename, profile=self._profile, **self._overrides
            )
            conn, cur = self._connector.connect()
            self._connection = conn
            self._cursor = cur
            self._owns_connector = True

        return self._connection

    @property
    def cursor(self) -> Any:
        """Get SQLite cursor, creating if needed"""
        if self._cursor is None:
            self._cursor = self.connection.cursor()

        return self._cursor

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def close(self) -> None:
        """Close connection if owned by this context"""
        if self._owns_connector and self._connector is not None:
            self._connector.close()
            self._connector = None
            self._connection = None
            self._cursor = None

    def __enter__(self) -> "SQLiteContext":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit"""
        self.close()

    @property
    def sqlite_version(self) -> str:
        """Version of the SQLite library the connection runs on"""
        row = self.connection.execute("SELECT sqlite_version() AS version").fetchone()
        return str(_first_value(row))

    @property
    def in_transaction(self) -> bool:
        """True while a transaction or savepoint is open"""
        return bool(self.connection.in_transaction)

    @property
    def total_changes(self) -> int:
        """Rows modified since the connection was opened"""
        return int(self.connection.total_changes)

    def __repr__(self) -> str:
        """String representation"""
        if self._connection is not None:
            return "SQLiteContext(connection=<active>)"
        elif self._profile is not None:
            return f"SQLiteContext(profile='{self._profile}')"
        else:
            return f"SQLiteContext(filename='{self._filename}')"


def _first_value(row: Any) -> Any:
    """First column of a row returned as a dict or a tuple"""
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()), None)
    return row[0]
