"""A unified, simplified interface for SQLite query results"""
from typing import Any, Generator, Optional
from dataclasses import dataclass
import pandas as pd


@dataclass
class QueryResult:
    """A unified, simplified interface for SQLite query results"""
    _cursor: Any
    _sql: Optional[str] = None
    
    @property
    def rowcount(self) -> int:
        """The number of rows modified, -1 for statements that modify none"""
        return self._cursor.rowcount if self._cursor.rowcount is not None else -1
    
    @property
    def lastrowid(self) -> Optional[int]:
        """The rowid of the last row inserted through this cursor"""
        return self._cursor.lastrowid
    
    @property
    def sql(self) -> Optional[str]:
        """The SQL statement that was executed"""
        return self._sql
    
    @property
    def description(self) -> Optional[tuple]:
        """A description of the result columns"""
        return self._cursor.description
    
    @property
    def columns(self) -> list[str]:
        """Result column names, empty for statements returning no rows"""
        if not self._cursor.description:
            return []
        return [desc[0] for desc in self._cursor.description]
    
    def fetch_one(self) -> Optional[Any]:
        """Fetch the next row of a query result set"""
        return self._cursor.fetchone()

    def fetch_all(self) -> list[Any]:
        """Fetch all remaining rows of a query result set"""
        result = self._cursor.fetchall()
        return result if result else []

    def fetch_batches(
        self, batch_size: int = 10_000, lowercase_columns: bool = False
    ) -> Generator[pd.DataFrame, None, None]:
        """Fetch results in batches of DataFrames with optional column casing"""
        columns = self.columns
        while True:
            rows = self._cursor.fetchmany(batch_size)
            if not rows:
                break
            yield self._frame(rows, columns, lowercase_columns)

    def to_df(self, lowercase_columns: bool = False) -> pd.DataFrame:
        """Fetch all results as a single DataFrame with optional column casing"""
        columns = self.columns
        if not columns:
            return pd.DataFrame()
        return self._frame(self.fetch_all(), columns, lowercase_columns)

    @staticmethod
    def _frame(rows: list[Any], columns: list[str], lowercase_columns: bool) -> pd.DataFrame:
        # Rows may be dicts (sqlitelib connections) or plain tuples
        if rows and isinstance(rows[0], dict):
            rows = [[row.get(column) for column in columns] for row in rows]
        df = pd.DataFrame(rows, columns=columns)
        if lowercase_columns:
            df.columns = df.columns.str.lower()
        return df
    
    def __repr__(self) -> str:
        """String representation"""
        return (
            f"QueryResult(sql={self.sql!r}, "
            f"rowcount={self.rowcount})"
        )
