"""Cached statements bound to a connection"""

import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence


@dataclass(frozen=True)
class RunResult:
    """Outcome of a statement that modifies the database"""
    changes: int
    last_insert_rowid: Optional[int]


def _first_column(row: Any) -> Any:
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()), None)
    return row[0]


class Statement:
    """SQL text bound to a connection, executed with positional parameters

    In pluck mode get/all/iterate return only the first column of each row.
    Execution errors are passed to on_error before propagating.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        sql: str,
        on_error: Optional[Callable[[sqlite3.Error], None]] = None,
    ):
        self.connection = connection
        self.sql = sql
        self._on_error = on_error
        self._pluck = False

    def pluck(self, toggle: bool = True) -> "Statement":
        """Switch pluck mode on or off"""
        self._pluck = toggle
        return self

    def _execute(self, params: Sequence[Any]) -> sqlite3.Cursor:
        try:
            return self.connection.execute(self.sql, list(params))
        except sqlite3.Error as err:
            if self._on_error is not None:
                self._on_error(err)
            raise

    def _shape(self, row: Any) -> Any:
        return _first_column(row) if self._pluck else row

    def run(self, params: Sequence[Any] = ()) -> RunResult:
        cursor = self._execute(params)
        return RunResult(changes=cursor.rowcount, last_insert_rowid=cursor.lastrowid)

    def get(self, params: Sequence[Any] = ()) -> Any:
        """First row, or None when there are no rows"""
        row = self._execute(params).fetchone()
        return None if row is None else self._shape(row)

    def all(self, params: Sequence[Any] = ()) -> list[Any]:
        return [self._shape(row) for row in self._execute(params).fetchall()]

    def iterate(self, params: Sequence[Any] = ()) -> Iterator[Any]:
        """Execute now and yield rows one at a time"""
        cursor = self._execute(params)
        return self._rows(cursor, self._pluck)

    @staticmethod
    def _rows(cursor: sqlite3.Cursor, pluck: bool) -> Iterator[Any]:
        try:
            for row in cursor:
                yield _first_column(row) if pluck else row
        finally:
            cursor.close()

    def __repr__(self) -> str:
        return f"Statement({self.sql!r})"


class StatementCache:
    """Statements keyed by SQL text, with the most recent one checked first"""

    def __init__(self, factory: Callable[[str], Statement]):
        self._factory = factory
        self._statements: dict[str, Statement] = {}
        self._last: Optional[Statement] = None

    def get(self, sql: str) -> Statement:
        # Tight loops usually repeat the same statement
        if self._last is not None and self._last.sql == sql:
            return self._last

        stmt = self._statements.get(sql)
        if stmt is None:
            stmt = self._factory(sql)
            self._statements[sql] = stmt

        self._last = stmt
        return stmt

    def clear(self) -> None:
        self._statements.clear()
        self._last = None

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, sql: object) -> bool:
        return sql in self._statements
