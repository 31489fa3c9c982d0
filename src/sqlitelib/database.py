"""Database wrapper with cached statements, savepoint transactions and helpers"""

import functools
import inspect
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Mapping, Optional, Sequence, TypeVar, Union

import pandas as pd

from sqlitelib.connection import MEMORY
from sqlitelib.context import SQLiteContext
from sqlitelib.primitives import Executor, RunResult, Statement, StatementCache, statement_parts
from sqlitelib.sql import SQL, IndexDefinition, TableDefinition

logger = logging.getLogger(__name__)

T = TypeVar("T")

SAVEPOINT = "sqlitelib_tx"
META_TABLE = "sqlitelib_meta"
MIGRATION_KEY = "migration_step"

SQLInput = Union[str, SQL]


def _is_missing_table(err: sqlite3.Error, table: Optional[str] = None) -> bool:
    message = str(err)
    if table is None:
        return "no such table" in message
    return f"no such table: {table}" in message


class Database:
    """A SQLite database with a fluent SQL builder at hand

    Every execution method accepts either an SQL builder or SQL text
    followed by positional parameters. Statements are cached by text,
    rows come back as dicts and transactions nest using savepoints.

    Example:
        >>> db = Database("app.db")
        >>> db.create_table({
        ...     "tableName": "users",
        ...     "columns": [{"id": "INTEGER PRIMARY KEY"}, {"name": "TEXT"}, {"age": "INTEGER"}],
        ...     "indices": [{"columns": ["name"]}],
        ... })
        >>> db.insert("users", {"name": "John", "age": 30}).last_insert_rowid
        1
        >>> db.find_many("users", {"age": {"$gte": 18}})
        [{'id': 1, 'name': 'John', 'age': 30}]
        >>> db.get("SELECT * FROM users WHERE id = ?", 1)
        {'id': 1, 'name': 'John', 'age': 30}
    """

    def __init__(
        self,
        filename: Optional[str] = None,
        profile: Optional[str] = None,
        context: Optional[SQLiteContext] = None,
        **overrides: Any,
    ):
        """Open a database by filename, by profile, or through an existing context

        With neither a filename nor a profile, an in-memory database is used.
        """
        if context is not None:
            if filename is not None or profile is not None:
                raise ValueError("Provide either 'context' or 'filename'/'profile', not both")
            self._context = context
            self._owns_context = False
        else:
            if filename is None and profile is None:
                filename = MEMORY
            self._context = SQLiteContext(filename=filename, profile=profile, **overrides)
            self._owns_context = True

        # Error hook, receives the message of failed statements and transactions
        self.error: Optional[Callable[[str], Any]] = logger.error

        self._statements = StatementCache(self._make_statement)
        self._fndata: list[Any] = []
        self._in_transaction = False

    @property
    def context(self) -> SQLiteContext:
        """Access the underlying SQLiteContext"""
        return self._context

    @property
    def connection(self) -> sqlite3.Connection:
        return self._context.connection

    @property
    def in_transaction(self) -> bool:
        """True inside transaction(), transaction_sync() and friends"""
        return self._in_transaction

    # Statements

    def _make_statement(self, sql: str) -> Statement:
        return Statement(self.connection, sql, on_error=self._report_statement_error)

    def _report_statement_error(self, err: sqlite3.Error) -> None:
        # Probing for the metadata table is expected to fail on new databases
        if self.error and not _is_missing_table(err, META_TABLE):
            self.error(str(err))

    def prepare_cached(self, sql: SQLInput) -> Statement:
        """Get the cached statement for sql, creating it on first use

        Raises:
            ValueError: If sql is a builder that already carries parameter values
        """
        if isinstance(sql, SQL):
            if any(param is not None for param in sql.params):
                raise ValueError("Attempt to prepare SQL with parameter assigned")
            sql = sql.text
        return self._statements.get(sql)

    def _prep(self, sql: SQLInput, params: tuple[Any, ...]) -> tuple[Statement, list[Any]]:
        text, bindings = statement_parts(sql, params)
        self._fndata = list(sql.fndata_values) if isinstance(sql, SQL) else []
        return self._statements.get(text), bindings

    def run(self, sql: SQLInput, *params: Any) -> RunResult:
        """Execute a statement that modifies the database

        Example:
            >>> db.run("INSERT INTO users (name, age) VALUES (?, ?)", "John", 30).changes
            1
            >>> db.run(SQL.update("users").set({"age": 31}).where({"name": "John"}))
            RunResult(changes=1, last_insert_rowid=1)
        """
        stmt, bindings = self._prep(sql, params)
        return stmt.run(bindings)

    def get(self, sql: SQLInput, *params: Any) -> Optional[dict[str, Any]]:
        """Execute a query and return the first row, or None"""
        stmt, bindings = self._prep(sql, params)
        return stmt.pluck(False).get(bindings)

    def pluck(self, sql: SQLInput, *params: Any) -> Any:
        """Execute a query and return the first column of the first row"""
        stmt, bindings = self._prep(sql, params)
        return stmt.pluck(True).get(bindings)

    def all(self, sql: SQLInput, *params: Any) -> list[dict[str, Any]]:
        """Execute a query and return every row"""
        stmt, bindings = self._prep(sql, params)
        return stmt.pluck(False).all(bindings)

    def pluck_all(self, sql: SQLInput, *params: Any) -> list[Any]:
        """Execute a query and return the first column of every row"""
        stmt, bindings = self._prep(sql, params)
        return stmt.pluck(True).all(bindings)

    def iterate(self, sql: SQLInput, *params: Any) -> Iterator[dict[str, Any]]:
        """Execute a query and yield rows one at a time"""
        stmt, bindings = self._prep(sql, params)
        return self._rows_with_fndata(stmt.pluck(False).iterate(bindings), self._fndata)

    def _rows_with_fndata(self, rows: Iterator[dict[str, Any]], fndata: list[Any]) -> Iterator[dict[str, Any]]:
        # Statements run between rows replace _fndata; restore it before each step
        try:
            while True:
                self._fndata = fndata
                try:
                    row = next(rows)
                except StopIteration:
                    return
                yield row
        finally:
            rows.close()

    def each(self, sql: SQLInput, *args: Any) -> None:
        """Execute a query and call the last argument with each row

        Example:
            >>> db.each("SELECT * FROM users WHERE age > ?", 18, lambda row: print(row["name"]))
        """
        if not args or not callable(args[-1]):
            raise ValueError("each() requires a callback as its last argument")
        *params, callback = args
        for row in self.iterate(sql, *params):
            callback(row)

    def query(self, sql: SQLInput, *params: Any, lowercase_columns: bool = False) -> pd.DataFrame:
        """Execute a query and return the results as a DataFrame"""
        self._fndata = list(sql.fndata_values) if isinstance(sql, SQL) else []
        return Executor(self._context).run(sql, *params).to_df(lowercase_columns=lowercase_columns)

    def execute_script(self, script: str) -> None:
        """Run a block of semicolon-separated statements without parameters"""
        Executor(self._context).run_block(script)

    # Custom functions

    def create_function(
        self,
        name: str,
        fn: Callable[..., Any],
        narg: int = -1,
        deterministic: bool = False,
    ) -> None:
        """Register a scalar SQL function

        Functions receiving values passed with SQL.fndata() get an index
        and look the value up with fndata().

        Example:
            >>> db.create_function("matches", lambda value, idx: db.fndata(idx)(value), 2)
            >>> db.all(SQL.select().from_("users").where("matches(name, ?)").fndata(str.istitle))
        """
        self.connection.create_function(name, narg, fn, deterministic=deterministic)

    def fndata(self, index: int) -> Any:
        """Function data attached to the statement currently executing"""
        return self._fndata[int(index)]

    # Transactions

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Run the enclosed block in a savepoint

        The savepoint is released when the block completes and rolled back
        if it raises; the exception is reported to the error hook and
        propagates. Transactions nest.

        Example:
            >>> with db.transaction():
            ...     db.insert("users", {"name": "John"})
            ...     db.run("UPDATE accounts SET balance = balance - 100 WHERE user_id = ?", 1)
        """
        was_in_transaction = self._in_transaction
        self._in_transaction = True
        self.run(f"SAVEPOINT {SAVEPOINT}")
        try:
            yield self
        except BaseException as err:
            self.run(f"ROLLBACK TO SAVEPOINT {SAVEPOINT}")
            self.run(f"RELEASE SAVEPOINT {SAVEPOINT}")
            if self.error and isinstance(err, Exception):
                self.error(str(err))
            raise
        else:
            self.run(f"RELEASE SAVEPOINT {SAVEPOINT}")
        finally:
            self._in_transaction = was_in_transaction

    def transaction_sync(self, callback: Callable[[], T]) -> T:
        """Call callback inside a transaction and return its result

        Raises:
            RuntimeError: If callback returns an awaitable; the transaction is rolled back
        """
        with self.transaction():
            result = callback()
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise RuntimeError(
                    "The callback to transaction_sync returned an awaitable. "
                    "Use transaction_async_unsafe instead"
                )
            return result

    async def transaction_async_unsafe(self, callback: Callable[[], Union[T, Awaitable[T]]]) -> T:
        """Call callback inside a transaction, awaiting its result if needed

        Unsafe because every statement run on this database while the
        callback is suspended becomes part of the transaction, whichever
        task runs it.
        """
        with self.transaction():
            result = callback()
            if inspect.isawaitable(result):
                result = await result
            return result  # type: ignore[return-value]

    def make_transaction(self, fn: Callable[..., T]) -> Callable[..., T]:
        """Wrap fn so every call runs inside a transaction

        Example:
            >>> @db.make_transaction
            ... def transfer(from_id, to_id, amount):
            ...     db.run("UPDATE accounts SET balance = balance - ? WHERE id = ?", amount, from_id)
            ...     db.run("UPDATE accounts SET balance = balance + ? WHERE id = ?", amount, to_id)
            >>> transfer(1, 2, 100)
        """
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return self.transaction_sync(lambda: fn(*args, **kwargs))
        return wrapper

    def rollback(self) -> None:
        """Undo everything done so far in the current transaction

        The transaction stays open and can carry on.

        Raises:
            RuntimeError: Outside a transaction
        """
        if not self._in_transaction:
            raise RuntimeError("Not currently in a transaction, can't rollback")
        self.run(f"ROLLBACK TO SAVEPOINT {SAVEPOINT}")

    # CRUD

    def insert(self, table: str, values: Mapping[str, Any]) -> RunResult:
        return self.run(SQL.insert(table).values(values))

    def insert_or_replace(self, table: str, values: Mapping[str, Any]) -> RunResult:
        return self.run(SQL.insert_or_replace(table).values(values))

    def insert_or_ignore(self, table: str, values: Mapping[str, Any]) -> RunResult:
        return self.run(SQL.insert_or_ignore(table).values(values))

    def update(self, table: str, values: Mapping[str, Any], condition: Any = None) -> RunResult:
        """Update rows matching condition, every row when condition is None"""
        return self.run(SQL.update(table).set(values).where(condition))

    def delete(self, table: str, condition: Any = None) -> RunResult:
        """Delete rows matching condition, every row when condition is None"""
        return self.run(SQL.delete(table).where(condition))

    def find_one(self, table: str, condition: Any = None) -> Optional[dict[str, Any]]:
        return self.get(SQL.select().from_(table).where(condition))

    def find_many(self, table: str, condition: Any = None) -> list[dict[str, Any]]:
        return self.all(SQL.select().from_(table).where(condition))

    # Schema

    def create_table(self, definition: Union[TableDefinition, Mapping[str, Any]]) -> None:
        """Create a table and its indices in one transaction

        Indices without a table name get the new table's name.
        """
        if not isinstance(definition, TableDefinition):
            definition = TableDefinition.from_dict(definition)

        with self.transaction():
            self.run(SQL.create_table(definition))
            for index in definition.index_definitions():
                self.run(SQL.create_index(index))

    def create_index(self, definition: Union[IndexDefinition, Mapping[str, Any]]) -> RunResult:
        return self.run(SQL.create_index(definition))

    def drop_table(self, name: str) -> RunResult:
        return self.run(SQL.drop_table(name))

    # Metadata

    def _create_meta_table(self) -> None:
        self.run(SQL.create_table({
            "tableName": META_TABLE,
            "columns": [
                {"key": "TEXT NOT NULL"},
                {"value": "BLOB"},
            ],
        }))
        self.run(SQL.create_index({
            "tableName": META_TABLE,
            "unique": True,
            "columns": [{"key": "ASC"}],
        }))

    def get_meta_value(self, key: str, default: Any = None) -> Any:
        """Read a value from the metadata table, default when it is missing"""
        try:
            row = self.get(SQL.select("value").from_(META_TABLE).where({"key": key}))
        except sqlite3.OperationalError as err:
            if not _is_missing_table(err):
                raise
            return default

        if row is None:
            return default
        return row["value"]

    def set_meta_value(self, key: str, value: Any) -> None:
        """Store a value in the metadata table, creating the table on first use"""
        if isinstance(value, bool):
            value = int(value)

        def save() -> None:
            self.run(SQL.insert_or_replace(META_TABLE).values({"key": key, "value": value}))

        with self.transaction():
            try:
                save()
            except sqlite3.OperationalError as err:
                if not _is_missing_table(err):
                    raise
                self._create_meta_table()
                save()

    def get_meta_values(self) -> dict[str, Any]:
        """All metadata entries as a dict"""
        try:
            rows = self.all(SQL.select().from_(META_TABLE))
        except sqlite3.OperationalError as err:
            if not _is_missing_table(err):
                raise
            return {}
        return {row["key"]: row["value"] for row in rows}

    def set_meta_values(self, values: Mapping[str, Any]) -> None:
        with self.transaction():
            for key, value in values.items():
                self.set_meta_value(key, value)

    def migrate(self, steps: Sequence[Callable[[], Any]]) -> int:
        """Run the migration steps not yet applied to this database

        The number of applied steps is kept in the metadata table, so each
        step runs once. All pending steps run in a single transaction.

        Returns:
            The number of steps that ran
        """
        with self.transaction():
            current_step = int(self.get_meta_value(MIGRATION_KEY, 0))
            if current_step >= len(steps):
                return 0

            for index in range(current_step, len(steps)):
                logger.info("Running migration step %d of %d", index + 1, len(steps))
                steps[index]()

            self.set_meta_value(MIGRATION_KEY, len(steps))
            return len(steps) - current_step

    # Lifecycle

    def close(self) -> None:
        """Close the database if this object opened it"""
        self._statements.clear()
        if self._owns_context:
            self._context.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database({self._context!r})"
