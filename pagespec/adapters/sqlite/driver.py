import contextlib
import sqlite3
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import Any, Optional

from pagespec.exceptions import ExecutionError

__all__ = ("SqliteCursor", "SqliteExecutor")


class SqliteCursor:
    """Context manager for SQLite cursor management."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> sqlite3.Cursor:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class SqliteExecutor:
    """Reference executor over a :mod:`sqlite3` connection.

    Rows are returned as dicts keyed by column name. ``ILIKE`` predicates are
    rendered for SQLite by sqlglot as ``LOWER(...) LIKE LOWER(...)``.
    """

    __slots__ = ("connection",)

    dialect = "sqlite"

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    @contextmanager
    def handle_database_exceptions(self) -> Generator[None, None, None]:
        try:
            yield
        except sqlite3.Error as e:
            msg = f"SQLite database error: {e}"
            raise ExecutionError(msg) from e

    def fetch_rows(self, sql: str, parameters: Sequence[Any]) -> list[dict[str, Any]]:
        with self.handle_database_exceptions(), SqliteCursor(self.connection) as cursor:
            cursor.execute(sql, tuple(parameters))
            columns = [column[0] for column in cursor.description or ()]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def fetch_count(self, sql: str, parameters: Sequence[Any]) -> int:
        with self.handle_database_exceptions(), SqliteCursor(self.connection) as cursor:
            cursor.execute(sql, tuple(parameters))
            row = cursor.fetchone()
            return int(row[0]) if row else 0
