import contextlib
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any, Optional

import aiosqlite

from pagespec.exceptions import ExecutionError

__all__ = ("AiosqliteCursor", "AiosqliteExecutor")


class AiosqliteCursor:
    """Async context manager for AIOSQLite cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self.connection = connection
        self.cursor: Optional[aiosqlite.Cursor] = None

    async def __aenter__(self) -> aiosqlite.Cursor:
        self.cursor = await self.connection.cursor()
        return self.cursor

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                await self.cursor.close()


class AiosqliteExecutor:
    """Async counterpart of :class:`~pagespec.adapters.sqlite.SqliteExecutor`."""

    __slots__ = ("connection",)

    dialect = "sqlite"

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self.connection = connection

    @asynccontextmanager
    async def handle_database_exceptions(self) -> AsyncGenerator[None, None]:
        try:
            yield
        except aiosqlite.Error as e:
            msg = f"AIOSQLite database error: {e}"
            raise ExecutionError(msg) from e

    async def fetch_rows(self, sql: str, parameters: Sequence[Any]) -> list[dict[str, Any]]:
        async with self.handle_database_exceptions(), AiosqliteCursor(self.connection) as cursor:
            await cursor.execute(sql, tuple(parameters))
            columns = [column[0] for column in cursor.description or ()]
            return [dict(zip(columns, row)) for row in await cursor.fetchall()]

    async def fetch_count(self, sql: str, parameters: Sequence[Any]) -> int:
        async with self.handle_database_exceptions(), AiosqliteCursor(self.connection) as cursor:
            await cursor.execute(sql, tuple(parameters))
            row = await cursor.fetchone()
            return int(row[0]) if row else 0
