"""Runtime-checkable protocols for the execution collaborator.

:func:`pagespec.driver.paginate` accepts anything that implements
:class:`SyncQueryExecutor`, :func:`pagespec.driver.apaginate` anything that
implements :class:`AsyncQueryExecutor`. Both run the data and count statements
as separate queries.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = ("AsyncQueryExecutor", "SyncQueryExecutor")


@runtime_checkable
class SyncQueryExecutor(Protocol):
    """Protocol for blocking executors."""

    dialect: "Optional[DialectType]"

    def fetch_rows(self, sql: str, parameters: Sequence[Any]) -> list[Any]:
        """Run a data statement and return its rows in order."""
        ...

    def fetch_count(self, sql: str, parameters: Sequence[Any]) -> int:
        """Run a count statement and return the single count it selects."""
        ...


@runtime_checkable
class AsyncQueryExecutor(Protocol):
    """Protocol for awaitable executors."""

    dialect: "Optional[DialectType]"

    async def fetch_rows(self, sql: str, parameters: Sequence[Any]) -> list[Any]:
        """Run a data statement and return its rows in order."""
        ...

    async def fetch_count(self, sql: str, parameters: Sequence[Any]) -> int:
        """Run a count statement and return the single count it selects."""
        ...
