"""Run a pagination request against an executor."""

from collections.abc import Sequence
from typing import Any, Callable, Optional

from pagespec.config import PaginationConfig, get_default_config
from pagespec.core.metadata import PaginatorResponse, calculate_page
from pagespec.core.params import PaginationDescriptor
from pagespec.core.statement import build_statement
from pagespec.protocols import AsyncQueryExecutor, SyncQueryExecutor
from pagespec.utils.logging import get_logger, pagination_fields

__all__ = ("apaginate", "paginate")

logger = get_logger("driver")


def _resolve_config(executor: Any, config: Optional[PaginationConfig]) -> PaginationConfig:
    config = config or get_default_config()
    if config.dialect is None and getattr(executor, "dialect", None) is not None:
        return config.replace(dialect=executor.dialect)
    return config


def paginate(
    executor: SyncQueryExecutor,
    base_query: str,
    descriptor: PaginationDescriptor,
    *,
    parameters: Sequence[Any] = (),
    key: Optional[Callable[[Any], Any]] = None,
    config: Optional[PaginationConfig] = None,
) -> PaginatorResponse[Any]:
    """Fetch one page of ``base_query``.

    The data statement and, while counting is enabled, the count statement are
    run as two separate queries. The executor's dialect is used unless
    ``config`` names one.

    Args:
        executor: Runs the statements.
        base_query: SELECT to paginate, optionally with positional ``?`` placeholders.
        descriptor: The pagination request.
        parameters: Bind values of the base query's placeholders.
        key: Extracts the sort value from a row when minting cursors.
        config: Emission settings.

    Returns:
        The page and its metadata.
    """
    statement = build_statement(
        base_query, descriptor, parameters=parameters, config=_resolve_config(executor, config)
    )
    rows = executor.fetch_rows(statement.sql, statement.parameters)
    total = None
    if statement.count_sql is not None:
        total = executor.fetch_count(statement.count_sql, statement.count_parameters)
    logger.debug(
        "Fetched %d row(s) for page %d",
        len(rows),
        descriptor.page,
        extra=pagination_fields(descriptor, shape=statement.shape.value, rows=len(rows), total=total),
    )
    return calculate_page(rows, descriptor, total, key=key)


async def apaginate(
    executor: AsyncQueryExecutor,
    base_query: str,
    descriptor: PaginationDescriptor,
    *,
    parameters: Sequence[Any] = (),
    key: Optional[Callable[[Any], Any]] = None,
    config: Optional[PaginationConfig] = None,
) -> PaginatorResponse[Any]:
    """Async variant of :func:`paginate`."""
    statement = build_statement(
        base_query, descriptor, parameters=parameters, config=_resolve_config(executor, config)
    )
    rows = await executor.fetch_rows(statement.sql, statement.parameters)
    total = None
    if statement.count_sql is not None:
        total = await executor.fetch_count(statement.count_sql, statement.count_parameters)
    logger.debug(
        "Fetched %d row(s) for page %d",
        len(rows),
        descriptor.page,
        extra=pagination_fields(descriptor, shape=statement.shape.value, rows=len(rows), total=total),
    )
    return calculate_page(rows, descriptor, total, key=key)
