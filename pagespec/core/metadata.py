"""Page metadata from fetched rows.

Rows are expected to come from a data statement limited to ``per_page + 1``:
the extra row, when present, proves another page exists and is never returned.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional

from typing_extensions import TypeVar

from pagespec.core.cursor import encode_cursor
from pagespec.core.params import CursorSpec, PaginationDescriptor
from pagespec.core.values import CursorDirection
from pagespec.exceptions import ImproperConfigurationError
from pagespec.utils.logging import get_logger

__all__ = ("PaginatorResponse", "PaginatorResponseMeta", "calculate_page", "sort_value", "total_pages_for")

T = TypeVar("T")

logger = get_logger("core.metadata")


@dataclass(frozen=True)
class PaginatorResponseMeta:
    """Page metadata. ``total``/``total_pages`` are ``None`` when counting is disabled."""

    page: int
    per_page: int
    has_next: bool
    has_prev: bool
    total: Optional[int] = None
    total_pages: Optional[int] = None
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None


@dataclass
class PaginatorResponse(Generic[T]):
    """One page of rows with its metadata."""

    meta: PaginatorResponseMeta
    data: list[T] = field(default_factory=list)


def total_pages_for(total: int, per_page: int) -> int:
    """Return ``ceil(total / per_page)``; zero rows make zero pages.

    Raises:
        ImproperConfigurationError: If ``total`` is negative or ``per_page`` is below 1.
    """
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        msg = f"Total count must be a non-negative integer, got {total!r}"
        raise ImproperConfigurationError(msg)
    if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
        msg = f"per_page must be a positive integer, got {per_page!r}"
        raise ImproperConfigurationError(msg)
    return -(-total // per_page)


def sort_value(row: Any, field_name: str) -> Any:
    """Look up ``field_name`` on a row: mapping key first, then attribute.

    For a qualified name such as ``users.id`` the full name is tried before
    the bare column name, since drivers usually return the latter.
    """
    column = field_name.rsplit(".", 1)[-1]
    if isinstance(row, Mapping):
        if field_name in row:
            return row[field_name]
        return row.get(column)
    return getattr(row, column, None)


def _mint(
    row: Any, descriptor: PaginationDescriptor, direction: CursorDirection, key: Optional[Callable[[Any], Any]]
) -> Optional[str]:
    sort_by = descriptor.sort_by
    if sort_by is None:
        return None
    value = key(row) if key is not None else sort_value(row, sort_by)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        logger.debug("No %s cursor: sort field %r holds a %s value", direction.value, sort_by, type(value).__name__)
        return None
    return encode_cursor(CursorSpec(sort_by, value, direction))


def calculate_page(
    rows: Iterable[T],
    descriptor: PaginationDescriptor,
    total: Optional[int] = None,
    *,
    key: Optional[Callable[[T], Any]] = None,
) -> PaginatorResponse[T]:
    """Trim fetched rows to one page and derive its metadata.

    An empty ``before`` page means no rows precede the cursor boundary, so the
    rows from the boundary on form the first page. Such a response reports
    ``has_next`` without a ``next_cursor``, since an ``after`` cursor cannot
    include the boundary row. Clients continue from the cursor-free first page.

    Args:
        rows: Rows in fetch order, fetched with ``descriptor.fetch_limit``. For a
            ``before`` cursor this is the reverse of the nominal sort order.
        descriptor: The request the rows were fetched for.
        total: Result of the count statement; required while counting is enabled
            and ignored otherwise.
        key: Extracts the sort value from a row, see :func:`sort_value` for the default.

    Raises:
        ImproperConfigurationError: If counting is enabled and ``total`` is missing or negative.

    Returns:
        The trimmed rows, in nominal sort order, with their metadata.
    """
    per_page = descriptor.per_page
    fetched = list(rows)
    extra = len(fetched) > per_page
    data = fetched[:per_page]

    total_pages: Optional[int] = None
    if descriptor.total_count_enabled:
        if total is None:
            msg = "Total count is enabled but no total was supplied; run the count statement or disable total counting"
            raise ImproperConfigurationError(msg)
        total_pages = total_pages_for(total, per_page)
    else:
        total = None

    cursor = descriptor.cursor
    if cursor is None:
        has_next = extra or (len(data) == per_page and total is not None and descriptor.page * per_page < total)
        has_prev = descriptor.page > 1
    elif cursor.direction is CursorDirection.AFTER:
        has_next = extra
        has_prev = True
    else:
        # reverse probe: the extra row lies before this page
        data.reverse()
        has_next = True
        has_prev = extra

    next_cursor = _mint(data[-1], descriptor, CursorDirection.AFTER, key) if has_next and data else None
    prev_cursor = (
        _mint(data[0], descriptor, CursorDirection.BEFORE, key) if has_prev and cursor is not None and data else None
    )

    meta = PaginatorResponseMeta(
        page=descriptor.page,
        per_page=per_page,
        has_next=has_next,
        has_prev=has_prev,
        total=total,
        total_pages=total_pages,
        next_cursor=next_cursor,
        prev_cursor=prev_cursor,
    )
    logger.debug(
        "Calculated page %d: %d of %d fetched rows kept, has_next=%s has_prev=%s",
        descriptor.page,
        len(data),
        len(fetched),
        has_next,
        has_prev,
    )
    return PaginatorResponse(meta=meta, data=data)
