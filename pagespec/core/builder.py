"""Fluent builder for :class:`~pagespec.core.params.PaginationDescriptor`.

The builder only stages what it is told. Nothing is validated until
:meth:`PaginatorBuilder.build`, so a half-configured builder is never mistaken
for a valid request.
"""

from collections.abc import Iterable
from typing import Any, Optional, Union

from pagespec.config import DEFAULT_PAGE, DEFAULT_PER_PAGE
from pagespec.core.cursor import decode_cursor
from pagespec.core.params import (
    CursorSpec,
    FilterCondition,
    PaginationDescriptor,
    SearchSpec,
    is_valid_field_name,
    validate_page,
    validate_per_page,
)
from pagespec.core.values import CursorDirection, CursorValue, FilterOperator, SortDirection
from pagespec.exceptions import InvalidCursorError, InvalidFilterOperatorError, InvalidSortFieldError
from pagespec.utils.logging import get_logger

__all__ = ("PaginatorBuilder",)

logger = get_logger("core.builder")


def _coerce_operator(field: str, operator: Union[FilterOperator, str]) -> FilterOperator:
    if isinstance(operator, FilterOperator):
        return operator
    try:
        return FilterOperator(str(operator).lower())
    except ValueError:
        msg = f"Unknown filter operator {operator!r} for field {field!r}"
        raise InvalidFilterOperatorError(msg, operator) from None


def _coerce_sort_direction(direction: Union[SortDirection, str]) -> SortDirection:
    if isinstance(direction, SortDirection):
        return direction
    try:
        return SortDirection(str(direction).lower())
    except ValueError:
        msg = f"Invalid sort direction {direction!r}: expected 'asc' or 'desc'"
        raise InvalidSortFieldError(msg, direction) from None


def _coerce_cursor_direction(direction: Union[CursorDirection, str]) -> CursorDirection:
    if isinstance(direction, CursorDirection):
        return direction
    try:
        return CursorDirection(str(direction).lower())
    except ValueError:
        msg = f"Invalid cursor direction {direction!r}: expected 'after' or 'before'"
        raise InvalidCursorError(msg, direction) from None


class PaginatorBuilder:
    """Collects pagination inputs and produces one immutable descriptor.

    Example:
        >>> descriptor = (
        ...     PaginatorBuilder()
        ...     .per_page(10)
        ...     .sort_desc("created_at")
        ...     .filter_eq("status", "active")
        ...     .search("john", ["name", "email"])
        ...     .build()
        ... )
    """

    __slots__ = (
        "_allowed_sort_fields",
        "_cursor",
        "_encoded_cursor",
        "_filters",
        "_page",
        "_per_page",
        "_search",
        "_sort_by",
        "_sort_direction",
        "_total_count_enabled",
    )

    def __init__(self) -> None:
        self._page: Any = DEFAULT_PAGE
        self._per_page: Any = DEFAULT_PER_PAGE
        self._sort_by: Optional[str] = None
        self._sort_direction: Union[SortDirection, str] = SortDirection.ASC
        self._filters: list[tuple[str, Union[FilterOperator, str], tuple[Any, ...]]] = []
        self._search: Optional[tuple[str, tuple[str, ...], bool, bool]] = None
        self._cursor: Optional[tuple[str, Any, Union[CursorDirection, str]]] = None
        self._encoded_cursor: Optional[str] = None
        self._allowed_sort_fields: Optional[frozenset[str]] = None
        self._total_count_enabled = True

    # -- paging --
    def page(self, page: int) -> "PaginatorBuilder":
        self._page = page
        return self

    def per_page(self, per_page: int) -> "PaginatorBuilder":
        self._per_page = per_page
        return self

    # -- sorting --
    def sort_by(self, field: str, direction: Union[SortDirection, str] = SortDirection.ASC) -> "PaginatorBuilder":
        self._sort_by = field
        self._sort_direction = direction
        return self

    def sort_asc(self, field: str) -> "PaginatorBuilder":
        return self.sort_by(field, SortDirection.ASC)

    def sort_desc(self, field: str) -> "PaginatorBuilder":
        return self.sort_by(field, SortDirection.DESC)

    def allowed_sort_fields(self, *fields: str) -> "PaginatorBuilder":
        """Restrict ``sort_by`` and cursor fields to a sortable schema."""
        self._allowed_sort_fields = frozenset(fields)
        return self

    # -- filters --
    def filter(self, field: str, operator: Union[FilterOperator, str], *values: Any) -> "PaginatorBuilder":
        """Add a condition; ``values`` must match the operator's arity.

        ``IN``/``NOT_IN`` take a single list, ``BETWEEN`` takes ``min, max`` and
        ``IS_NULL``/``IS_NOT_NULL`` take nothing.
        """
        self._filters.append((field, operator, values))
        return self

    def filter_eq(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.EQ, value)

    def filter_ne(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.NE, value)

    def filter_gt(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.GT, value)

    def filter_lt(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.LT, value)

    def filter_gte(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.GTE, value)

    def filter_lte(self, field: str, value: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.LTE, value)

    def filter_like(self, field: str, pattern: str) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.LIKE, pattern)

    def filter_ilike(self, field: str, pattern: str) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.ILIKE, pattern)

    def filter_contains(self, field: str, value: str) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.CONTAINS, value)

    def filter_in(self, field: str, values: Iterable[Any]) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.IN, list(values))

    def filter_not_in(self, field: str, values: Iterable[Any]) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.NOT_IN, list(values))

    def filter_between(self, field: str, low: Any, high: Any) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.BETWEEN, low, high)

    def filter_is_null(self, field: str) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.IS_NULL)

    def filter_is_not_null(self, field: str) -> "PaginatorBuilder":
        return self.filter(field, FilterOperator.IS_NOT_NULL)

    # -- search --
    def search(
        self, query: str, fields: Iterable[str], *, case_sensitive: bool = False, exact: bool = False
    ) -> "PaginatorBuilder":
        """Search ``query`` across ``fields``; an empty query clears the search."""
        self._search = (query, tuple(fields), case_sensitive, exact) if query else None
        return self

    def search_exact(self, query: str, fields: Iterable[str]) -> "PaginatorBuilder":
        return self.search(query, fields, exact=True)

    def search_case_sensitive(self, query: str, fields: Iterable[str]) -> "PaginatorBuilder":
        return self.search(query, fields, case_sensitive=True)

    # -- cursor --
    def cursor(
        self, field: str, value: CursorValue, direction: Union[CursorDirection, str] = CursorDirection.AFTER
    ) -> "PaginatorBuilder":
        self._cursor = (field, value, direction)
        self._encoded_cursor = None
        return self

    def cursor_after(self, field: str, value: CursorValue) -> "PaginatorBuilder":
        return self.cursor(field, value, CursorDirection.AFTER)

    def cursor_before(self, field: str, value: CursorValue) -> "PaginatorBuilder":
        return self.cursor(field, value, CursorDirection.BEFORE)

    def cursor_from_encoded(self, token: str) -> "PaginatorBuilder":
        """Use an opaque token minted by a previous response; decoded on :meth:`build`."""
        self._encoded_cursor = token
        self._cursor = None
        return self

    # -- counting --
    def disable_total_count(self) -> "PaginatorBuilder":
        self._total_count_enabled = False
        return self

    def enable_total_count(self) -> "PaginatorBuilder":
        self._total_count_enabled = True
        return self

    def build(self) -> PaginationDescriptor:
        """Validate the staged inputs and return the descriptor.

        Raises:
            InvalidPageError: page < 1.
            InvalidPerPageError: per_page outside ``[1, 100]``.
            InvalidFilterOperatorError: unknown operator or arity mismatch.
            InvalidFilterValueError: value kind the operator cannot compare.
            InvalidFieldNameError: filter or search field is not an identifier.
            InvalidSearchError: search without fields.
            InvalidSortFieldError: sort or cursor field rejected by the sortable schema.
            InvalidCursorError: undecodable token, or cursor without a matching sort field.
        """
        page = validate_page(self._page)
        per_page = validate_per_page(self._per_page)
        sort_direction = _coerce_sort_direction(self._sort_direction)
        sort_by = self._check_sort_field(self._sort_by)

        filters = tuple(
            FilterCondition.create(field, _coerce_operator(field, operator), *values)
            for field, operator, values in self._filters
        )

        search = None
        if self._search is not None:
            query, fields, case_sensitive, exact = self._search
            search = SearchSpec(query, fields, case_sensitive=case_sensitive, exact=exact)

        cursor = self._resolve_cursor()
        if cursor is not None:
            self._check_sort_field(cursor.field)

        descriptor = PaginationDescriptor(
            page=page,
            per_page=per_page,
            sort_by=sort_by,
            sort_direction=sort_direction,
            filters=filters,
            search=search,
            cursor=cursor,
            total_count_enabled=self._total_count_enabled,
        )
        logger.debug(
            "Built pagination descriptor: page=%s per_page=%s filters=%d search=%s cursor=%s",
            page,
            per_page,
            len(filters),
            search is not None,
            cursor.direction.value if cursor else None,
        )
        return descriptor

    def _check_sort_field(self, field: Optional[str]) -> Optional[str]:
        if field is None:
            return None
        if not is_valid_field_name(field):
            msg = f"Invalid sort field {field!r}: must be an identifier"
            raise InvalidSortFieldError(msg, field)
        if self._allowed_sort_fields is not None and field not in self._allowed_sort_fields:
            msg = f"Field {field!r} is not sortable, expected one of {sorted(self._allowed_sort_fields)!r}"
            raise InvalidSortFieldError(msg, field)
        return field

    def _resolve_cursor(self) -> Optional[CursorSpec]:
        if self._encoded_cursor is not None:
            return decode_cursor(self._encoded_cursor)
        if self._cursor is None:
            return None
        field, value, direction = self._cursor
        return CursorSpec(field, value, _coerce_cursor_direction(direction))
