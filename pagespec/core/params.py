"""Immutable request descriptors.

Every type here validates its own invariants on construction, so an instance
that exists is always valid. :class:`~pagespec.core.builder.PaginatorBuilder`
is the usual way to create them.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from pagespec.config import MAX_PER_PAGE, MIN_PER_PAGE
from pagespec.core.values import CursorDirection, CursorValue, FilterOperator, FilterValue, SortDirection, ValueKind
from pagespec.exceptions import (
    InvalidCursorError,
    InvalidFieldNameError,
    InvalidFilterOperatorError,
    InvalidFilterValueError,
    InvalidPageError,
    InvalidPerPageError,
    InvalidSearchError,
    InvalidSortFieldError,
)

__all__ = (
    "CursorSpec",
    "FilterCondition",
    "PaginationDescriptor",
    "SearchSpec",
    "is_valid_field_name",
    "validate_field_name",
    "validate_page",
    "validate_per_page",
)

_FIELD_NAME_RE = re.compile(r"^[^\W\d]\w*(?:\.[^\W\d]\w*){0,3}\Z")


def is_valid_field_name(name: Any) -> bool:
    """Return True for identifiers, optionally dot-qualified up to ``catalog.db.table.column``."""
    return isinstance(name, str) and bool(_FIELD_NAME_RE.match(name))


def validate_field_name(name: Any) -> str:
    """Reject field names that are not plain identifiers.

    Field names end up in statement text, never as bound values, so only
    identifier characters are allowed.

    Raises:
        InvalidFieldNameError: If ``name`` is not an identifier.
    """
    if not is_valid_field_name(name):
        raise InvalidFieldNameError(name)
    return name


def validate_page(page: Any) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise InvalidPageError(page)
    return page


def validate_per_page(per_page: Any) -> int:
    if isinstance(per_page, bool) or not isinstance(per_page, int) or not MIN_PER_PAGE <= per_page <= MAX_PER_PAGE:
        raise InvalidPerPageError(per_page, MIN_PER_PAGE, MAX_PER_PAGE)
    return per_page


@dataclass(frozen=True)
class FilterCondition:
    """A single ``field <operator> value(s)`` condition."""

    field: str
    operator: FilterOperator
    values: tuple[FilterValue, ...] = ()

    def __post_init__(self) -> None:
        validate_field_name(self.field)
        if not isinstance(self.operator, FilterOperator):
            msg = f"Unknown filter operator {self.operator!r} for field {self.field!r}"
            raise InvalidFilterOperatorError(msg, self.operator)
        if len(self.values) != self.operator.arity:
            msg = (
                f"Operator {self.operator.value!r} on field {self.field!r} takes {self.operator.arity} "
                f"value(s), got {len(self.values)}: {[v.to_python() for v in self.values]!r}"
            )
            raise InvalidFilterOperatorError(msg, [v.to_python() for v in self.values])
        self._check_kinds()

    @classmethod
    def create(cls, field: str, operator: FilterOperator, *values: Any) -> "FilterCondition":
        """Build a condition from plain Python values."""
        return cls(field, operator, tuple(FilterValue.of(value) for value in values))

    def _check_kinds(self) -> None:
        operator = self.operator
        if operator.arity == 0:
            return
        if operator is FilterOperator.BETWEEN:
            low, high = self.values
            if not low.is_orderable or low.kind is not high.kind:
                msg = (
                    f"Operator 'between' on field {self.field!r} needs two bounds of one orderable kind, "
                    f"got {low.kind.value} {low.value!r} and {high.kind.value} {high.value!r}"
                )
                raise InvalidFilterValueError(msg, [low.to_python(), high.to_python()])
            return

        (value,) = self.values
        if operator.takes_list:
            if value.kind is not ValueKind.LIST:
                msg = f"Operator {operator.value!r} on field {self.field!r} takes a list, got {value.to_python()!r}"
                raise InvalidFilterOperatorError(msg, value.to_python())
            items = value.value
            if not items:
                msg = f"Operator {operator.value!r} on field {self.field!r} needs a non-empty list"
                raise InvalidFilterValueError(msg, [])
            kinds = {item.kind for item in items}
            if len(kinds) != 1 or kinds & {ValueKind.LIST, ValueKind.NULL}:
                msg = (
                    f"Operator {operator.value!r} on field {self.field!r} needs non-null scalar items "
                    f"of one kind, got {value.to_python()!r}"
                )
                raise InvalidFilterValueError(msg, value.to_python())
            return

        if value.kind is ValueKind.LIST:
            msg = f"Operator {operator.value!r} on field {self.field!r} takes a single value, got {value.to_python()!r}"
            raise InvalidFilterOperatorError(msg, value.to_python())
        if operator.is_pattern and value.kind is not ValueKind.STRING:
            msg = f"Operator {operator.value!r} on field {self.field!r} needs a string, got {value.value!r}"
            raise InvalidFilterValueError(msg, value.value)
        if operator.is_ordering and not value.is_orderable:
            msg = (
                f"Operator {operator.value!r} on field {self.field!r} cannot order "
                f"a {value.kind.value} value {value.value!r}"
            )
            raise InvalidFilterValueError(msg, value.value)
        if value.kind is ValueKind.NULL:
            msg = (
                f"Operator {operator.value!r} on field {self.field!r} cannot compare against null, "
                "use is_null/is_not_null"
            )
            raise InvalidFilterValueError(msg, None)


@dataclass(frozen=True)
class SearchSpec:
    """Free-text search over several fields.

    Fuzzy mode (the default) wraps the query in ``%`` wildcards; exact mode
    matches it verbatim.
    """

    query: str
    fields: tuple[str, ...]
    case_sensitive: bool = False
    exact: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.query, str):
            msg = f"Search query must be a string, got {self.query!r}"
            raise InvalidSearchError(msg, self.query)
        fields = tuple(dict.fromkeys(self.fields))
        if not fields:
            msg = f"Search for {self.query!r} needs at least one field"
            raise InvalidSearchError(msg, self.fields)
        for name in fields:
            validate_field_name(name)
        object.__setattr__(self, "fields", fields)

    @property
    def pattern(self) -> str:
        """The value each field is matched against."""
        return self.query if self.exact else f"%{self.query}%"


@dataclass(frozen=True)
class CursorSpec:
    """Keyset boundary: rows after or before ``value`` of ``field``."""

    field: str
    value: CursorValue
    direction: CursorDirection = CursorDirection.AFTER

    def __post_init__(self) -> None:
        if not is_valid_field_name(self.field):
            msg = f"Invalid cursor field {self.field!r}: must be an identifier"
            raise InvalidCursorError(msg, self.field)
        if isinstance(self.value, bool) or not isinstance(self.value, (int, str)):
            msg = f"Cursor value must be an integer or a string, got {self.value!r}"
            raise InvalidCursorError(msg, self.value)
        if not isinstance(self.direction, CursorDirection):
            msg = f"Unknown cursor direction {self.direction!r}"
            raise InvalidCursorError(msg, self.direction)


@dataclass(frozen=True)
class PaginationDescriptor:
    """Validated, immutable description of one pagination request."""

    page: int = 1
    per_page: int = 20
    sort_by: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC
    filters: tuple[FilterCondition, ...] = ()
    search: Optional[SearchSpec] = None
    cursor: Optional[CursorSpec] = None
    total_count_enabled: bool = True

    def __post_init__(self) -> None:
        validate_page(self.page)
        validate_per_page(self.per_page)
        if self.sort_by is not None and not is_valid_field_name(self.sort_by):
            msg = f"Invalid sort field {self.sort_by!r}: must be an identifier"
            raise InvalidSortFieldError(msg, self.sort_by)
        if not isinstance(self.sort_direction, SortDirection):
            msg = f"Unknown sort direction {self.sort_direction!r}"
            raise InvalidSortFieldError(msg, self.sort_direction)
        object.__setattr__(self, "filters", tuple(self.filters))
        if self.cursor is not None:
            if self.sort_by is None:
                msg = f"Cursor on field {self.cursor.field!r} requires a sort field"
                raise InvalidCursorError(msg, self.cursor.field)
            if self.cursor.field != self.sort_by:
                msg = f"Cursor field {self.cursor.field!r} does not match sort field {self.sort_by!r}"
                raise InvalidCursorError(msg, self.cursor.field)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page

    @property
    def fetch_limit(self) -> int:
        """Row limit for the data query: one extra row probes for a further page."""
        return self.per_page + 1

    @property
    def is_cursor_mode(self) -> bool:
        return self.cursor is not None
