"""Value and operator vocabulary shared by every pagination component."""

from collections.abc import Set
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from typing_extensions import TypeAlias

from pagespec.exceptions import InvalidFilterValueError

__all__ = (
    "CursorDirection",
    "CursorValue",
    "FilterOperator",
    "FilterValue",
    "SortDirection",
    "ValueKind",
)

CursorValue: TypeAlias = Union[int, str]
"""Sortable key types supported for keyset comparison."""


class ValueKind(str, Enum):
    """Tag of a :class:`FilterValue`."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"
    LIST = "list"


_ORDERABLE_KINDS = frozenset({ValueKind.STRING, ValueKind.INTEGER, ValueKind.FLOAT})


@dataclass(frozen=True)
class FilterValue:
    """Tagged filter value.

    Equality is structural, so ``FilterValue.of(1) != FilterValue.of(True)``.
    Ordering is only defined between values of the same kind.
    """

    kind: ValueKind
    value: Any

    @classmethod
    def of(cls, raw: Any) -> "FilterValue":
        """Classify a plain Python value.

        Raises:
            InvalidFilterValueError: If ``raw`` has no matching kind.
        """
        if isinstance(raw, FilterValue):
            return raw
        if raw is None:
            return cls(ValueKind.NULL, None)
        # bool before int, bool is an int subclass
        if isinstance(raw, bool):
            return cls(ValueKind.BOOLEAN, raw)
        if isinstance(raw, int):
            return cls(ValueKind.INTEGER, raw)
        if isinstance(raw, float):
            return cls(ValueKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, (list, tuple, Set)):
            items = sorted(raw, key=repr) if isinstance(raw, Set) else raw
            return cls(ValueKind.LIST, tuple(cls.of(item) for item in items))
        msg = f"Unsupported filter value {raw!r} of type {type(raw).__name__}"
        raise InvalidFilterValueError(msg, raw)

    @property
    def is_orderable(self) -> bool:
        return self.kind in _ORDERABLE_KINDS

    def to_python(self) -> Any:
        if self.kind is ValueKind.LIST:
            return [item.to_python() for item in self.value]
        return self.value

    def _check_comparable(self, other: Any) -> "FilterValue":
        if not isinstance(other, FilterValue):
            msg = f"Cannot compare {self!r} with {other!r}"
            raise InvalidFilterValueError(msg, other)
        if other.kind is not self.kind or not self.is_orderable:
            msg = (
                f"Cannot order {self.kind.value} value {self.value!r} "
                f"against {other.kind.value} value {other.value!r}"
            )
            raise InvalidFilterValueError(msg, other.value)
        return other

    def __lt__(self, other: Any) -> bool:
        return bool(self.value < self._check_comparable(other).value)

    def __le__(self, other: Any) -> bool:
        return bool(self.value <= self._check_comparable(other).value)

    def __gt__(self, other: Any) -> bool:
        return bool(self.value > self._check_comparable(other).value)

    def __ge__(self, other: Any) -> bool:
        return bool(self.value >= self._check_comparable(other).value)


class FilterOperator(str, Enum):
    """Closed operator vocabulary of filter conditions."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    CONTAINS = "contains"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    BETWEEN = "between"

    @property
    def arity(self) -> int:
        """Number of values a condition using this operator takes.

        ``IN``/``NOT_IN`` take one value, which must be a list.
        """
        if self in {FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL}:
            return 0
        if self is FilterOperator.BETWEEN:
            return 2
        return 1

    @property
    def takes_list(self) -> bool:
        return self in {FilterOperator.IN, FilterOperator.NOT_IN}

    @property
    def is_pattern(self) -> bool:
        return self in {FilterOperator.LIKE, FilterOperator.ILIKE, FilterOperator.CONTAINS}

    @property
    def is_ordering(self) -> bool:
        return self in {FilterOperator.GT, FilterOperator.LT, FilterOperator.GTE, FilterOperator.LTE}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def reverse(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class CursorDirection(str, Enum):
    AFTER = "after"
    BEFORE = "before"
