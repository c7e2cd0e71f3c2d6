"""Library-wide defaults and emission settings."""

import re
from typing import TYPE_CHECKING, Any, Optional

from pagespec.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = (
    "DEFAULT_PAGE",
    "DEFAULT_PER_PAGE",
    "MAX_PER_PAGE",
    "MIN_PER_PAGE",
    "PaginationConfig",
    "get_default_config",
)

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 20
MIN_PER_PAGE = 1
MAX_PER_PAGE = 100

_ALIAS_RE = re.compile(r"^[^\W\d]\w*\Z")


class PaginationConfig:
    """Settings for statement emission.

    Args:
        dialect: sqlglot dialect used to parse base queries and render statements.
        base_alias: Alias given to a base query when it has to be wrapped.
        count_alias: Alias of the subquery a count statement selects from.
    """

    __slots__ = ("base_alias", "count_alias", "dialect")

    def __init__(
        self, dialect: "Optional[DialectType]" = None, base_alias: str = "_base", count_alias: str = "_count"
    ) -> None:
        for name, alias in (("base_alias", base_alias), ("count_alias", count_alias)):
            if not alias or not _ALIAS_RE.match(alias):
                msg = f"{name} must be an identifier, got {alias!r}"
                raise ImproperConfigurationError(msg)
        if base_alias == count_alias:
            msg = f"base_alias and count_alias must differ, both are {base_alias!r}"
            raise ImproperConfigurationError(msg)
        self.dialect = dialect
        self.base_alias = base_alias
        self.count_alias = count_alias

    def replace(self, **changes: Any) -> "PaginationConfig":
        """Return a copy with the given settings changed."""
        current = {name: getattr(self, name) for name in self.__slots__}
        current.update(changes)
        return PaginationConfig(**current)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PaginationConfig):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, name) for name in self.__slots__))

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in sorted(self.__slots__))
        return f"PaginationConfig({fields})"


_DEFAULT_CONFIG = PaginationConfig()


def get_default_config() -> PaginationConfig:
    """Return the shared default configuration."""
    return _DEFAULT_CONFIG
