"""Unit tests for pagespec.config."""

import pytest

from pagespec.config import (
    DEFAULT_PAGE,
    DEFAULT_PER_PAGE,
    MAX_PER_PAGE,
    MIN_PER_PAGE,
    PaginationConfig,
    get_default_config,
)
from pagespec.exceptions import ImproperConfigurationError


def test_library_defaults() -> None:
    assert (DEFAULT_PAGE, DEFAULT_PER_PAGE, MIN_PER_PAGE, MAX_PER_PAGE) == (1, 20, 1, 100)


def test_default_config() -> None:
    config = get_default_config()
    assert config.dialect is None
    assert config.base_alias == "_base"
    assert config.count_alias == "_count"
    assert get_default_config() is config


def test_replace_returns_a_copy() -> None:
    config = PaginationConfig()

    changed = config.replace(dialect="sqlite")

    assert changed.dialect == "sqlite"
    assert changed.base_alias == config.base_alias
    assert config.dialect is None
    assert changed != config


def test_value_equality() -> None:
    assert PaginationConfig(dialect="postgres") == PaginationConfig(dialect="postgres")
    assert hash(PaginationConfig(dialect="postgres")) == hash(PaginationConfig(dialect="postgres"))
    assert "dialect='postgres'" in repr(PaginationConfig(dialect="postgres"))


@pytest.mark.parametrize(
    "changes",
    [
        {"base_alias": ""},
        {"base_alias": "1base"},
        {"count_alias": "my count"},
        {"count_alias": "_count\n"},
        {"base_alias": "same", "count_alias": "same"},
    ],
    ids=["empty", "leading-digit", "space", "trailing-newline", "equal-aliases"],
)
def test_invalid_aliases(changes: dict[str, str]) -> None:
    with pytest.raises(ImproperConfigurationError):
        PaginationConfig(**changes)


def test_replace_validates() -> None:
    with pytest.raises(ImproperConfigurationError):
        PaginationConfig().replace(count_alias="_base")
