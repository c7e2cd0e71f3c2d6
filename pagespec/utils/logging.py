"""Logging for pagespec.

Loggers live under the ``pagespec`` namespace. Records about a pagination
request carry a summary of its shape in the ``pagination`` record attribute,
built by :func:`pagination_fields` and rendered by :class:`PaginationFormatter`.
Filter, search and cursor values never enter that summary.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

from pagespec.exceptions import ImproperConfigurationError
from pagespec.utils.serializers import to_json

if TYPE_CHECKING:
    from logging import LogRecord
    from typing import TextIO

    from pagespec.core.params import PaginationDescriptor

__all__ = ("NAMESPACE", "PaginationFormatter", "configure_logging", "get_logger", "pagination_fields")

NAMESPACE = "pagespec"
FIELDS_ATTRIBUTE = "pagination"
FORMAT_STYLES = ("structured", "simple")


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``pagespec`` namespace.

    Args:
        name: Dotted name relative to ``pagespec``. Already-qualified names
            are used as is. Omit for the namespace logger itself.

    Returns:
        The logger.
    """
    if name is None or name == NAMESPACE:
        return logging.getLogger(NAMESPACE)
    if not name.startswith(f"{NAMESPACE}."):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)


def pagination_fields(descriptor: PaginationDescriptor, **fields: Any) -> dict[str, Any]:
    """Build the ``extra`` mapping that tags a record with its pagination request.

    Only the request's shape is summarized. Field names appear, values do not.

    Args:
        descriptor: The request being served.
        **fields: Additional counters, e.g. bind or row counts.

    Returns:
        A mapping to pass as ``extra=`` to a logging call.
    """
    summary: dict[str, Any] = {
        "mode": "cursor" if descriptor.is_cursor_mode else "offset",
        "page": descriptor.page,
        "per_page": descriptor.per_page,
        "sort_by": descriptor.sort_by,
        "sort_direction": descriptor.sort_direction.value,
        "filters": [condition.field for condition in descriptor.filters],
        "search_fields": list(descriptor.search.fields) if descriptor.search is not None else [],
        "cursor": descriptor.cursor.direction.value if descriptor.cursor is not None else None,
        "total_count": descriptor.total_count_enabled,
    }
    summary.update(fields)
    return {FIELDS_ATTRIBUTE: summary}


class PaginationFormatter(logging.Formatter):
    """JSON-lines formatter that nests the pagination summary of a record."""

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        summary = getattr(record, FIELDS_ATTRIBUTE, None)
        if summary:
            entry[FIELDS_ATTRIBUTE] = summary
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return to_json(entry)


class _NamespaceHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marks the handler installed by :func:`configure_logging`."""


def configure_logging(
    level: int | str = logging.INFO,
    format_style: str = "structured",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Send ``pagespec`` records to a stream.

    A repeated call replaces the handler of the previous one. Handlers the
    application attached itself are kept.

    Args:
        level: Level name or number for the ``pagespec`` logger.
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for text.
        stream: Destination, standard output by default.

    Raises:
        ImproperConfigurationError: If ``format_style`` or ``level`` is unknown.

    Returns:
        The installed handler.
    """
    if format_style not in FORMAT_STYLES:
        msg = f"Unknown log format style {format_style!r}, expected one of {', '.join(FORMAT_STYLES)}"
        raise ImproperConfigurationError(msg)

    logger = get_logger()
    try:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    except ValueError as exc:
        msg = f"Unknown log level {level!r}"
        raise ImproperConfigurationError(msg) from exc

    for existing in [handler for handler in logger.handlers if isinstance(handler, _NamespaceHandler)]:
        logger.removeHandler(existing)

    handler = _NamespaceHandler(stream or sys.stdout)
    if format_style == "structured":
        handler.setFormatter(PaginationFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return handler
