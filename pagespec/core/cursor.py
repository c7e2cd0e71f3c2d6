"""Opaque keyset cursor tokens.

A token is the compact JSON form of ``(field, value, direction)`` followed by
a CRC-32 of that JSON, encoded as URL-safe base64 without padding. Tokens are
self-contained; nothing is stored server side. They are checksummed but not
signed: a forged token that is structurally valid decodes successfully and
is only constrained by the sort-field checks of the builder.
"""

import base64
import binascii
import zlib
from typing import Optional, Union

import msgspec

from pagespec.core.params import CursorSpec
from pagespec.core.values import CursorDirection, FilterOperator, SortDirection
from pagespec.exceptions import InvalidCursorError, SerializationError
from pagespec.utils.serializers import from_json, to_json

__all__ = ("decode_cursor", "encode_cursor", "fetch_direction", "resolve_cursor_operator")

_CHECKSUM_SIZE = 4


class _CursorPayload(msgspec.Struct, forbid_unknown_fields=True):
    field: str
    value: Union[int, str]
    direction: CursorDirection


def _checksum(payload: bytes) -> bytes:
    return zlib.crc32(payload).to_bytes(_CHECKSUM_SIZE, "big")


def encode_cursor(cursor: CursorSpec) -> str:
    """Encode a cursor into an opaque, ASCII-safe token."""
    payload = to_json(_CursorPayload(cursor.field, cursor.value, cursor.direction), as_bytes=True)
    return base64.urlsafe_b64encode(payload + _checksum(payload)).rstrip(b"=").decode("ascii")


def decode_cursor(token: str) -> CursorSpec:
    """Decode a token produced by :func:`encode_cursor`.

    Raises:
        InvalidCursorError: If the token does not reverse-transform, fails its
            checksum, does not hold a valid ``(field, value, direction)`` triple,
            or is not the canonical encoding of its content.
    """
    if not isinstance(token, str) or not token:
        msg = f"Invalid cursor token {token!r}: expected a non-empty string"
        raise InvalidCursorError(msg, token)
    try:
        raw = base64.b64decode(token.encode("ascii") + b"=" * (-len(token) % 4), altchars=b"-_", validate=True)
    except (UnicodeEncodeError, binascii.Error, ValueError) as exc:
        msg = f"Invalid cursor token {token!r}: not base64"
        raise InvalidCursorError(msg, token) from exc

    payload, checksum = raw[:-_CHECKSUM_SIZE], raw[-_CHECKSUM_SIZE:]
    if len(raw) <= _CHECKSUM_SIZE or _checksum(payload) != checksum:
        msg = f"Invalid cursor token {token!r}: checksum mismatch"
        raise InvalidCursorError(msg, token)

    try:
        decoded = from_json(payload, type=_CursorPayload)
    except SerializationError as exc:
        msg = f"Invalid cursor token {token!r}: {exc.detail}"
        raise InvalidCursorError(msg, token) from exc

    cursor = CursorSpec(decoded.field, decoded.value, decoded.direction)
    if encode_cursor(cursor) != token:
        msg = f"Invalid cursor token {token!r}: not in canonical form"
        raise InvalidCursorError(msg, token)
    return cursor


def resolve_cursor_operator(sort_direction: SortDirection, cursor_direction: CursorDirection) -> FilterOperator:
    """Comparison applied to the sort field for a keyset boundary.

    ========  =====  ====
    cursor    sort   op
    ========  =====  ====
    after     asc    ``>``
    after     desc   ``<``
    before    asc    ``<``
    before    desc   ``>``
    ========  =====  ====
    """
    ascending = sort_direction is SortDirection.ASC
    forward = cursor_direction is CursorDirection.AFTER
    return FilterOperator.GT if ascending == forward else FilterOperator.LT


def fetch_direction(sort_direction: SortDirection, cursor: Optional[CursorSpec]) -> SortDirection:
    """Order rows must be fetched in.

    A ``before`` cursor walks backwards from the boundary, so rows are fetched
    in reverse and re-reversed once the page is trimmed.
    """
    if cursor is not None and cursor.direction is CursorDirection.BEFORE:
        return sort_direction.reverse()
    return sort_direction
