"""JSON serialization utilities for pagespec.

Thin wrappers around :mod:`msgspec.json` so every module encodes and decodes
JSON the same way.
"""

from typing import Any, Literal, Optional, overload

import msgspec

from pagespec.exceptions import SerializationError

__all__ = ("from_json", "to_json")

_encoder = msgspec.json.Encoder()


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON string or bytes.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of string.

    Raises:
        SerializationError: If the data contains a type msgspec cannot encode.

    Returns:
        JSON string or bytes representation based on as_bytes parameter.
    """
    try:
        encoded = _encoder.encode(data)
    except (TypeError, msgspec.EncodeError) as exc:
        msg = f"Unable to encode {type(data).__name__} to JSON: {exc}"
        raise SerializationError(msg) from exc
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def from_json(data: "str | bytes", *, type: Optional[Any] = None) -> Any:  # noqa: A002
    """Decode JSON string or bytes to Python object.

    Args:
        data: JSON string or bytes to decode.
        type: Optional msgspec type to validate the decoded value against.

    Raises:
        SerializationError: If the payload is not valid JSON or does not match ``type``.

    Returns:
        Decoded Python object.
    """
    try:
        if type is None:
            return msgspec.json.decode(data)
        return msgspec.json.decode(data, type=type)
    except msgspec.DecodeError as exc:
        msg = f"Unable to decode JSON: {exc}"
        raise SerializationError(msg) from exc
