"""JSON encoding for structured log records."""

import datetime
import enum
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Literal, Union, overload
from uuid import UUID

import msgspec

__all__ = ("decode_json", "encode_json")


def _type_to_string(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (Decimal, UUID, PurePath)):
        return str(value)
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return repr(value)


_encoder = msgspec.json.Encoder(enc_hook=_type_to_string)
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode ``data`` to JSON, falling back to ``repr`` for unknown types."""
    encoded = _encoder.encode(data)
    return encoded if as_bytes else encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    return _decoder.decode(data)
