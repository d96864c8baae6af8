"""
Payload Codec and Result Normalization

Source results are normalized (single records flattened to plain attribute
maps) and encoded with orjson before they are written to the store. Cached
payloads are decoded with orjson on a hit.
"""

import dataclasses
from decimal import Decimal
from typing import Any

import orjson
from pydantic import BaseModel

from query_cacher.core.exceptions import DeserializationError, SerializationError
from query_cacher.core.interfaces.source import PlainConvertible


def normalize_result(result: Any) -> Any:
    """
    Shape a source result for caching.

    - None passes through
    - Sequences pass through unchanged
    - A single structured record becomes its plain attribute dict
    - Anything else passes through
    """
    if result is None:
        return result
    if isinstance(result, (list, tuple)):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump()
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.asdict(result)
    if isinstance(result, PlainConvertible):
        return result.to_plain()
    return result


def _encode_default(value: Any) -> Any:
    # Called by orjson for types it cannot encode natively
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, PlainConvertible):
        return value.to_plain()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__qualname__}")


def encode_payload(value: Any) -> str:
    """
    Encode a normalized result.

    Raises:
        SerializationError: If the value cannot be encoded
    """
    try:
        return orjson.dumps(value, default=_encode_default).decode("utf-8")
    except TypeError as e:
        raise SerializationError(
            message=f"Result cannot be serialized: {e}",
            details={"value_type": type(value).__qualname__},
        ) from e


def decode_payload(payload: str | bytes) -> Any:
    """
    Decode a cached payload.

    Raises:
        DeserializationError: If the payload is not valid JSON
    """
    try:
        return orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise DeserializationError(
            message=f"Cached payload is not valid JSON: {e}",
            details={"payload_length": len(payload)},
        ) from e
