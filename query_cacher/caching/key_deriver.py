"""
Cache Key Derivation

Turns a query descriptor into a deterministic cache key:

    prefix:collection:method:sha1(serialized options)[:extra,keys]
    prefix:__raw__:query:sha1(sql-serialized options)

Canonicalization runs before hashing:
- Operator placeholders (dict keys or values) collapse to their label
- Collection handles collapse to their name
- Containers already on the current path become a circular marker
- Anything else unknown goes through the pluggable ``flatten`` hook, then a
  type-qualified string fallback

Serialization uses orjson with sorted keys, so mapping order does not leak
into the digest.
"""

import dataclasses
import enum
import hashlib
from collections.abc import Callable, Mapping, Set
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

import orjson
from pydantic import BaseModel

from query_cacher.caching.descriptors import QueryDescriptor
from query_cacher.caching.operators import Operator
from query_cacher.core.config.constants import (
    CIRCULAR_MARKER,
    DEFAULT_CACHE_PREFIX,
    EXTRA_KEYS_SEPARATOR,
    KEY_SEPARATOR,
    RAW_COLLECTION_SEGMENT,
    RAW_METHOD_SEGMENT,
    RAW_OPTIONS_SEPARATOR,
)
from query_cacher.core.interfaces.source import CollectionHandle

FlattenHook = Callable[[Any], Any]

# orjson only encodes integers that fit in 64 bits
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


class KeyDeriver:
    """
    Derives cache keys from query descriptors.

    Args:
        flatten: Optional hook for values the deriver does not know. It
            returns a JSON-friendly replacement, or ``NotImplemented`` to
            decline. Use it to map custom placeholder types to stable labels.
    """

    def __init__(self, flatten: FlattenHook | None = None):
        self._flatten = flatten

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def derive_key(self, descriptor: QueryDescriptor) -> str:
        """
        Build the key of a structured query.

        Extra keys are appended in caller order; they are a partition chosen
        by the caller, not something to canonicalize.
        """
        if descriptor.options is None:
            material = KEY_SEPARATOR.join((descriptor.collection_name, descriptor.method_name))
        else:
            material = self.serialize(descriptor.options)

        parts = [
            descriptor.prefix,
            descriptor.collection_name,
            descriptor.method_name,
            self.digest(material),
        ]
        if descriptor.extra_keys:
            parts.append(EXTRA_KEYS_SEPARATOR.join(descriptor.extra_keys))
        return KEY_SEPARATOR.join(parts)

    def derive_raw_key(
        self, sql: str, options: Any = None, prefix: str = DEFAULT_CACHE_PREFIX
    ) -> str:
        """Build the key of a raw query."""
        if options is None:
            material = sql
        else:
            material = f"{sql}{RAW_OPTIONS_SEPARATOR}{self.serialize(options)}"
        return KEY_SEPARATOR.join(
            (prefix, RAW_COLLECTION_SEGMENT, RAW_METHOD_SEGMENT, self.digest(material))
        )

    def serialize(self, value: Any) -> str:
        """Canonicalize ``value`` and render it as stable JSON text."""
        return orjson.dumps(self.canonicalize(value), option=orjson.OPT_SORT_KEYS).decode("utf-8")

    def canonicalize(self, value: Any) -> Any:
        """Return a JSON-ready, string-keyed equivalent of ``value``."""
        return self._canonical(value, (), set())

    @staticmethod
    def digest(material: str) -> str:
        return hashlib.sha1(material.encode("utf-8")).hexdigest()

    # -------------------------------------------------------------------------
    # Canonicalization
    # -------------------------------------------------------------------------

    def _canonical(self, value: Any, path: tuple[str, ...], active: set[int]) -> Any:
        if value is None or isinstance(value, (str, bool, float)):
            return value
        if isinstance(value, int):
            return value if _INT_MIN <= value <= _INT_MAX else str(value)
        if isinstance(value, Operator):
            return value.label
        if isinstance(value, enum.Enum):
            return self._canonical(value.value, path, active)
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        if isinstance(value, (Decimal, UUID)):
            return str(value)
        if isinstance(value, bytes):
            return value.hex()

        if self._flatten is not None:
            flattened = self._flatten(value)
            if flattened is not NotImplemented and flattened is not value:
                return self._canonical(flattened, path, active)

        if isinstance(value, (Mapping, list, tuple, Set)) or _is_record(value):
            marker = id(value)
            if marker in active:
                return CIRCULAR_MARKER.format(path=".".join(path))
            active.add(marker)
            try:
                return self._canonical_container(value, path, active)
            finally:
                active.discard(marker)

        if isinstance(value, CollectionHandle):
            return str(value.collection_name)

        return f"{type(value).__qualname__}:{value}"

    def _canonical_container(self, value: Any, path: tuple[str, ...], active: set[int]) -> Any:
        if isinstance(value, Mapping):
            return self._canonical_mapping(value, path, active)
        if isinstance(value, (list, tuple)):
            return [
                self._canonical(item, path + (str(index),), active)
                for index, item in enumerate(value)
            ]
        if isinstance(value, Set):
            items = [self._canonical(item, path, active) for item in value]
            return sorted(items, key=lambda item: orjson.dumps(item, option=orjson.OPT_SORT_KEYS))
        if isinstance(value, BaseModel):
            fields = {name: getattr(value, name) for name in type(value).model_fields}
        else:
            fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return self._canonical_mapping(fields, path, active)

    def _canonical_mapping(
        self, value: Mapping, path: tuple[str, ...], active: set[int]
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        placeholders: list[tuple[str, Any]] = []

        for key, item in value.items():
            label = self._key_label(key)
            if isinstance(key, str):
                result[label] = item
            else:
                placeholders.append((label, item))

        # Rewritten placeholder keys replace plain keys with the same label
        for label, item in placeholders:
            result[label] = item

        return {
            label: self._canonical(item, path + (label,), active)
            for label, item in result.items()
        }

    def _key_label(self, key: Any) -> str:
        if isinstance(key, str):
            return key
        if isinstance(key, Operator):
            return key.label
        if self._flatten is not None:
            flattened = self._flatten(key)
            if flattened is not NotImplemented and flattened is not key:
                return str(flattened)
        # Other keys are tagged with their type so 1 and "1" stay distinct
        label = key.value if isinstance(key, enum.Enum) else key
        return f"{type(key).__qualname__}:{label}"


def _is_record(value: Any) -> bool:
    if isinstance(value, BaseModel):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)
