"""
Data Source Protocols

The data source is an external collaborator: a registry of collection
(model) handles exposing named retrieval methods, plus a raw-query entry
point. Only the shape of that surface is declared here.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CollectionHandle(Protocol):
    """
    Handle to a collection/model definition.

    Retrieval methods (``find_all``, ``count``, ...) are looked up by name on
    the handle and called with the options structure. Handles embedded inside
    query options are serialized as their ``collection_name`` when keys are
    derived.
    """

    collection_name: str


@runtime_checkable
class PlainConvertible(Protocol):
    """A structured record that can flatten itself to plain attributes."""

    def to_plain(self) -> dict[str, Any]:
        ...


@runtime_checkable
class DataSource(Protocol):
    """
    Protocol defining the queryable data source.

    ``model`` resolves a collection name to its handle; ``query`` executes a
    literal query string. Either may return a value or an awaitable; an
    awaitable collection handle is awaited before the cache is consulted.
    """

    def model(self, name: str) -> Any:
        ...

    def query(self, sql: str, options: Any = None) -> Any:
        ...
