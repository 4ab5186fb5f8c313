"""Serializers: turn records and collections into response documents.

A document has the primary resource under its type key (``author`` for a
record, ``authors`` for a collection). Related records reachable through a
serializer's ``relationships`` are either embedded in place or sideloaded
into top-level arrays keyed by the plural target type.

Sideloaded records are emitted once each, in the order a left-to-right,
depth-first walk from the primary resource first reaches them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from mock_orm.associations import Association, pluralize
from mock_orm.collection import Collection
from mock_orm.errors import SerializerError
from mock_orm.record import Record

if TYPE_CHECKING:
    from mock_orm.schema import Schema

logger = logging.getLogger(__name__)

Document = dict[str, Any]


@dataclass
class Serializer:
    """Per-type serialization settings.

    Attributes:
        relationships: Relation names to traverse, in output order.
        embed: Inline related records instead of sideloading them.
        attrs: Attribute whitelist. ``id`` is always kept. None keeps all.
    """

    relationships: list[str] = field(default_factory=list)
    embed: bool = False
    attrs: list[str] | None = None

    def key_for_relationship_ids(self, association: Association) -> str:
        """Key holding a relation's id(s) on the serialized owner."""
        return association.ids_key

    def key_for_sideload(self, type_name: str) -> str:
        """Top-level key collecting sideloaded records of a type."""
        return pluralize(type_name)


class SerializerRegistry:
    """Serializers for every type of a schema."""

    def __init__(
        self, schema: Schema, serializers: Mapping[str, Serializer] | None = None
    ) -> None:
        self.schema = schema
        self._serializers: dict[str, Serializer] = {}
        self._default = Serializer()
        for name, serializer in (serializers or {}).items():
            type_name = schema.model_type_for(name)
            associations = schema.associations_for(type_name)
            unknown = [r for r in serializer.relationships if r not in associations]
            if unknown:
                raise SerializerError(
                    f"Serializer for '{type_name}' lists unknown relationships: {unknown}"
                )
            self._serializers[type_name] = serializer

    def serializer_for(self, type_name: str) -> Serializer:
        """The serializer for a type; types without one get the defaults."""
        return self._serializers.get(type_name, self._default)

    def serialize(self, response: Any) -> Any:
        """Serialize a Record or Collection; any other value is returned as is."""
        if isinstance(response, Record):
            return _GraphWalk(self).document_for_record(response)
        if isinstance(response, Collection):
            return _GraphWalk(self).document_for_collection(response)
        return response


class _GraphWalk:
    """One depth-first walk over a record graph, with its own seen set."""

    def __init__(self, registry: SerializerRegistry) -> None:
        self.registry = registry
        self.schema = registry.schema
        self._seen: set[tuple[str, Any]] = set()
        self._sideloaded: dict[str, list[Document]] = {}

    def document_for_record(self, record: Record) -> Document:
        self._visit(record)
        primary = self._serialize(record, primary=True)
        return self._document(record.type, primary)

    def document_for_collection(self, collection: Collection) -> Document:
        key = self.registry.serializer_for(collection.type).key_for_sideload(collection.type)
        for record in collection:
            self._visit(record)
        primary = [self._serialize(record, primary=True) for record in collection]
        # Records of the primary type reached through relationships join the primary array.
        primary.extend(self._sideloaded.pop(key, []))
        logger.debug("serialized %d %s records", len(primary), collection.type)
        return self._document(key, primary)

    def _document(self, key: str, primary: Any) -> Document:
        return {key: primary, **self._sideloaded}

    def _visit(self, record: Record) -> bool:
        """Mark a record as seen; False if it already was."""
        key = (record.type, record.id if record.is_saved() else id(record))
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def _attributes(self, record: Record, serializer: Serializer) -> Document:
        data = record.to_dict()
        if serializer.attrs is not None:
            allowed = {"id", *serializer.attrs}
            data = {k: v for k, v in data.items() if k in allowed}
        return data

    def _serialize(self, record: Record, primary: bool) -> Document:
        serializer = self.registry.serializer_for(record.type)
        associations = self.schema.associations_for(record.type)
        data = self._attributes(record, serializer)

        if primary:
            for assoc in associations.values():
                if assoc.is_plural and assoc.name not in serializer.relationships:
                    data[serializer.key_for_relationship_ids(assoc)] = getattr(record, assoc.name).ids

        for name in serializer.relationships:
            assoc = associations[name]
            related = getattr(record, name)
            if serializer.embed:
                self._embed(data, assoc, related)
            else:
                self._reference(data, serializer, assoc, related)
        return data

    def _embed(self, data: Document, assoc: Association, related: Any) -> None:
        if assoc.is_plural:
            data[assoc.name] = [self._embedded(r) for r in related]
        else:
            data.pop(assoc.foreign_key, None)
            data[assoc.name] = self._embedded(related) if related is not None else None

    def _embedded(self, record: Record) -> Document:
        if not self._visit(record):
            # Already on the walk: inline attributes only, which also cuts cycles.
            return self._attributes(record, self.registry.serializer_for(record.type))
        return self._serialize(record, primary=False)

    def _reference(
        self, data: Document, serializer: Serializer, assoc: Association, related: Any
    ) -> None:
        key = serializer.key_for_relationship_ids(assoc)
        if assoc.is_plural:
            data[key] = related.ids
            members = list(related)
        else:
            data[key] = related.id if related is not None else None
            members = [related] if related is not None else []
        for member in members:
            self._sideload(member)

    def _sideload(self, record: Record) -> None:
        if not self._visit(record):
            return
        key = self.registry.serializer_for(record.type).key_for_sideload(record.type)
        bucket = self._sideloaded.setdefault(key, [])
        # Reserve the slot first so the record precedes anything it leads to.
        index = len(bucket)
        bucket.append({})
        bucket[index] = self._serialize(record, primary=False)
