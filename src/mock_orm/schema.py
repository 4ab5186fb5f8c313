"""Schema class tying model declarations to the record store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from mock_orm.associations import (
    Association,
    AssociationDeclaration,
    ModelDefinition,
    ModelRegistry,
    normalize_type_name,
    pluralize,
)
from mock_orm.collection import Collection
from mock_orm.db import Db
from mock_orm.errors import UnknownTypeError
from mock_orm.parsing import ModelParser
from mock_orm.record import Record
from mock_orm.request import Request

logger = logging.getLogger(__name__)


class Schema:
    """Model declarations bound to a record store.

    The schema is the factory for records and collections and the entry
    point for shorthand resolution.
    """

    def __init__(self, registry: ModelRegistry, db: Db | None = None) -> None:
        """Initialize a schema.

        Args:
            registry: Frozen registry with every model and association.
            db: Record store. A new empty one is created when omitted.
        """
        self.registry = registry
        self.db = db if db is not None else Db()
        for type_name in registry.list_types():
            self.db.get_table(self.table_name(type_name))

    @classmethod
    def parse(cls, model_definitions: str, db: Db | None = None) -> Schema:
        """Parse model declarations and create a schema.

        Args:
            model_definitions: DSL string declaring models.
            db: Record store to use.

        Returns:
            A new Schema instance.
        """
        parser = ModelParser()
        registry = parser.parse(model_definitions)
        return cls(registry, db)

    @classmethod
    def load(cls, path: Path | str, db: Db | None = None) -> Schema:
        """Parse model declarations from a file."""
        return cls.parse(Path(path).read_text(encoding="utf-8"), db)

    @classmethod
    def from_models(
        cls,
        models: Mapping[str, Mapping[str, AssociationDeclaration] | None],
        db: Db | None = None,
    ) -> Schema:
        """Create a schema from ``{type: {relation: belongs_to() | has_many()}}``."""
        return cls(ModelRegistry.build({k: v or {} for k, v in models.items()}), db)

    # -- Type lookups --

    def get_model(self, name: str) -> ModelDefinition:
        """Get a model definition by type name.

        Raises:
            UnknownTypeError: If the type is not registered.
        """
        return self.registry.get_or_raise(name)

    def has_type(self, name: str) -> bool:
        return name in self.registry

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def associations_for(self, type_name: str) -> Mapping[str, Association]:
        return self.registry.associations_for(type_name)

    def model_type_for(self, name: str) -> str:
        """Resolve a singular, plural, dashed or camel-cased name to a type name."""
        if name in self.registry:
            return name
        normalized = normalize_type_name(name)
        if normalized in self.registry:
            return normalized
        raise UnknownTypeError(name)

    def table_name(self, type_name: str) -> str:
        """Name of the store table backing a type."""
        return pluralize(type_name)

    # -- Record and collection factory --

    def new(self, type_name: str, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        """Build an unsaved record."""
        self.get_model(type_name)
        return Record(self, type_name, {**(attrs or {}), **kwargs})

    def create(self, type_name: str, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        """Build and save a record."""
        return self.new(type_name, attrs, **kwargs).save()

    def all(self, type_name: str) -> Collection:
        """Every record of a type, in store order."""
        rows = self._table(type_name).all()
        return self._collection(type_name, rows)

    def find(self, type_name: str, ids: Any) -> Record | Collection | None:
        """Find a record by id, or a collection by a list of ids.

        A missing id gives None; missing ids in a list are skipped.
        """
        table = self._table(type_name)
        if isinstance(ids, (list, tuple)):
            return self._collection(type_name, table.find_by_ids(ids))
        row = table.find(ids)
        if row is None:
            return None
        return Record.from_row(self, type_name, row)

    def where(self, type_name: str, query: dict[str, Any]) -> Collection:
        """Records whose attributes equal every key of ``query``."""
        return self._collection(type_name, self._table(type_name).where(query))

    def first(self, type_name: str) -> Record | None:
        rows = self._table(type_name).all()
        return Record.from_row(self, type_name, rows[0]) if rows else None

    def _table(self, type_name: str):
        self.get_model(type_name)
        return self.db.get_table(self.table_name(type_name))

    def _collection(self, type_name: str, rows: list[dict[str, Any]]) -> Collection:
        return Collection(type_name, [Record.from_row(self, type_name, row) for row in rows])

    # -- Shorthands --

    def resolve(
        self,
        type_spec: str | list[str] | None,
        request: Request,
        coalesce: bool = False,
    ) -> Record | Collection | tuple[Collection, ...] | None:
        """Resolve a GET request against this schema."""
        from mock_orm.shorthands import resolve

        return resolve(type_spec, self, request, coalesce=coalesce)

    def __getitem__(self, type_name: str) -> ModelManager:
        return ModelManager(self, self.model_type_for(type_name))

    def close(self) -> None:
        """Empty every table."""
        self.db.empty_data()

    def __enter__(self) -> Schema:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class ModelManager:
    """Schema operations bound to one type: ``schema["author"].create(name="Link")``."""

    def __init__(self, schema: Schema, type_name: str) -> None:
        self.schema = schema
        self.type_name = type_name

    def new(self, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        return self.schema.new(self.type_name, attrs, **kwargs)

    def create(self, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        return self.schema.create(self.type_name, attrs, **kwargs)

    def all(self) -> Collection:
        return self.schema.all(self.type_name)

    def find(self, ids: Any) -> Record | Collection | None:
        return self.schema.find(self.type_name, ids)

    def where(self, query: dict[str, Any]) -> Collection:
        return self.schema.where(self.type_name, query)

    def first(self) -> Record | None:
        return self.schema.first(self.type_name)

    def __repr__(self) -> str:
        return f"ModelManager({self.type_name!r})"
