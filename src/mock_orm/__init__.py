"""Mock ORM - an in-memory relational data layer for testing REST clients."""

from mock_orm.associations import (
    Association,
    AssociationKind,
    ModelDefinition,
    ModelRegistry,
    belongs_to,
    has_many,
)
from mock_orm.collection import Collection
from mock_orm.db import Db, DbTable
from mock_orm.errors import (
    AssociationError,
    CustomResolutionRequired,
    MockOrmError,
    SchemaError,
    SerializerError,
    ShorthandError,
    UnknownTypeError,
)
from mock_orm.parsing import ModelParser
from mock_orm.record import Record
from mock_orm.request import Request
from mock_orm.schema import ModelManager, Schema
from mock_orm.serializer import Serializer, SerializerRegistry
from mock_orm.shorthands import resolve

__all__ = [
    # Main API
    "Schema",
    "ModelManager",
    "ModelParser",
    "Record",
    "Collection",
    "Request",
    "resolve",
    "Serializer",
    "SerializerRegistry",
    # Associations
    "Association",
    "AssociationKind",
    "ModelDefinition",
    "ModelRegistry",
    "belongs_to",
    "has_many",
    # Storage
    "Db",
    "DbTable",
    # Errors
    "MockOrmError",
    "SchemaError",
    "UnknownTypeError",
    "AssociationError",
    "ShorthandError",
    "CustomResolutionRequired",
    "SerializerError",
]

__version__ = "0.1.0"
