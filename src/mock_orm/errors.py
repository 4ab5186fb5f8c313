"""Exceptions raised by the mock ORM."""

from __future__ import annotations


class MockOrmError(Exception):
    """Base class for all mock ORM errors."""


class SchemaError(MockOrmError):
    """A model declaration is invalid or refers to an undeclared type."""


class UnknownTypeError(SchemaError, KeyError):
    """A type name does not match any registered model."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown model type: {self.name!r}"


class AssociationError(MockOrmError):
    """An association was assigned a value of the wrong shape or type."""


class ShorthandError(MockOrmError):
    """A shorthand cannot resolve the request it was given."""


class CustomResolutionRequired(ShorthandError):
    """The request needs a dedicated serializer or resolver.

    Raised when a list-of-types shorthand is asked to resolve a request
    that would produce a single record for one of its types.
    """


class SerializerError(MockOrmError):
    """A serializer is configured with relationships its type does not have."""
