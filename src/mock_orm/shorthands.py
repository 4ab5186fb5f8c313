"""GET shorthands: map a request descriptor onto the schema.

A shorthand target is one of three shapes:

* ``Untyped()`` - the type is inferred from the request URL.
* ``Named("author")`` - one type, singular or plural name.
* ``Listed(["authors", "photos"])`` - several types, one collection each.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from mock_orm.collection import Collection
from mock_orm.errors import CustomResolutionRequired, ShorthandError
from mock_orm.record import Record
from mock_orm.request import Request

if TYPE_CHECKING:
    from mock_orm.schema import Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Untyped:
    """Infer the type from the request URL."""


@dataclass(frozen=True)
class Named:
    name: str


@dataclass(frozen=True)
class Listed:
    names: tuple[str, ...]


RequestTarget = Union[Untyped, Named, Listed]


def target_for(type_spec: str | list[str] | tuple[str, ...] | None) -> RequestTarget:
    """Build the request target for a shorthand argument."""
    if type_spec is None:
        return Untyped()
    if isinstance(type_spec, str):
        return Named(type_spec)
    if isinstance(type_spec, (list, tuple)):
        return Listed(tuple(type_spec))
    raise ShorthandError(f"Unsupported shorthand: {type_spec!r}")


def resolve_untyped(schema: Schema, request: Request, coalesce: bool = False) -> Record | Collection | None:
    """Resolve a request whose type comes from its URL (``/authors/2``)."""
    segment = request.collection_segment
    if segment is None:
        raise ShorthandError(f"Cannot infer a model type from {request.url!r}")
    return resolve_named(segment, schema, request, coalesce=coalesce)


def resolve_named(
    name: str, schema: Schema, request: Request, coalesce: bool = False
) -> Record | Collection | None:
    """Resolve a request against one type.

    * An ``id`` path parameter gives that record, or None.
    * ``coalesce`` with ``ids`` query parameters gives the matching records
      in store order; unknown ids are dropped.
    * Anything else gives the whole collection; other query parameters are
      ignored.
    """
    type_name = schema.model_type_for(name)
    record_id = request.id

    if record_id is not None:
        logger.debug("resolve %s id=%r", type_name, record_id)
        return schema.find(type_name, record_id)

    ids = request.ids
    if coalesce and ids is not None:
        logger.debug("resolve %s coalesced ids=%r", type_name, ids)
        return schema.find(type_name, ids)

    logger.debug("resolve %s collection", type_name)
    return schema.all(type_name)


def resolve_listed(
    names: list[str] | tuple[str, ...], schema: Schema, request: Request
) -> tuple[Collection, ...]:
    """Resolve a request into one full collection per type.

    Raises:
        CustomResolutionRequired: If the request addresses a single record.
    """
    if request.id is not None:
        raise CustomResolutionRequired(
            f"Shorthand {list(names)!r} cannot resolve the singular resource "
            f"{request.url!r}. To return related data for a single record, "
            "create a serializer or write a custom resolution for this route."
        )
    return tuple(schema.all(schema.model_type_for(name)) for name in names)


def resolve(
    type_spec: str | list[str] | tuple[str, ...] | None,
    schema: Schema,
    request: Request,
    coalesce: bool = False,
) -> Record | Collection | tuple[Collection, ...] | None:
    """Resolve ``request`` for a shorthand target of any shape."""
    target = target_for(type_spec)
    if isinstance(target, Untyped):
        return resolve_untyped(schema, request, coalesce=coalesce)
    if isinstance(target, Named):
        return resolve_named(target.name, schema, request, coalesce=coalesce)
    return resolve_listed(target.names, schema, request)
