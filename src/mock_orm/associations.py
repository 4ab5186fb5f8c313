"""Association descriptors and the model registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

import inflection

from mock_orm.errors import SchemaError, UnknownTypeError


class AssociationKind(Enum):
    """Cardinality of an association."""

    SINGULAR = "belongs_to"
    PLURAL = "has_many"


def pluralize(type_name: str) -> str:
    """Return the table / document key for a type name (``author`` -> ``authors``)."""
    return inflection.pluralize(type_name)


def singularize(name: str) -> str:
    """Return the singular form of a name (``posts`` -> ``post``)."""
    return inflection.singularize(name)


def normalize_type_name(name: str) -> str:
    """Normalize a URL segment or user supplied name to a model type name.

    ``blog-posts``, ``BlogPosts`` and ``blog_posts`` all become ``blog_post``.
    """
    return singularize(inflection.underscore(name.replace("-", "_")))


@dataclass(frozen=True)
class AssociationDeclaration:
    """An association as written in a model declaration, before binding."""

    kind: AssociationKind
    target: str | None = None
    inverse: str | None = None

    def bind(self, owner_type: str, name: str) -> Association:
        """Bind the declaration to its owner type and relation name."""
        if self.kind is AssociationKind.SINGULAR:
            target_type = self.target or name
            foreign_key = f"{name}_id"
        else:
            target_type = self.target or singularize(name)
            foreign_key = f"{self.inverse or owner_type}_id"
        return Association(
            owner_type=owner_type,
            name=name,
            kind=self.kind,
            target_type=target_type,
            foreign_key=foreign_key,
        )


def belongs_to(target: str | None = None) -> AssociationDeclaration:
    """Declare a singular association; the foreign key lives on the owner."""
    return AssociationDeclaration(AssociationKind.SINGULAR, target)


def has_many(target: str | None = None, inverse: str | None = None) -> AssociationDeclaration:
    """Declare a plural association; the foreign key lives on each child.

    Args:
        target: Child type name. Defaults to the singular of the relation name.
        inverse: Name used for the child's foreign key (``{inverse}_id``).
            Defaults to the owner type.
    """
    return AssociationDeclaration(AssociationKind.PLURAL, target, inverse)


@dataclass(frozen=True)
class Association:
    """A bound association: ``owner_type.name`` points at ``target_type``.

    For singular associations ``foreign_key`` is a field of the owner row.
    For plural associations it is a field of each target row that holds
    the owner's id.
    """

    owner_type: str
    name: str
    kind: AssociationKind
    target_type: str
    foreign_key: str

    @property
    def is_singular(self) -> bool:
        return self.kind is AssociationKind.SINGULAR

    @property
    def is_plural(self) -> bool:
        return self.kind is AssociationKind.PLURAL

    @property
    def ids_key(self) -> str:
        """Key exposing the related id(s): ``author_id`` or ``post_ids``."""
        if self.is_singular:
            return self.foreign_key
        return f"{singularize(self.name)}_ids"

    @property
    def member_name(self) -> str:
        """Name used by ``new_*`` / ``create_*`` helpers."""
        if self.is_singular:
            return self.name
        return singularize(self.name)


@dataclass
class ModelDefinition:
    """A model type and its associations, keyed by relation name."""

    name: str
    associations: dict[str, Association] = field(default_factory=dict)

    def get_association(self, name: str) -> Association | None:
        """Get an association by relation name."""
        return self.associations.get(name)

    @property
    def singular_associations(self) -> list[Association]:
        return [a for a in self.associations.values() if a.is_singular]

    @property
    def plural_associations(self) -> list[Association]:
        return [a for a in self.associations.values() if a.is_plural]


class ModelRegistry:
    """Registry of every model type and its association descriptors.

    Built once, then frozen: lookups hand out read-only views and the
    registry rejects further registration.
    """

    def __init__(self) -> None:
        self._models: dict[str, ModelDefinition] = {}
        self._foreign_keys: dict[str, dict[str, str]] = {}
        self._frozen = False

    @classmethod
    def build(
        cls, models: Mapping[str, Mapping[str, AssociationDeclaration]]
    ) -> ModelRegistry:
        """Build and freeze a registry from ``{type: {relation: declaration}}``."""
        registry = cls()
        for type_name, declarations in models.items():
            registry.register(
                ModelDefinition(
                    name=type_name,
                    associations={
                        rel: decl.bind(type_name, rel)
                        for rel, decl in (declarations or {}).items()
                    },
                )
            )
        registry.freeze()
        return registry

    def register(self, model: ModelDefinition) -> None:
        """Register a model definition."""
        if self._frozen:
            raise SchemaError("Model registry is frozen")
        if model.name in self._models:
            raise SchemaError(f"Model '{model.name}' is already defined")
        self._models[model.name] = model

    def freeze(self) -> None:
        """Validate association targets and compute foreign key tables."""
        for model in self._models.values():
            for assoc in model.associations.values():
                if assoc.target_type not in self._models:
                    raise SchemaError(
                        f"Association '{model.name}.{assoc.name}' targets "
                        f"undeclared model '{assoc.target_type}'"
                    )

        foreign_keys: dict[str, dict[str, str]] = {name: {} for name in self._models}
        for model in self._models.values():
            for assoc in model.associations.values():
                if assoc.is_singular:
                    foreign_keys[model.name][assoc.foreign_key] = assoc.target_type
                else:
                    foreign_keys[assoc.target_type].setdefault(assoc.foreign_key, model.name)
        self._foreign_keys = foreign_keys
        self._frozen = True

    def get(self, name: str) -> ModelDefinition | None:
        """Get a model by type name."""
        return self._models.get(name)

    def get_or_raise(self, name: str) -> ModelDefinition:
        """Get a model by type name, raising if not found."""
        model = self._models.get(name)
        if model is None:
            raise UnknownTypeError(name)
        return model

    def associations_for(self, type_name: str) -> Mapping[str, Association]:
        """Read-only view of a type's associations keyed by relation name."""
        return MappingProxyType(self.get_or_raise(type_name).associations)

    def foreign_keys_for(self, type_name: str) -> Mapping[str, str]:
        """Foreign key fields stored on rows of a type, mapped to the referenced type.

        Includes the type's own singular keys and the inverse keys of plural
        associations that target it.
        """
        self.get_or_raise(type_name)
        return MappingProxyType(self._foreign_keys.get(type_name, {}))

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._models.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)
