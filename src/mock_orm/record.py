"""Records: typed views of one row with association accessors.

A saved record reads its attributes through the record store on every
access, so two records for the same row never disagree. Foreign keys are
tracked per field in a slot that is either unset, an id, or a pending
reference to an unsaved record. A pending slot becomes an id exactly once,
when the referenced record is first saved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Union

from mock_orm.associations import Association
from mock_orm.errors import AssociationError

if TYPE_CHECKING:
    from mock_orm.collection import Collection
    from mock_orm.db import DbTable
    from mock_orm.schema import Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unset:
    """The foreign key holds nothing."""


@dataclass(frozen=True)
class IdRef:
    """The foreign key holds the id of a saved record."""

    value: Any


@dataclass(frozen=True, eq=False)
class PendingRef:
    """The foreign key points at an unsaved record held in memory."""

    record: Record


ForeignKeySlot = Union[Unset, IdRef, PendingRef]

UNSET = Unset()


class Record:
    """A typed wrapper around one row of the record store."""

    def __init__(
        self,
        schema: Schema,
        type_name: str,
        attrs: dict[str, Any] | None = None,
        *,
        _row: dict[str, Any] | None = None,
    ) -> None:
        self._schema = schema
        self._type = type_name
        self._attrs: dict[str, Any] = {}
        self._slots: dict[str, ForeignKeySlot] = {}
        self._persisted = False
        # Records whose foreign key has pointed at this record object.
        self._referrers: list[tuple[Record, str]] = []

        if _row is not None:
            self._persisted = True
            self._load_row(_row)
            return

        for fk in self._foreign_keys:
            self._slots[fk] = UNSET
        for key, value in (attrs or {}).items():
            setattr(self, key, value)
        for fk in self._slots:
            self._attrs.setdefault(fk, self._foreign_key_value(fk))

    @classmethod
    def from_row(cls, schema: Schema, type_name: str, row: dict[str, Any]) -> Record:
        """Wrap a row already stored in the record store."""
        return cls(schema, type_name, _row=row)

    # -- Identity --

    @property
    def type(self) -> str:
        """The model type name."""
        return self._type

    @property
    def id(self) -> Any:
        """The store-assigned id, or None while unsaved."""
        return self._attrs.get("id")

    def is_new(self) -> bool:
        """True until the record has been saved."""
        return not self._persisted

    def is_saved(self) -> bool:
        """True once saved, for as long as the backing row exists."""
        return self._persisted and self._table.find(self.id) is not None

    @property
    def attrs(self) -> dict[str, Any]:
        """Plain attribute dict, including foreign keys."""
        return self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        """Return the record's attributes as the store would hold them."""
        self._refresh()
        data = dict(self._attrs)
        for fk in self._slots:
            data[fk] = self._foreign_key_value(fk)
        return data

    # -- Lifecycle --

    def save(self) -> Record:
        """Insert or update the backing row.

        On first save every record holding a pending reference to this one
        has that reference resolved to the new id.
        """
        table = self._table
        if self.is_new():
            data = self._row_data()
            if self._attrs.get("id") is not None:
                data = {"id": self._attrs["id"], **data}
            stored = table.insert(data)
            self._attrs.pop("id", None)
            self._attrs = {"id": stored["id"], **self._attrs}
            self._persisted = True
            logger.debug("saved new %s id=%r", self._type, self.id)
            self._resolve_referrers()
        else:
            self._refresh()
            table.update(self.id, self._row_data())
        return self

    def update(self, key: str | dict[str, Any] | None = None, value: Any = None, **attrs: Any) -> Record:
        """Set attributes then save: ``update("name", "x")`` or ``update(name="x")``."""
        if isinstance(key, dict):
            attrs = {**key, **attrs}
        elif key is not None:
            attrs = {key: value, **attrs}
        for name, val in attrs.items():
            setattr(self, name, val)
        return self.save()

    def destroy(self) -> None:
        """Remove the backing row. Related rows are left untouched."""
        if self.is_saved():
            self._table.remove(self.id)
            logger.debug("destroyed %s id=%r", self._type, self.id)

    def reload(self) -> Record:
        """Re-read attributes from the store."""
        self._refresh()
        return self

    def is_destroyed(self) -> bool:
        """True once a saved record's backing row has been removed."""
        return self._persisted and self._table.find(self.id) is None

    # -- Attribute and association access --

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        model = self._schema.registry.get_or_raise(self._type)
        assoc = model.get_association(name)
        if assoc is not None:
            if assoc.is_singular:
                return self._read_singular(assoc)
            return self._read_plural(assoc)

        self._refresh()
        if name in self._slots:
            return self._foreign_key_value(name)

        for assoc in model.plural_associations:
            if name == assoc.ids_key:
                return self._read_plural(assoc).ids

        for prefix, builder in (("new_", self._build_related), ("create_", self._create_related)):
            if name.startswith(prefix):
                assoc = self._association_for_member(name[len(prefix):])
                if assoc is not None:
                    return lambda *args, **kwargs: builder(assoc, *args, **kwargs)

        if name in self._attrs:
            return self._attrs[name]
        raise AttributeError(f"'{self._type}' record has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return

        model = self._schema.registry.get_or_raise(self._type)
        assoc = model.get_association(name)
        if assoc is not None:
            if assoc.is_singular:
                self._write_singular(assoc, value)
            else:
                self._write_plural(assoc, value)
            return

        if name in self._slots:
            self._set_slot(name, UNSET if value is None else IdRef(value))
            return

        for assoc in model.plural_associations:
            if name == assoc.ids_key:
                targets = self._schema.find(assoc.target_type, list(value or []))
                self._write_plural(assoc, targets)
                return

        self._attrs[name] = value
        if self.is_saved() and name != "id":
            self._table.update(self.id, {name: value})

    # -- Singular associations --

    def _read_singular(self, assoc: Association) -> Record | None:
        self._refresh()
        slot = self._slots.get(assoc.foreign_key, UNSET)
        if isinstance(slot, PendingRef):
            return slot.record
        if isinstance(slot, IdRef):
            return self._schema.find(assoc.target_type, slot.value)
        return None

    def _write_singular(self, assoc: Association, value: Record | None) -> None:
        if value is None:
            self._set_slot(assoc.foreign_key, UNSET)
            return
        self._check_target(assoc, value)
        self._point_at(assoc.foreign_key, value)

    # -- Plural associations --

    def _read_plural(self, assoc: Association) -> Collection:
        from mock_orm.collection import Collection

        records: list[Record] = []
        if self.is_saved():
            rows = self._schema.db.get_table(self._schema.table_name(assoc.target_type)).where(
                {assoc.foreign_key: self.id}
            )
            records = [Record.from_row(self._schema, assoc.target_type, row) for row in rows]
        records.extend(self._in_memory_children(assoc))
        return Collection(assoc.target_type, records)

    def _in_memory_children(self, assoc: Association) -> list[Record]:
        # A saved owner gets its saved children from the store; a new owner
        # has no row, so every child pointing at it is only known in memory.
        owner_saved = self.is_saved()
        children: list[Record] = []
        live: list[tuple[Record, str]] = []
        for child, fk in self._referrers:
            if not child._points_to(fk, self):
                continue
            live.append((child, fk))
            if (
                fk == assoc.foreign_key
                and child._type == assoc.target_type
                and (child.is_new() or not owner_saved)
                and not any(c is child for c in children)
            ):
                children.append(child)
        self._referrers = live
        return children

    def _write_plural(self, assoc: Association, value: Iterable[Record] | None) -> None:
        new_children = list(value or [])
        for child in new_children:
            self._check_target(assoc, child)

        for previous in self._read_plural(assoc):
            if not any(previous == child for child in new_children):
                previous._set_slot(assoc.foreign_key, UNSET)

        for child in new_children:
            child._point_at(assoc.foreign_key, self)
            if self.is_saved() and child.is_new():
                child.save()

    # -- new_* / create_* helpers --

    def _association_for_member(self, member: str) -> Association | None:
        model = self._schema.registry.get_or_raise(self._type)
        for assoc in model.associations.values():
            if assoc.member_name == member:
                return assoc
        return None

    def _build_related(self, assoc: Association, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        related = self._schema.new(assoc.target_type, **{**(attrs or {}), **kwargs})
        if assoc.is_singular:
            self._write_singular(assoc, related)
        else:
            related._point_at(assoc.foreign_key, self)
        return related

    def _create_related(self, assoc: Association, attrs: dict[str, Any] | None = None, **kwargs: Any) -> Record:
        if assoc.is_singular:
            related = self._schema.create(assoc.target_type, **{**(attrs or {}), **kwargs})
            self._write_singular(assoc, related)
            return related
        if self.is_new():
            self.save()
        related = self._build_related(assoc, attrs, **kwargs)
        return related.save()

    # -- Foreign key slots --

    @property
    def _foreign_keys(self) -> dict[str, str]:
        return dict(self._schema.registry.foreign_keys_for(self._type))

    def _point_at(self, fk: str, target: Record) -> None:
        if target.is_saved():
            self._set_slot(fk, IdRef(target.id))
        else:
            self._set_slot(fk, PendingRef(target))
        if not any(child is self and key == fk for child, key in target._referrers):
            target._referrers.append((self, fk))

    def _points_to(self, fk: str, target: Record) -> bool:
        slot = self._slots.get(fk, UNSET)
        if isinstance(slot, PendingRef):
            return slot.record is target
        if isinstance(slot, IdRef):
            return target.is_saved() and slot.value == target.id
        return False

    def _set_slot(self, fk: str, slot: ForeignKeySlot) -> None:
        self._slots[fk] = slot
        stored = self._foreign_key_value(fk)
        self._attrs[fk] = stored
        logger.debug("%s.%s -> %r", self._type, fk, slot)
        if self.is_saved():
            self._table.update(self.id, {fk: stored})

    def _foreign_key_value(self, fk: str) -> Any:
        slot = self._slots.get(fk, UNSET)
        if isinstance(slot, IdRef):
            return slot.value
        if isinstance(slot, PendingRef) and slot.record.is_saved():
            return slot.record.id
        return None

    def _resolve_referrers(self) -> None:
        for child, fk in self._referrers:
            slot = child._slots.get(fk)
            if isinstance(slot, PendingRef) and slot.record is self:
                child._set_slot(fk, IdRef(self.id))

    # -- Store access --

    @property
    def _table(self) -> DbTable:
        return self._schema.db.get_table(self._schema.table_name(self._type))

    def _row_data(self) -> dict[str, Any]:
        data = {k: v for k, v in self._attrs.items() if k != "id"}
        for fk in self._slots:
            data[fk] = self._foreign_key_value(fk)
        return data

    def _load_row(self, row: dict[str, Any]) -> None:
        foreign_keys = self._foreign_keys
        for fk in foreign_keys:
            # A pending reference outlives the store value until its target saves.
            if not isinstance(self._slots.get(fk), PendingRef):
                value = row.get(fk)
                self._slots[fk] = UNSET if value is None else IdRef(value)
        self._attrs = {
            key: self._foreign_key_value(key) if key in foreign_keys else value
            for key, value in row.items()
        }

    def _refresh(self) -> None:
        if self.is_new():
            return
        row = self._table.find(self.id)
        if row is not None:
            self._load_row(row)

    @staticmethod
    def _check_target(assoc: Association, value: Any) -> None:
        if not isinstance(value, Record):
            raise AssociationError(
                f"'{assoc.owner_type}.{assoc.name}' expects {assoc.target_type} records, "
                f"got {type(value).__name__}"
            )
        if value.type != assoc.target_type:
            raise AssociationError(
                f"'{assoc.owner_type}.{assoc.name}' expects {assoc.target_type} records, "
                f"got a {value.type} record"
            )

    # -- Dunder --

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        if self is other:
            return True
        return (
            self._type == other._type
            and self.is_saved()
            and other.is_saved()
            and self.id == other.id
        )

    def __hash__(self) -> int:
        return hash(self._type)

    def __repr__(self) -> str:
        if self.is_new():
            return f"Record({self._type!r}, new)"
        return f"Record({self._type!r}, {self.id!r})"
