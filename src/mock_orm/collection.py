"""Ordered, homogeneous collections of records."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, overload

from mock_orm.record import Record


class Collection:
    """An ordered sequence of records that all share one type.

    Order is insertion or query order; nothing here sorts implicitly.
    """

    def __init__(self, type_name: str, records: Iterable[Record] | None = None) -> None:
        self.type = type_name
        self._records: list[Record] = []
        for record in records or []:
            self.add(record)

    def add(self, record: Record) -> None:
        """Append a record of this collection's type."""
        if not isinstance(record, Record) or record.type != self.type:
            raise ValueError(
                f"Collection of {self.type!r} cannot hold {record!r}"
            )
        self._records.append(record)

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    @property
    def ids(self) -> list[Any]:
        """Ids of the saved members, in order."""
        return [r.id for r in self._records if r.is_saved()]

    def map(self, fn: Callable[[Record], Any]) -> list[Any]:
        return [fn(r) for r in self._records]

    def filter(self, fn: Callable[[Record], bool]) -> Collection:
        """Return a new collection with the members for which ``fn`` is true."""
        return Collection(self.type, [r for r in self._records if fn(r)])

    def sort(self, key: Callable[[Record], Any] | None = None, reverse: bool = False) -> Collection:
        """Return a new sorted collection (by id when no key is given)."""
        return Collection(
            self.type, sorted(self._records, key=key or (lambda r: r.id), reverse=reverse)
        )

    def merge(self, other: Collection) -> Collection:
        """Append another collection's members in place."""
        if other.type != self.type:
            raise ValueError(f"Cannot merge {other.type!r} records into {self.type!r}")
        self._records.extend(other._records)
        return self

    # -- Bulk operations --

    def update(self, key: str | dict[str, Any] | None = None, value: Any = None, **attrs: Any) -> Collection:
        for record in self._records:
            record.update(key, value, **attrs)
        return self

    def save(self) -> Collection:
        for record in self._records:
            record.save()
        return self

    def destroy(self) -> Collection:
        for record in self._records:
            record.destroy()
        return self

    def reload(self) -> Collection:
        for record in self._records:
            record.reload()
        return self

    # -- Sequence protocol --

    def __len__(self) -> int:
        return len(self._records)

    @property
    def length(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> Record: ...

    @overload
    def __getitem__(self, index: slice) -> Collection: ...

    def __getitem__(self, index: int | slice) -> Record | Collection:
        if isinstance(index, slice):
            return Collection(self.type, self._records[index])
        return self._records[index]

    def __contains__(self, record: object) -> bool:
        return any(r == record for r in self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return self.type == other.type and self._records == other._records

    def __repr__(self) -> str:
        return f"Collection({self.type!r}, ids={self.ids!r})"
