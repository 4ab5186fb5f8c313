"""Flat, relationship-unaware record store."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

logger = logging.getLogger(__name__)

Row = dict[str, Any]


def _coerce_id(value: Any) -> Any:
    """Normalize ids coming from URLs ("2") to the integers the store assigns."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


class DbTable:
    """Keyed rows of plain attribute dicts for a single table.

    Rows are copied on the way in and on the way out, so callers never
    share mutable state with the store.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._rows: dict[Any, Row] = {}
        self._next_id = 1

    @property
    def count(self) -> int:
        """Return the number of rows in the table."""
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.all())

    def insert(self, data: Row | list[Row]) -> Row | list[Row]:
        """Insert one row or a list of rows and return the stored copies.

        Rows without an ``id`` get the next integer id. Rows with an
        explicit integer id keep it and advance the counter past it.
        """
        if isinstance(data, list):
            return [self._insert_one(row) for row in data]
        return self._insert_one(data)

    def _insert_one(self, row: Row) -> Row:
        row = dict(row)
        row_id = _coerce_id(row.pop("id", None))
        if row_id is None:
            row_id = self._next_id
        if isinstance(row_id, int) and row_id >= self._next_id:
            self._next_id = row_id + 1

        stored = {"id": row_id, **row}
        self._rows[row_id] = stored
        logger.debug("insert %s id=%r", self.name, row_id)
        return dict(stored)

    def find(self, ids: Any) -> Row | list[Row] | None:
        """Find a row by id, or rows by a list of ids.

        A single missing id returns None; missing ids in a list are skipped.
        """
        if isinstance(ids, (list, tuple)):
            return self.find_by_ids(ids)
        row = self._rows.get(_coerce_id(ids))
        return dict(row) if row is not None else None

    def find_by_ids(self, ids: Iterable[Any]) -> list[Row]:
        """Return the rows whose ids are in ``ids``, in store order."""
        wanted = {_coerce_id(i) for i in ids}
        return [dict(row) for key, row in self._rows.items() if key in wanted]

    def where(self, query: Row) -> list[Row]:
        """Return rows whose values equal every key of ``query``."""
        return [dict(row) for row in self._rows.values() if self._matches(row, query)]

    def all(self) -> list[Row]:
        """Return copies of every row in insertion order."""
        return [dict(row) for row in self._rows.values()]

    def first_or_create(self, query: Row, attrs: Row | None = None) -> Row:
        """Return the first row matching ``query``, inserting one if none match."""
        matches = self.where(query)
        if matches:
            return matches[0]
        return self._insert_one({**query, **(attrs or {})})

    def update(self, target: Any, patch: Row | None = None) -> Row | list[Row] | None:
        """Update rows.

        ``update(id, patch)`` patches one row and returns it (None if missing).
        ``update(patch)`` patches every row. ``update(query, patch)`` patches
        the rows matching ``query``. The bulk forms return the updated rows.
        """
        if patch is None:
            return [self._patch(key, target) for key in list(self._rows)]
        if isinstance(target, dict):
            keys = [key for key, row in self._rows.items() if self._matches(row, target)]
            return [self._patch(key, patch) for key in keys]
        key = _coerce_id(target)
        if key not in self._rows:
            return None
        return self._patch(key, patch)

    def _patch(self, key: Any, patch: Row) -> Row:
        row = self._rows[key]
        row.update({k: v for k, v in patch.items() if k != "id"})
        logger.debug("update %s id=%r keys=%s", self.name, key, sorted(patch))
        return dict(row)

    def remove(self, target: Any = None) -> None:
        """Remove a row by id, the rows matching a query dict, or every row."""
        if target is None:
            self._rows.clear()
        elif isinstance(target, dict):
            for key in [k for k, row in self._rows.items() if self._matches(row, target)]:
                del self._rows[key]
        else:
            self._rows.pop(_coerce_id(target), None)
        logger.debug("remove %s target=%r", self.name, target)

    def empty(self) -> None:
        """Remove every row and restart id assignment."""
        self._rows.clear()
        self._next_id = 1

    @staticmethod
    def _matches(row: Row, query: Row) -> bool:
        for key, value in query.items():
            if key == "id":
                value = _coerce_id(value)
            if row.get(key) != value:
                return False
        return True

    def __repr__(self) -> str:
        return f"DbTable({self.name!r}, rows={len(self._rows)})"


class Db:
    """Manages all tables of the in-memory store."""

    def __init__(self, initial_data: dict[str, list[Row]] | None = None) -> None:
        self._tables: dict[str, DbTable] = {}
        if initial_data:
            self.load_data(initial_data)

    def get_table(self, name: str) -> DbTable:
        """Get or create the table with the given name."""
        if name not in self._tables:
            self._tables[name] = DbTable(name)
        return self._tables[name]

    def create_table(self, name: str) -> DbTable:
        """Create (or reset) a table."""
        self._tables[name] = DbTable(name)
        return self._tables[name]

    def table_names(self) -> list[str]:
        """List the names of all tables created so far."""
        return list(self._tables)

    def load_data(self, data: dict[str, list[Row]]) -> None:
        """Insert rows for each table in ``data``."""
        for name, rows in data.items():
            self.get_table(name).insert(list(rows))
        logger.debug("loaded data for tables %s", list(data))

    def empty_data(self) -> None:
        """Remove all rows from every table."""
        for table in self._tables.values():
            table.empty()

    def dump(self) -> dict[str, list[Row]]:
        """Return a plain snapshot of every table."""
        return {name: table.all() for name, table in self._tables.items()}

    def __getitem__(self, name: str) -> DbTable:
        return self.get_table(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __repr__(self) -> str:
        return f"Db(tables={self.table_names()!r})"
