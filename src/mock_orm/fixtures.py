"""Load fixture data and serializer settings from JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from mock_orm.db import Db
from mock_orm.serializer import Serializer

logger = logging.getLogger(__name__)


def read_json(path: Path | str) -> Any:
    """Read and decode a JSON file."""
    with open(Path(path), encoding="utf-8") as f:
        return json.load(f)


def load_fixtures(db: Db, source: Path | str | Mapping[str, list[dict[str, Any]]]) -> None:
    """Insert ``{table: [rows]}`` data into the store.

    Args:
        db: Record store to fill.
        source: A JSON file path or an already decoded mapping.
    """
    data = read_json(source) if isinstance(source, (str, Path)) else source
    if not isinstance(data, Mapping):
        raise ValueError("Fixture data must be an object of {table: [rows]}")
    for table, rows in data.items():
        if not isinstance(rows, list):
            raise ValueError(f"Fixture table '{table}' must be a list of rows")
    db.load_data(dict(data))
    logger.info("loaded fixtures for %d tables", len(data))


def load_serializers(source: Path | str | Mapping[str, Mapping[str, Any]]) -> dict[str, Serializer]:
    """Build serializers from ``{type: {"relationships": [...], "embed": bool}}``."""
    data = read_json(source) if isinstance(source, (str, Path)) else source
    serializers: dict[str, Serializer] = {}
    for type_name, options in data.items():
        unknown = set(options) - {"relationships", "embed", "attrs"}
        if unknown:
            raise ValueError(f"Unknown serializer options for '{type_name}': {sorted(unknown)}")
        serializers[type_name] = Serializer(
            relationships=list(options.get("relationships", [])),
            embed=bool(options.get("embed", False)),
            attrs=list(options["attrs"]) if options.get("attrs") is not None else None,
        )
    return serializers
