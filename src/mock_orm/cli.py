"""Resolve and serialize a GET request against fixture data.

Usage:
    mock-orm models.txt data.json /authors                    # whole collection
    mock-orm models.txt data.json /authors/2 --id 2           # one record
    mock-orm models.txt data.json "/authors?ids[]=1&ids[]=3" --coalesce
    mock-orm models.txt data.json /authors/1 --id 1 -s serializers.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from mock_orm.db import Db
from mock_orm.errors import MockOrmError
from mock_orm.fixtures import load_fixtures, load_serializers
from mock_orm.request import Request
from mock_orm.schema import Schema
from mock_orm.serializer import SerializerRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve a GET request against in-memory fixture data and print the response document"
    )
    parser.add_argument("models", help="Model declaration file")
    parser.add_argument("data", help="Fixture JSON file ({table: [rows]})")
    parser.add_argument("url", help="Request URL, e.g. /authors or /authors/2")
    parser.add_argument("--id", help="Path id parameter for a single-record request")
    parser.add_argument(
        "--coalesce",
        action="store_true",
        help="Resolve ids[] query parameters into a filtered collection",
    )
    parser.add_argument("-s", "--serializers", help="Serializer settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(args: argparse.Namespace) -> object:
    """Load everything named by ``args`` and return the response document."""
    db = Db()
    schema = Schema.load(args.models, db)
    load_fixtures(db, args.data)
    serializers = load_serializers(args.serializers) if args.serializers else {}
    registry = SerializerRegistry(schema, serializers)

    params = {"id": args.id} if args.id is not None else {}
    request = Request.from_url(args.url, params)
    logger.debug("resolving %s (coalesce=%s)", request.url, args.coalesce)
    return registry.serialize(schema.resolve(None, request, coalesce=args.coalesce))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    for path in (args.models, args.data, args.serializers):
        if path is not None and not Path(path).exists():
            print(f"Error: {path} not found", file=sys.stderr)
            return 1

    try:
        document = run(args)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except (MockOrmError, SyntaxError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(document, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
