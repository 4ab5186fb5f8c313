"""Request descriptors handed to shorthand resolvers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlsplit


def parse_query_string(query: str) -> dict[str, Any]:
    """Parse a query string, folding ``key[]`` and repeated keys into lists.

    ``ids[]=1&ids[]=3&foo=bar`` -> ``{"ids": ["1", "3"], "foo": "bar"}``
    """
    result: dict[str, Any] = {}
    for raw_key, values in parse_qs(query, keep_blank_values=True).items():
        if raw_key.endswith("[]"):
            result[raw_key[:-2]] = list(values)
        elif len(values) == 1:
            result[raw_key] = values[0]
        else:
            result[raw_key] = list(values)
    return result


@dataclass
class Request:
    """A GET request as the resolver sees it.

    ``params`` holds path parameters (``{"id": 2}`` for ``/authors/2``);
    ``query_params`` holds the parsed query string.
    """

    url: str
    params: dict[str, Any] = field(default_factory=dict)
    query_params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str, params: dict[str, Any] | None = None) -> Request:
        """Build a request, parsing the query string out of ``url``."""
        return cls(
            url=url,
            params=dict(params or {}),
            query_params=parse_query_string(urlsplit(url).query),
        )

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @property
    def path_segments(self) -> list[str]:
        return [segment for segment in self.path.split("/") if segment]

    @property
    def collection_segment(self) -> str | None:
        """The last path segment naming a collection.

        ``/authors/2`` -> ``authors``. A trailing segment equal to the id
        path parameter, or made of digits, is skipped.
        """
        segments = self.path_segments
        if segments and (segments[-1] == str(self.id) or segments[-1].isdigit()):
            segments = segments[:-1]
        return segments[-1] if segments else None

    @property
    def id(self) -> Any:
        return (self.params or {}).get("id")

    @property
    def ids(self) -> list[Any] | None:
        """Ids requested for coalescing, or None when the request has none."""
        ids = (self.query_params or {}).get("ids")
        if ids is None:
            return None
        if isinstance(ids, (list, tuple)):
            return list(ids)
        return [ids]
