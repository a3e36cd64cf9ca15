# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Query parameters: object-to-query schemas and URL query merging.

An object's query schema maps attribute names to query keys. It is declared
either with dataclass field metadata::

    @dataclass
    class Search:
        term: str = query_field("q")
        page: int = query_field("page", default=1)

or with the :func:`query_params` decorator on any class::

    @query_params({"term": "q", "page": "page"})
    class Search: ...

Schemas are derived once per type and cached for the life of the process.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Callable, Mapping
from typing import Any, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from chainreq.kernel.exceptions import QueryMappingException, RequestBuildException

T = TypeVar("T")

QUERY_METADATA_KEY = "query"

_QUERY_PARAMS_ATTR = "__chainreq_query_params__"


def query_field(key: str, **kwargs: Any) -> Any:
    """A dataclass field whose value is sent as query parameter *key*."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[QUERY_METADATA_KEY] = key
    return dataclasses.field(metadata=metadata, **kwargs)


def query_params(mapping: Mapping[str, str]) -> Callable[[type[T]], type[T]]:
    """Declare the attribute-to-query-key schema of a class."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _QUERY_PARAMS_ATTR, dict(mapping))
        return cls

    return decorator


@dataclasses.dataclass(frozen=True)
class QueryBinding:
    """One attribute of a type bound to a query key."""

    attribute: str
    key: str


class QuerySchemaCache:
    """Process-wide, append-only cache of query schemas keyed by type."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._schemas: dict[type, tuple[QueryBinding, ...]] = {}

    def get(self, cls: type) -> tuple[QueryBinding, ...]:
        schema = self._schemas.get(cls)
        if schema is not None:
            return schema

        schema = _derive_schema(cls)
        with self._lock:
            return self._schemas.setdefault(cls, schema)

    def __contains__(self, cls: type) -> bool:
        return cls in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


schema_cache = QuerySchemaCache()


def _derive_schema(cls: type) -> tuple[QueryBinding, ...]:
    explicit = getattr(cls, _QUERY_PARAMS_ATTR, None)
    if explicit is not None:
        return tuple(QueryBinding(attr, key) for attr, key in explicit.items())

    if not dataclasses.is_dataclass(cls):
        raise QueryMappingException(
            f"need a dataclass or a @query_params class, but got {cls.__name__}"
        )

    return tuple(
        QueryBinding(f.name, f.metadata[QUERY_METADATA_KEY])
        for f in dataclasses.fields(cls)
        if f.metadata.get(QUERY_METADATA_KEY)
    )


def query_schema(cls: type) -> tuple[QueryBinding, ...]:
    """The cached query schema of *cls*."""
    return schema_cache.get(cls)


def to_query_values(value: Any) -> list[str]:
    """Convert a scalar, or a list of scalars, to query parameter values."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, bool):
        return ["true" if value else "false"]
    if isinstance(value, int):
        return [str(value)]
    if isinstance(value, (list, tuple)):
        values: list[str] = []
        for item in value:
            values.extend(to_query_values(item))
        return values
    raise QueryMappingException(f"invalid query value of type {type(value).__name__}: {value!r}")


def query_values(obj: Any) -> dict[str, list[str]]:
    """Convert *obj* to a query multi-map using its type's schema."""
    if isinstance(obj, type):
        raise QueryMappingException(f"need an instance, but got the type {obj.__name__}")

    values: dict[str, list[str]] = {}
    for binding in query_schema(type(obj)):
        values.setdefault(binding.key, []).extend(to_query_values(getattr(obj, binding.attribute)))
    return values


def merge_query(url: str, query: Mapping[str, list[str]]) -> str:
    """Merge *query* into the query string already present in *url*.

    Keys already in the URL come first, then new keys in insertion order.
    Within a key, the URL's values precede the configured ones.
    """
    if not any(query.values()):
        return url

    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise RequestBuildException(f"invalid url {url!r}: {exc}") from exc

    merged: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        merged.setdefault(key, []).append(value)
    for key, values in query.items():
        merged.setdefault(key, []).extend(values)

    encoded = urlencode([(k, v) for k, vs in merged.items() for v in vs])
    return urlunsplit(parts._replace(query=encoded))
