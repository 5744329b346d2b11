"""In-process document store, mainly for tests and small annotation sets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from locusgraph.errors import NotFoundError, SchemaError
from locusgraph.stores.base import DocumentStore, RecordFilter


class InMemoryDocumentStore(DocumentStore):
    """Hold collections as tuples of record dicts keyed by ``(database, collection)``."""

    def __init__(self) -> None:
        self._collections: dict[tuple[str, str], tuple[dict[str, Any], ...]] = {}

    def add(self, database: str, collection: str, records: Iterable[Mapping[str, Any]]) -> None:
        """Create or replace a collection."""

        self._collections[(database, collection)] = tuple(dict(record) for record in records)

    def find(
        self,
        database: str,
        collection: str,
        record_filter: RecordFilter,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        key = (database, collection)
        if key not in self._collections:
            raise NotFoundError(f"Unknown collection {database}.{collection}")

        records = self._collections[key]
        if records:
            missing = {
                name
                for name in record_filter.fields()
                if not any(name in record for record in records)
            }
            if missing:
                raise SchemaError(
                    f"Collection {database}.{collection} has no field "
                    f"{', '.join(sorted(missing))}"
                )

        matches: list[dict[str, Any]] = []
        for record in records:
            if limit is not None and len(matches) >= limit:
                break
            if record_filter.matches(record):
                matches.append(dict(record))
        return matches
