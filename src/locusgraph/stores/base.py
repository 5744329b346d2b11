"""Base contract for remote record stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RecordFilter:
    """Conjunctive filter: field equality plus inclusive numeric ranges.

    A range bound of ``None`` leaves that side open.
    """

    equals: Mapping[str, Any] = field(default_factory=dict)
    ranges: Mapping[str, tuple[float | None, float | None]] = field(default_factory=dict)

    def fields(self) -> set[str]:
        return set(self.equals) | set(self.ranges)

    def matches(self, record: Mapping[str, Any]) -> bool:
        for name, expected in self.equals.items():
            if name not in record or record[name] != expected:
                return False

        for name, (low, high) in self.ranges.items():
            value = record.get(name)
            if value is None:
                return False
            if low is not None and value < low:
                return False
            if high is not None and value > high:
                return False

        return True


class DocumentStore(ABC):
    """Read-only "find matching records" access to a remote store.

    Implementations return matches in a stable order, so a call with a larger
    ``limit`` extends the answer of a smaller one. They raise
    :class:`~locusgraph.errors.RemoteUnavailableError` for connectivity or I/O
    failures, :class:`~locusgraph.errors.NotFoundError` for unknown
    collections and :class:`~locusgraph.errors.SchemaError` when the filter
    names a field the collection does not have.
    """

    @abstractmethod
    def find(
        self,
        database: str,
        collection: str,
        record_filter: RecordFilter,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return records matching ``record_filter``, at most ``limit`` of them."""
