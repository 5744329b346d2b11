"""Immutable data models shared across locusgraph components."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from locusgraph.config import CoordinateSystem, NamingConvention, RecordFieldMap
from locusgraph.errors import SchemaError


_UNSTRANDED = {None, "", ".", "*"}


def normalize_strand(value: Any) -> str | None:
    """Map strand spellings onto ``"+"``, ``"-"`` or ``None`` (unstranded)."""

    if value is None:
        return None
    cleaned = str(value).strip()
    if cleaned in _UNSTRANDED:
        return None
    if cleaned not in {"+", "-"}:
        raise SchemaError(f"Invalid strand: {value!r}")
    return cleaned


def _coordinate(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise SchemaError(f"{name} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise SchemaError(f"{name} must be an integer, got {value!r}") from None


def to_half_open(start: int, end: int, system: CoordinateSystem) -> tuple[int, int]:
    if system is CoordinateSystem.ONE_BASED_CLOSED:
        return start - 1, end
    return start, end


def from_half_open(start: int, end: int, system: CoordinateSystem) -> tuple[int, int]:
    if system is CoordinateSystem.ONE_BASED_CLOSED:
        return start + 1, end
    return start, end


@dataclass(frozen=True)
class GenomicInterval:
    """Single interval record with free-form attributes.

    Coordinates are read under the coordinate system declared by the
    :class:`~locusgraph.intervals.IntervalSet` holding the record.
    """

    seqname: str
    start: int
    end: int
    strand: str | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        seqname = str(self.seqname).strip() if self.seqname is not None else ""
        if not seqname:
            raise SchemaError("Interval sequence name cannot be empty")

        start = _coordinate(self.start, "start")
        end = _coordinate(self.end, "end")
        if start > end:
            raise SchemaError(f"Interval start {start} is after end {end} on {seqname}")

        object.__setattr__(self, "seqname", seqname)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "strand", normalize_strand(self.strand))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def key(self) -> tuple[str, int, int, str | None]:
        """Positional identity of the record, ignoring attributes."""

        return (self.seqname, self.start, self.end, self.strand)

    def half_open(self, system: CoordinateSystem) -> tuple[int, int]:
        return to_half_open(self.start, self.end, system)

    def with_seqname(self, seqname: str) -> GenomicInterval:
        return replace(self, seqname=seqname, attributes=dict(self.attributes))

    def with_attributes(self, **extra: Any) -> GenomicInterval:
        """Return a copy with ``extra`` merged over the existing attributes."""

        merged = dict(self.attributes)
        merged.update(extra)
        return replace(self, attributes=merged)

    def to_row(self, fields: RecordFieldMap | None = None) -> dict[str, Any]:
        """Serialize into a flat dict using ``fields`` for coordinate columns."""

        fields = fields or RecordFieldMap()
        row: dict[str, Any] = {
            fields.seqname: self.seqname,
            fields.start: self.start,
            fields.end: self.end,
            fields.strand: self.strand,
        }
        for name, value in self.attributes.items():
            row.setdefault(name, value)
        return row


@dataclass(frozen=True)
class GenomicRegion:
    """Query region with its genome build and conventions attached."""

    seqname: str
    start: int
    end: int
    genome_build: str
    convention: NamingConvention
    coordinate_system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN
    strand: str | None = None

    def __post_init__(self) -> None:
        interval = GenomicInterval(self.seqname, self.start, self.end, self.strand)
        if not str(self.genome_build).strip():
            raise SchemaError("Region genome build cannot be empty")

        object.__setattr__(self, "seqname", interval.seqname)
        object.__setattr__(self, "start", interval.start)
        object.__setattr__(self, "end", interval.end)
        object.__setattr__(self, "strand", interval.strand)
        object.__setattr__(self, "genome_build", str(self.genome_build).strip())
        object.__setattr__(self, "convention", NamingConvention(self.convention))
        object.__setattr__(self, "coordinate_system", CoordinateSystem(self.coordinate_system))

    def half_open(self) -> tuple[int, int]:
        return to_half_open(self.start, self.end, self.coordinate_system)

    def is_empty(self) -> bool:
        start, end = self.half_open()
        return start >= end

    def __str__(self) -> str:
        return f"{self.seqname}:{self.start}-{self.end} ({self.genome_build})"


@dataclass(frozen=True)
class RemoteHandle:
    """Location of a collection inside the remote store."""

    database: str
    collection: str


@dataclass(frozen=True)
class CollectionDescriptor:
    """One registry cell: a logical name bound to a remote collection."""

    name: str
    assay_type: str
    sample_base: str
    handle: RemoteHandle
    genome_build: str = "hg19"

    def __post_init__(self) -> None:
        for field_name in ("name", "assay_type", "sample_base", "genome_build"):
            value = getattr(self, field_name)
            cleaned = str(value).strip() if value is not None else ""
            if not cleaned:
                raise SchemaError(f"Collection descriptor field '{field_name}' cannot be empty")
            object.__setattr__(self, field_name, cleaned)

        if not isinstance(self.handle, RemoteHandle):
            raise SchemaError(f"Collection '{self.name}' needs a RemoteHandle, got {self.handle!r}")
        if not self.handle.database.strip() or not self.handle.collection.strip():
            raise SchemaError(f"Collection '{self.name}' has an incomplete remote handle")

    def cell(self) -> tuple[str, str]:
        """Registry coordinates ``(assay_type, sample_base)``."""

        return (self.assay_type, self.sample_base)
