"""Immutable, convention-aware collections of genomic intervals."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, overload

import pandas as pd

from locusgraph.config import CoordinateSystem, NamingConvention, RecordFieldMap
from locusgraph.errors import SchemaError
from locusgraph.models import GenomicInterval, GenomicRegion, from_half_open
from locusgraph.naming import SequenceNaming, naming_for_build


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


class IntervalSet:
    """Ordered interval records sharing one build, convention and coordinate system.

    Construction validates every record and fails with
    :class:`~locusgraph.errors.SchemaError` on the first offending one; a set is
    never built from a partially valid input. Derived sets (convention or
    coordinate conversions, overlap results) are always new objects.
    """

    def __init__(
        self,
        records: Iterable[GenomicInterval] = (),
        *,
        genome_build: str,
        convention: NamingConvention,
        coordinate_system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN,
        naming: SequenceNaming | None = None,
    ) -> None:
        build = str(genome_build).strip()
        naming = naming or naming_for_build(build)
        if naming.genome_build.lower() != build.lower():
            raise SchemaError(
                f"Naming table is for {naming.genome_build}, interval set declares {build}"
            )

        self._genome_build = build
        self._convention = NamingConvention(convention)
        self._coordinate_system = CoordinateSystem(coordinate_system)
        self._naming = naming
        self._records: tuple[GenomicInterval, ...] = tuple(records)

        for position, record in enumerate(self._records):
            self._validate(position, record)

    def _validate(self, position: int, record: GenomicInterval) -> None:
        if not isinstance(record, GenomicInterval):
            raise SchemaError(f"Record {position} is not a GenomicInterval: {record!r}")
        if not self._naming.contains(record.seqname, self._convention):
            raise SchemaError(
                f"Record {position}: sequence '{record.seqname}' is not a "
                f"{self._convention.value} name in {self._genome_build}"
            )
        minimum = 1 if self._coordinate_system is CoordinateSystem.ONE_BASED_CLOSED else 0
        if record.start < minimum:
            raise SchemaError(
                f"Record {position}: start {record.start} is below {minimum} "
                f"for {self._coordinate_system.value} coordinates"
            )

    @property
    def genome_build(self) -> str:
        return self._genome_build

    @property
    def coordinate_system(self) -> CoordinateSystem:
        return self._coordinate_system

    @property
    def naming(self) -> SequenceNaming:
        return self._naming

    @property
    def records(self) -> tuple[GenomicInterval, ...]:
        return self._records

    def convention(self) -> NamingConvention:
        """Naming convention shared by every record's sequence name."""

        return self._convention

    def is_compatible(self, other: IntervalSet) -> bool:
        """True when both sets share genome build and naming convention."""

        return (
            self._genome_build.lower() == other.genome_build.lower()
            and self._convention is other.convention()
        )

    def derive(self, records: Iterable[GenomicInterval]) -> IntervalSet:
        """New set with the same declarations over ``records``."""

        return IntervalSet(
            records,
            genome_build=self._genome_build,
            convention=self._convention,
            coordinate_system=self._coordinate_system,
            naming=self._naming,
        )

    def with_convention(self, target: NamingConvention) -> IntervalSet:
        """Return a copy with sequence names rewritten into ``target``.

        Raises :class:`~locusgraph.errors.UnmappableSequenceError` when a name has
        no counterpart in the target convention.
        """

        target = NamingConvention(target)
        records = [
            record.with_seqname(self._naming.translate(record.seqname, self._convention, target))
            for record in self._records
        ]
        return IntervalSet(
            records,
            genome_build=self._genome_build,
            convention=target,
            coordinate_system=self._coordinate_system,
            naming=self._naming,
        )

    def with_coordinate_system(self, target: CoordinateSystem) -> IntervalSet:
        """Return a copy with coordinates rewritten into ``target``."""

        target = CoordinateSystem(target)
        records = []
        for record in self._records:
            start, end = from_half_open(*record.half_open(self._coordinate_system), target)
            if start > end:
                raise SchemaError(
                    f"Empty interval {record.seqname}:{record.start}-{record.end} "
                    f"cannot be expressed in {target.value} coordinates"
                )
            records.append(
                GenomicInterval(record.seqname, start, end, record.strand, dict(record.attributes))
            )
        return IntervalSet(
            records,
            genome_build=self._genome_build,
            convention=self._convention,
            coordinate_system=target,
            naming=self._naming,
        )

    def regions(self) -> Iterator[GenomicRegion]:
        """Yield each record as a query region carrying this set's declarations."""

        for record in self._records:
            yield GenomicRegion(
                seqname=record.seqname,
                start=record.start,
                end=record.end,
                genome_build=self._genome_build,
                convention=self._convention,
                coordinate_system=self._coordinate_system,
                strand=record.strand,
            )

    @classmethod
    def from_records(
        cls,
        rows: Iterable[Mapping[str, Any]],
        *,
        genome_build: str,
        convention: NamingConvention,
        coordinate_system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN,
        fields: RecordFieldMap | None = None,
        naming: SequenceNaming | None = None,
    ) -> IntervalSet:
        """Build a set from flat mappings, moving non-coordinate fields to attributes."""

        fields = fields or RecordFieldMap()
        skipped = set(fields.coordinate_fields()) | set(fields.ignored)
        records = []
        for position, row in enumerate(rows):
            for required in (fields.seqname, fields.start, fields.end):
                if _is_missing(row.get(required)):
                    raise SchemaError(f"Record {position} lacks required field '{required}'")

            strand = row.get(fields.strand)
            records.append(
                GenomicInterval(
                    seqname=str(row[fields.seqname]),
                    start=row[fields.start],
                    end=row[fields.end],
                    strand=None if _is_missing(strand) else strand,
                    attributes={
                        name: value
                        for name, value in row.items()
                        if name not in skipped and not _is_missing(value)
                    },
                )
            )

        return cls(
            records,
            genome_build=genome_build,
            convention=convention,
            coordinate_system=coordinate_system,
            naming=naming,
        )

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        genome_build: str,
        convention: NamingConvention,
        coordinate_system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN,
        fields: RecordFieldMap | None = None,
        naming: SequenceNaming | None = None,
    ) -> IntervalSet:
        """Build a set from a DataFrame, one record per row in row order."""

        return cls.from_records(
            frame.to_dict(orient="records"),
            genome_build=genome_build,
            convention=convention,
            coordinate_system=coordinate_system,
            fields=fields,
            naming=naming,
        )

    def to_frame(self, fields: RecordFieldMap | None = None) -> pd.DataFrame:
        """Serialize the records into a DataFrame, coordinates first."""

        fields = fields or RecordFieldMap()
        rows = [record.to_row(fields) for record in self._records]
        if not rows:
            return pd.DataFrame(columns=list(fields.coordinate_fields()))
        return pd.DataFrame(rows)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[GenomicInterval]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> GenomicInterval: ...

    @overload
    def __getitem__(self, index: slice) -> IntervalSet: ...

    def __getitem__(self, index: int | slice) -> GenomicInterval | IntervalSet:
        if isinstance(index, slice):
            return self.derive(self._records[index])
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return (
            self.is_compatible(other)
            and self._coordinate_system is other.coordinate_system
            and self._records == other.records
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"IntervalSet({len(self._records)} records, build={self._genome_build}, "
            f"convention={self._convention.value}, system={self._coordinate_system.value})"
        )
