"""Overlap joins between interval sets.

Both inputs must already share genome build and naming convention; this
module never converts names on the caller's behalf. Coordinate systems may
differ, since each set declares its own and comparisons run on half-open
coordinates derived from those declarations.

Examples
~~~~~~~~

.. code-block:: python

    >>> variants = IntervalSet([...], genome_build="hg19", convention=NamingConvention.UCSC)
    >>> sites = IntervalSet([...], genome_build="hg19", convention=NamingConvention.UCSC)
    >>> overlaps_of(variants, sites)  # variants that hit at least one site
"""

from __future__ import annotations

from collections import defaultdict

from intervaltree import IntervalTree

from locusgraph.config import OverlapDirection, StrandPolicy
from locusgraph.errors import ConventionMismatchError
from locusgraph.intervals import IntervalSet
from locusgraph.models import GenomicInterval


def require_compatible(a: IntervalSet, b: IntervalSet) -> None:
    """Raise :class:`ConventionMismatchError` unless build and convention match."""

    if a.genome_build.lower() != b.genome_build.lower():
        raise ConventionMismatchError(
            f"Genome builds differ: {a.genome_build} vs {b.genome_build}"
        )
    if a.convention() is not b.convention():
        raise ConventionMismatchError(
            f"Naming conventions differ: {a.convention().value} vs {b.convention().value}; "
            "convert one side with with_convention() first"
        )


def strands_compatible(left: str | None, right: str | None, policy: StrandPolicy) -> bool:
    if policy is StrandPolicy.IGNORE or left is None or right is None:
        return True
    return left == right


class _IndexedSet:
    """Per-sequence interval trees over one set, payload = record position."""

    def __init__(self, intervals: IntervalSet) -> None:
        self._trees: dict[str, IntervalTree] = defaultdict(IntervalTree)
        self._records = intervals.records
        for position, record in enumerate(intervals):
            start, end = record.half_open(intervals.coordinate_system)
            # intervaltree rejects null intervals; they overlap nothing anyway
            if start < end:
                self._trees[record.seqname].addi(start, end, position)

    def hits(
        self,
        record: GenomicInterval,
        start: int,
        end: int,
        policy: StrandPolicy,
    ) -> list[int]:
        if start >= end or record.seqname not in self._trees:
            return []
        positions = [
            hit.data
            for hit in self._trees[record.seqname].overlap(start, end)
            if strands_compatible(record.strand, self._records[hit.data].strand, policy)
        ]
        return sorted(positions)

    def any_hit(
        self,
        record: GenomicInterval,
        start: int,
        end: int,
        policy: StrandPolicy,
    ) -> bool:
        if start >= end or record.seqname not in self._trees:
            return False
        tree = self._trees[record.seqname]
        if policy is StrandPolicy.IGNORE:
            return tree.overlaps(start, end)
        return bool(self.hits(record, start, end, policy))


def overlaps_of(
    a: IntervalSet,
    b: IntervalSet,
    direction: OverlapDirection = OverlapDirection.SUBJECT_FILTERED_BY_QUERY,
    *,
    strand_policy: StrandPolicy = StrandPolicy.IGNORE,
) -> IntervalSet:
    """Return the records of one side that intersect the other side.

    ``SUBJECT_FILTERED_BY_QUERY`` returns records of ``a`` intersecting at least
    one record of ``b``; ``QUERY_FILTERED_BY_SUBJECT`` returns records of ``b``
    intersecting ``a``. Each qualifying record appears once, in input order.
    """

    require_compatible(a, b)
    direction = OverlapDirection(direction)
    strand_policy = StrandPolicy(strand_policy)

    if direction is OverlapDirection.SUBJECT_FILTERED_BY_QUERY:
        kept, other = a, b
    else:
        kept, other = b, a

    index = _IndexedSet(other)
    return kept.derive(
        record
        for record in kept
        if index.any_hit(record, *record.half_open(kept.coordinate_system), strand_policy)
    )


def overlap_pairs(
    left: IntervalSet,
    right: IntervalSet,
    *,
    strand_policy: StrandPolicy = StrandPolicy.IGNORE,
) -> list[tuple[GenomicInterval, GenomicInterval]]:
    """Return every intersecting ``(left, right)`` record pair.

    Pairs are ordered by left input order, then right input order.
    """

    require_compatible(left, right)
    strand_policy = StrandPolicy(strand_policy)

    index = _IndexedSet(right)
    pairs: list[tuple[GenomicInterval, GenomicInterval]] = []
    for record in left:
        start, end = record.half_open(left.coordinate_system)
        for position in index.hits(record, start, end, strand_policy):
            pairs.append((record, right.records[position]))
    return pairs
