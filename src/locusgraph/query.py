"""Overlap queries against one remote collection.

Querying is a two step protocol: resolve a
:class:`~locusgraph.models.CollectionDescriptor` from the registry (local),
then hand it to :meth:`OverlapQueryService.query` (remote). The service keeps
no mutable state, so calls for independent descriptors may run concurrently.
"""

from __future__ import annotations

import concurrent.futures as futures
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from locusgraph.config import CoordinateSystem, MergePolicy, NamingConvention, QuerySettings
from locusgraph.errors import ConventionMismatchError
from locusgraph.intervals import IntervalSet
from locusgraph.models import CollectionDescriptor, GenomicInterval, GenomicRegion
from locusgraph.naming import SequenceNaming, naming_for_build
from locusgraph.overlap import strands_compatible
from locusgraph.stores.base import DocumentStore, RecordFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryRequest:
    """One ``(descriptor, region)`` query for :meth:`OverlapQueryService.query_many`."""

    descriptor: CollectionDescriptor
    region: GenomicRegion
    limit: int | None = None


def region_filter(
    seqname: str,
    region: GenomicRegion,
    settings: QuerySettings,
) -> RecordFilter:
    """Filter selecting stored records on ``seqname`` that intersect ``region``.

    ``seqname`` must already be in the store's convention. Bounds are computed
    for the store coordinate system so that the store returns exactly the
    intersecting records.
    """

    start, end = region.half_open()
    fields = settings.fields
    if settings.store_coordinate_system is CoordinateSystem.ONE_BASED_CLOSED:
        start_high = end
    else:
        start_high = end - 1

    return RecordFilter(
        equals={fields.seqname: seqname},
        ranges={
            fields.start: (None, start_high),
            fields.end: (start + 1, None),
        },
    )


def merge_duplicates(records: Iterable[GenomicInterval]) -> list[GenomicInterval]:
    """Collapse records with identical coordinates; first-seen attribute values win."""

    merged: dict[tuple[str, int, int, str | None], GenomicInterval] = {}
    for record in records:
        key = record.key()
        if key not in merged:
            merged[key] = record
            continue
        current = merged[key]
        extra = {
            name: value
            for name, value in record.attributes.items()
            if name not in current.attributes
        }
        if extra:
            merged[key] = current.with_attributes(**extra)
    return list(merged.values())


class OverlapQueryService:
    """Run bounded overlap filters against collections of a :class:`DocumentStore`."""

    def __init__(
        self,
        store: DocumentStore,
        settings: QuerySettings | None = None,
        *,
        namings: Mapping[str, SequenceNaming] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or QuerySettings()
        self._namings = {build.lower(): naming for build, naming in (namings or {}).items()}

    def naming_for(self, genome_build: str) -> SequenceNaming:
        return self._namings.get(genome_build.lower()) or naming_for_build(genome_build)

    def store_convention(self, descriptor: CollectionDescriptor) -> NamingConvention:
        return self.settings.convention_for(descriptor.assay_type)

    def query(
        self,
        descriptor: CollectionDescriptor,
        region: GenomicRegion,
        limit: int | None = None,
        *,
        result_convention: NamingConvention | None = None,
    ) -> IntervalSet:
        """Return records of ``descriptor``'s collection intersecting ``region``.

        The region's sequence name is translated into the convention the
        collection is keyed by before filtering. Results come back in that store
        convention unless ``result_convention`` asks for an explicit conversion.
        An empty region yields an empty set without touching the store.
        ``limit`` caps the returned records after strand and merge policies
        apply, so the store may be asked again with a wider cap.
        """

        if limit is not None and limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        if region.genome_build.lower() != descriptor.genome_build.lower():
            raise ConventionMismatchError(
                f"Region is on {region.genome_build}, collection '{descriptor.name}' "
                f"is on {descriptor.genome_build}"
            )

        naming = self.naming_for(descriptor.genome_build)
        convention = self.store_convention(descriptor)
        seqname = naming.translate(region.seqname, region.convention, convention)

        fetched = self._materialize(descriptor, [], convention, naming)
        kept: list[GenomicInterval] = []
        if region.is_empty():
            logger.debug("Empty region %s; skipping query of %s", region, descriptor.name)
        else:
            record_filter = region_filter(seqname, region, self.settings)
            cap = limit
            while True:
                logger.debug(
                    "Querying %s.%s with %s (limit=%s)",
                    descriptor.handle.database,
                    descriptor.handle.collection,
                    record_filter,
                    cap,
                )
                rows = self.store.find(
                    descriptor.handle.database,
                    descriptor.handle.collection,
                    record_filter,
                    cap,
                )
                fetched = self._materialize(descriptor, rows, convention, naming)
                kept = self._matching(fetched, region)
                # widen the cap until `limit` records survive post-filtering
                # or the store runs dry
                if cap is None or len(kept) >= limit or len(rows) < cap:
                    break
                cap *= 2

        if limit is not None:
            kept = kept[:limit]
        result = fetched.derive(kept)

        logger.info("%s: %d records overlap %s", descriptor.name, len(result), region)
        if result_convention is not None:
            return result.with_convention(result_convention)
        return result

    def query_many(
        self,
        requests: Sequence[QueryRequest],
        *,
        max_workers: int = 4,
    ) -> list[IntervalSet]:
        """Run independent queries on a thread pool; results follow request order."""

        if not requests:
            return []
        with futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(
                executor.map(
                    lambda request: self.query(request.descriptor, request.region, request.limit),
                    requests,
                )
            )

    def _matching(self, result: IntervalSet, region: GenomicRegion) -> list[GenomicInterval]:
        region_start, region_end = region.half_open()
        records = []
        for record in result:
            start, end = record.half_open(result.coordinate_system)
            if start >= end or start >= region_end or end <= region_start:
                continue
            if not strands_compatible(region.strand, record.strand, self.settings.strand_policy):
                continue
            records.append(record)

        if self.settings.merge_policy is MergePolicy.MERGE:
            return merge_duplicates(records)
        return records

    def _materialize(
        self,
        descriptor: CollectionDescriptor,
        rows: list[dict],
        convention: NamingConvention,
        naming: SequenceNaming,
    ) -> IntervalSet:
        return IntervalSet.from_records(
            rows,
            genome_build=descriptor.genome_build,
            convention=convention,
            coordinate_system=self.settings.store_coordinate_system,
            fields=self.settings.fields,
            naming=naming,
        )
