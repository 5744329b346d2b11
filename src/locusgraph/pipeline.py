"""End-to-end cross-referencing: select collections, query, overlap, build a graph."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from locusgraph.config import OverlapDirection, StrandPolicy
from locusgraph.enrichment import GeneSymbolLookup, enrich_with_symbols
from locusgraph.graph import AssociationGraph, AssociationGraphBuilder, OverlapEvidence
from locusgraph.intervals import IntervalSet
from locusgraph.models import GenomicRegion
from locusgraph.overlap import overlaps_of
from locusgraph.query import OverlapQueryService
from locusgraph.registry import LabelPredicate, RaggedCollectionRegistry

logger = logging.getLogger(__name__)


@dataclass
class CrossReferenceReport:
    """Execution summary for a cross-referencing run."""

    graph: AssociationGraph
    collections_queried: list[str] = field(default_factory=list)
    records_retrieved: int = 0
    overlapping_records: int = 0


class CrossReferencePipeline:
    """Query every selected collection for a region and link hits to binding sites.

    Each binding-site set is compared against each collection's result after an
    explicit convention conversion of the query result; evidence labels are
    ``"<collection name>/<binding label>"``.
    """

    def __init__(
        self,
        *,
        registry: RaggedCollectionRegistry,
        service: OverlapQueryService,
        binding_sites: Mapping[str, IntervalSet],
        rows: LabelPredicate | None = None,
        columns: LabelPredicate | None = None,
        builder: AssociationGraphBuilder | None = None,
        symbol_lookup: GeneSymbolLookup | None = None,
        limit: int | None = None,
        strand_policy: StrandPolicy = StrandPolicy.IGNORE,
    ) -> None:
        self.registry = registry
        self.service = service
        self.binding_sites = binding_sites
        self.rows = rows
        self.columns = columns
        self.builder = builder or AssociationGraphBuilder(strand_policy=strand_policy)
        self.symbol_lookup = symbol_lookup
        self.limit = limit
        self.strand_policy = strand_policy

    def selected(self) -> RaggedCollectionRegistry:
        view = self.registry
        if self.rows is not None:
            view = view.select_rows(self.rows)
        if self.columns is not None:
            view = view.select_columns(self.columns)
        return view

    def run(self, region: GenomicRegion) -> CrossReferenceReport:
        view = self.selected()
        logger.info("Cross-referencing %s across %d collections", region, len(view))

        evidence: dict[str, OverlapEvidence] = {}
        queried: list[str] = []
        retrieved = 0
        overlapping = 0

        for descriptor in view:
            hits = self.service.query(descriptor, region, self.limit)
            queried.append(descriptor.name)
            retrieved += len(hits)
            if self.symbol_lookup is not None:
                hits = enrich_with_symbols(hits, self.symbol_lookup)

            for label, sites in self.binding_sites.items():
                variants = hits
                if variants.convention() is not sites.convention():
                    variants = variants.with_convention(sites.convention())
                variants = overlaps_of(
                    variants,
                    sites,
                    OverlapDirection.SUBJECT_FILTERED_BY_QUERY,
                    strand_policy=self.strand_policy,
                )
                logger.debug("%s vs %s: %d overlapping records", descriptor.name, label, len(variants))
                overlapping += len(variants)
                evidence[f"{descriptor.name}/{label}"] = OverlapEvidence(
                    variants=variants,
                    sites=sites,
                    collection=descriptor,
                )

        graph = self.builder.build(evidence)
        logger.info("Built %r", graph)
        return CrossReferenceReport(
            graph=graph,
            collections_queried=queried,
            records_retrieved=retrieved,
            overlapping_records=overlapping,
        )
