"""Bipartite variant <-> binding-site association graphs built from overlaps."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import pandas as pd

from locusgraph.config import StrandPolicy
from locusgraph.errors import InconsistentEvidenceError
from locusgraph.intervals import IntervalSet
from locusgraph.models import CollectionDescriptor, GenomicInterval
from locusgraph.overlap import overlap_pairs


class NodeKind(str, Enum):
    VARIANT = "variant"
    SITE = "site"


@dataclass(frozen=True)
class GraphNode:
    node_id: str
    kind: NodeKind
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))


@dataclass(frozen=True)
class AssociationEdge:
    """Overlap evidence linking one variant node to one binding-site node."""

    variant_id: str
    site_id: str
    evidence: str
    collection: str | None = None
    factor: str | None = None


@dataclass(frozen=True)
class OverlapEvidence:
    """Variant records and binding-site records to be cross-referenced under one label."""

    variants: IntervalSet
    sites: IntervalSet
    collection: CollectionDescriptor | None = None


class AssociationGraph:
    """Immutable bipartite multigraph of variant and binding-site nodes.

    Parallel edges between the same pair are kept when they come from
    different evidence labels.
    """

    def __init__(self, nodes: Iterable[GraphNode], edges: Iterable[AssociationEdge]) -> None:
        self._nodes: dict[str, GraphNode] = {}
        for node in nodes:
            if node.node_id in self._nodes:
                raise InconsistentEvidenceError(f"Node defined twice: {node.node_id}")
            self._nodes[node.node_id] = node

        self._edges: tuple[AssociationEdge, ...] = tuple(edges)
        for edge in self._edges:
            variant = self._nodes.get(edge.variant_id)
            site = self._nodes.get(edge.site_id)
            if variant is None or variant.kind is not NodeKind.VARIANT:
                raise InconsistentEvidenceError(f"Edge references unknown variant {edge.variant_id}")
            if site is None or site.kind is not NodeKind.SITE:
                raise InconsistentEvidenceError(f"Edge references unknown site {edge.site_id}")

    @property
    def nodes(self) -> Mapping[str, GraphNode]:
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> tuple[AssociationEdge, ...]:
        return self._edges

    def variant_nodes(self) -> list[GraphNode]:
        return [node for node in self._nodes.values() if node.kind is NodeKind.VARIANT]

    def site_nodes(self) -> list[GraphNode]:
        return [node for node in self._nodes.values() if node.kind is NodeKind.SITE]

    def edges_between(self, first: str, second: str) -> list[AssociationEdge]:
        """Edges joining two nodes, given in either order."""

        pair = {first, second}
        return [edge for edge in self._edges if {edge.variant_id, edge.site_id} == pair]

    def incident_edges(self, node_id: str) -> Iterator[AssociationEdge]:
        for edge in self._edges:
            if node_id in (edge.variant_id, edge.site_id):
                yield edge

    def degree(self, node_id: str) -> int:
        if node_id not in self._nodes:
            raise KeyError(node_id)
        return sum(1 for _ in self.incident_edges(node_id))

    def to_frames(self) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Return ``(nodes, edges)`` tables for downstream graph tooling."""

        node_rows = [
            {**node.attributes, "node_id": node.node_id, "kind": node.kind.value}
            for node in self._nodes.values()
        ]
        edge_rows = [
            {
                "variant_id": edge.variant_id,
                "site_id": edge.site_id,
                "evidence": edge.evidence,
                "collection": edge.collection,
                "factor": edge.factor,
            }
            for edge in self._edges
        ]
        nodes = pd.DataFrame(node_rows) if node_rows else pd.DataFrame(columns=["node_id", "kind"])
        edges = pd.DataFrame(
            edge_rows,
            columns=["variant_id", "site_id", "evidence", "collection", "factor"],
        )
        return nodes, edges

    def __repr__(self) -> str:
        return (
            f"AssociationGraph({len(self.variant_nodes())} variants, "
            f"{len(self.site_nodes())} sites, {len(self._edges)} edges)"
        )


class AssociationGraphBuilder:
    """Turn labelled overlap evidence into an :class:`AssociationGraph`.

    Variants are identified by the ``variant_key`` attribute. Binding sites are
    identified by ``site_key`` when given, otherwise by position and factor.
    A variant seen under several labels maps to one node; each label adds its
    own edges.
    """

    def __init__(
        self,
        *,
        variant_key: str = "variant_id",
        site_key: str | None = None,
        factor_attribute: str = "factor",
        strand_policy: StrandPolicy = StrandPolicy.IGNORE,
    ) -> None:
        self.variant_key = variant_key
        self.site_key = site_key
        self.factor_attribute = factor_attribute
        self.strand_policy = StrandPolicy(strand_policy)

    def build(self, evidence: Mapping[str, OverlapEvidence]) -> AssociationGraph:
        nodes: dict[str, GraphNode] = {}
        edges: list[AssociationEdge] = []

        for label, item in evidence.items():
            for record in item.variants:
                node_id = self.variant_id(record, label)
                nodes.setdefault(node_id, self._node(node_id, NodeKind.VARIANT, record))
            for record in item.sites:
                node_id = self.site_id(record, label, item.sites)
                nodes.setdefault(node_id, self._node(node_id, NodeKind.SITE, record))

            collection = item.collection.name if item.collection is not None else None
            seen: set[tuple[str, str]] = set()
            for variant, site in overlap_pairs(
                item.variants,
                item.sites,
                strand_policy=self.strand_policy,
            ):
                pair = (self.variant_id(variant, label), self.site_id(site, label, item.sites))
                if pair in seen:
                    continue
                seen.add(pair)
                edges.append(
                    AssociationEdge(
                        variant_id=pair[0],
                        site_id=pair[1],
                        evidence=label,
                        collection=collection,
                        factor=self._factor(site),
                    )
                )

        return AssociationGraph(nodes.values(), edges)

    def variant_id(self, record: GenomicInterval, label: str) -> str:
        value = record.attributes.get(self.variant_key)
        if value is None or not str(value).strip():
            raise InconsistentEvidenceError(
                f"Evidence '{label}': variant at {record.seqname}:{record.start}-{record.end} "
                f"lacks '{self.variant_key}'"
            )
        return f"variant:{str(value).strip()}"

    def site_id(self, record: GenomicInterval, label: str, sites: IntervalSet) -> str:
        """Node id of a binding site drawn from ``sites``.

        Positional ids use the UCSC sequence name and half-open coordinates, so
        the same site read from sets in different conventions or coordinate
        systems maps to one node.
        """

        if self.site_key is None:
            seqname = sites.naming.canonical(record.seqname, sites.convention())
            start, end = record.half_open(sites.coordinate_system)
            strand = record.strand or "*"
            return f"site:{seqname}:{start}-{end}:{strand}:{self._factor(record) or ''}"

        value = record.attributes.get(self.site_key)
        if value is None or not str(value).strip():
            raise InconsistentEvidenceError(
                f"Evidence '{label}': site at {record.seqname}:{record.start}-{record.end} "
                f"lacks '{self.site_key}'"
            )
        return f"site:{str(value).strip()}"

    def _factor(self, record: GenomicInterval) -> str | None:
        value = record.attributes.get(self.factor_attribute)
        return None if value is None else str(value)

    @staticmethod
    def _node(node_id: str, kind: NodeKind, record: GenomicInterval) -> GraphNode:
        return GraphNode(
            node_id=node_id,
            kind=kind,
            attributes={
                **record.attributes,
                "seqname": record.seqname,
                "start": record.start,
                "end": record.end,
                "strand": record.strand,
            },
        )
