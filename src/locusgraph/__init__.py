"""Cross-referencing of genomic interval collections.

This package provides a ragged registry of remote interval collections,
region overlap queries against them, in-memory overlap joins, and association
graph construction from the results.
"""

from .annotations import AnnotationTableLoader
from .config import (
    CoordinateSystem,
    MergePolicy,
    NamingConvention,
    OverlapDirection,
    QuerySettings,
    RecordFieldMap,
    StrandPolicy,
    load_run_config,
)
from .enrichment import GeneSymbolLookup, TableGeneSymbolLookup, enrich_with_symbols, strip_version
from .errors import (
    ConventionMismatchError,
    DuplicateKeyError,
    InconsistentEvidenceError,
    LocusGraphError,
    NotFoundError,
    RemoteUnavailableError,
    SchemaError,
    UnmappableSequenceError,
)
from .graph import (
    AssociationEdge,
    AssociationGraph,
    AssociationGraphBuilder,
    GraphNode,
    NodeKind,
    OverlapEvidence,
)
from .intervals import IntervalSet
from .models import CollectionDescriptor, GenomicInterval, GenomicRegion, RemoteHandle
from .naming import SequenceNaming, naming_for_build
from .overlap import overlap_pairs, overlaps_of
from .pipeline import CrossReferencePipeline, CrossReferenceReport
from .query import OverlapQueryService, QueryRequest
from .registry import RaggedCollectionRegistry
from .stores import DocumentStore, DuckDBDocumentStore, InMemoryDocumentStore, RecordFilter

__all__ = [
    "AnnotationTableLoader",
    "AssociationEdge",
    "AssociationGraph",
    "AssociationGraphBuilder",
    "CollectionDescriptor",
    "ConventionMismatchError",
    "CoordinateSystem",
    "CrossReferencePipeline",
    "CrossReferenceReport",
    "DocumentStore",
    "DuckDBDocumentStore",
    "DuplicateKeyError",
    "GeneSymbolLookup",
    "GenomicInterval",
    "GenomicRegion",
    "GraphNode",
    "InMemoryDocumentStore",
    "InconsistentEvidenceError",
    "IntervalSet",
    "LocusGraphError",
    "MergePolicy",
    "NamingConvention",
    "NodeKind",
    "NotFoundError",
    "OverlapDirection",
    "OverlapEvidence",
    "OverlapQueryService",
    "QueryRequest",
    "QuerySettings",
    "RaggedCollectionRegistry",
    "RecordFieldMap",
    "RecordFilter",
    "RemoteHandle",
    "RemoteUnavailableError",
    "SchemaError",
    "SequenceNaming",
    "StrandPolicy",
    "TableGeneSymbolLookup",
    "UnmappableSequenceError",
    "enrich_with_symbols",
    "load_run_config",
    "naming_for_build",
    "overlap_pairs",
    "overlaps_of",
    "strip_version",
]
