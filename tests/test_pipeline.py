import logging
import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from locusgraph import (  # noqa: E402
    CollectionDescriptor,
    ConventionMismatchError,
    CrossReferencePipeline,
    GenomicInterval,
    GenomicRegion,
    InMemoryDocumentStore,
    IntervalSet,
    NamingConvention,
    OverlapQueryService,
    RaggedCollectionRegistry,
    RemoteHandle,
    TableGeneSymbolLookup,
)


def _descriptor(name: str, assay_type: str, sample_base: str) -> CollectionDescriptor:
    return CollectionDescriptor(
        name=name,
        assay_type=assay_type,
        sample_base=sample_base,
        handle=RemoteHandle(database="adipose", collection=name),
    )


def _store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.add(
        "adipose",
        "eqtl_subq",
        [
            {"seqname": "17", "start": 38_050_010, "end": 38_050_011, "variant_id": "V1", "gene_id": "ENSG00000141736.9"},
            {"seqname": "17", "start": 38_090_000, "end": 38_090_001, "variant_id": "V3", "gene_id": "ENSG00000108344.4"},
        ],
    )
    store.add(
        "adipose",
        "eqtl_visc",
        [
            {"seqname": "17", "start": 38_050_010, "end": 38_050_011, "variant_id": "V1", "gene_id": "ENSG00000141736.9"},
            {"seqname": "17", "start": 38_050_050, "end": 38_050_051, "variant_id": "V2", "gene_id": "ENSG00000141736.9"},
        ],
    )
    store.add("adipose", "dhs_subq", [{"seqname": "chr17", "start": 38_000_000, "end": 38_100_000}])
    return store


def _registry() -> RaggedCollectionRegistry:
    return RaggedCollectionRegistry(
        [
            _descriptor("eqtl_subq", "eQTL", "Subcutaneous"),
            _descriptor("eqtl_visc", "eQTL", "VisceralOmentum"),
            _descriptor("dhs_subq", "DHS", "Subcutaneous"),
        ]
    )


def _ctcf() -> IntervalSet:
    return IntervalSet(
        [GenomicInterval("chr17", 38_050_000, 38_050_100, "+", {"factor": "CTCF"})],
        genome_build="hg19",
        convention=NamingConvention.UCSC,
    )


def _region() -> GenomicRegion:
    return GenomicRegion("17", 38_000_000, 38_100_000, "hg19", NamingConvention.ACCESSION)


def test_pipeline_links_variants_from_each_tissue(caplog: pytest.LogCaptureFixture) -> None:
    pipeline = CrossReferencePipeline(
        registry=_registry(),
        service=OverlapQueryService(_store()),
        binding_sites={"CTCF": _ctcf()},
        rows=["eQTL"],
    )

    with caplog.at_level(logging.INFO, logger="locusgraph"):
        report = pipeline.run(_region())

    graph = report.graph
    assert report.collections_queried == ["eqtl_subq", "eqtl_visc"]
    assert report.records_retrieved == 4
    assert report.overlapping_records == 3
    assert [node.node_id for node in graph.variant_nodes()] == ["variant:V1", "variant:V2"]
    site_id = graph.site_nodes()[0].node_id
    assert [edge.evidence for edge in graph.edges_between("variant:V1", site_id)] == [
        "eqtl_subq/CTCF",
        "eqtl_visc/CTCF",
    ]
    assert graph.variant_nodes()[0].attributes["seqname"] == "chr17"
    assert "Cross-referencing" in caplog.text


def test_pipeline_column_selection_and_symbols() -> None:
    lookup = TableGeneSymbolLookup(pd.DataFrame({"gene_id": ["ENSG00000141736"], "symbol": ["ERBB2"]}))
    pipeline = CrossReferencePipeline(
        registry=_registry(),
        service=OverlapQueryService(_store()),
        binding_sites={"CTCF": _ctcf()},
        rows={"eQTL"},
        columns={"VisceralOmentum"},
        symbol_lookup=lookup,
    )

    report = pipeline.run(_region())

    assert report.collections_queried == ["eqtl_visc"]
    assert {node.attributes["gene_symbol"] for node in report.graph.variant_nodes()} == {"ERBB2"}
    assert {edge.collection for edge in report.graph.edges} == {"eqtl_visc"}


def test_pipeline_requires_matching_builds() -> None:
    sites = IntervalSet(
        [GenomicInterval("chr17", 38_050_000, 38_050_100)],
        genome_build="hg38",
        convention=NamingConvention.UCSC,
    )
    pipeline = CrossReferencePipeline(
        registry=_registry(),
        service=OverlapQueryService(_store()),
        binding_sites={"CTCF": sites},
        rows=["eQTL"],
    )

    with pytest.raises(ConventionMismatchError):
        pipeline.run(_region())
