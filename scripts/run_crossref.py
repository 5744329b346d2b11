#!/usr/bin/env python3
"""Run a configured region cross-reference and write the association graph."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from locusgraph import (  # noqa: E402
    AnnotationTableLoader,
    AssociationGraphBuilder,
    CoordinateSystem,
    CrossReferencePipeline,
    DuckDBDocumentStore,
    GenomicRegion,
    IntervalSet,
    NamingConvention,
    OverlapQueryService,
    QuerySettings,
    TableGeneSymbolLookup,
    load_run_config,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cross-reference remote interval collections for a region")
    parser.add_argument("--config", required=True, help="Path to run JSON config")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser.parse_args()


def build_store(config: dict[str, Any]) -> DuckDBDocumentStore:
    store_config = config["store"]
    store_type = str(store_config.get("type", "")).strip().lower()
    params = dict(store_config.get("params", {}))

    if store_type == "duckdb":
        return DuckDBDocumentStore(**params)

    raise ValueError(f"Unknown store type: {store_type}")


def build_region(config: dict[str, Any]) -> GenomicRegion:
    raw = config["region"]
    return GenomicRegion(
        seqname=raw["seqname"],
        start=raw["start"],
        end=raw["end"],
        strand=raw.get("strand"),
        genome_build=raw["genome_build"],
        convention=NamingConvention(raw["convention"]),
        coordinate_system=CoordinateSystem(raw.get("coordinate_system", "zero_based_half_open")),
    )


def load_binding_sites(config: dict[str, Any]) -> dict[str, IntervalSet]:
    binding_sites: dict[str, IntervalSet] = {}
    for item in config["binding_sites"]:
        label = item["label"]
        if label in binding_sites:
            raise ValueError(f"Binding site label used twice: {label}")
        path = Path(item["path"])
        sep = "\t" if path.suffix.lower() in {".tsv", ".txt"} else ","
        frame = pd.read_csv(path, sep=sep, dtype={"seqname": str})
        binding_sites[label] = IntervalSet.from_frame(
            frame,
            genome_build=item["genome_build"],
            convention=NamingConvention(item["convention"]),
            coordinate_system=CoordinateSystem(item.get("coordinate_system", "zero_based_half_open")),
        )
    return binding_sites


def build_builder(config: dict[str, Any], settings: QuerySettings) -> AssociationGraphBuilder:
    graph_config = config.get("graph", {})
    return AssociationGraphBuilder(
        variant_key=graph_config.get("variant_key", "variant_id"),
        site_key=graph_config.get("site_key"),
        factor_attribute=graph_config.get("factor_attribute", "factor"),
        strand_policy=settings.strand_policy,
    )


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger("locusgraph.crossref.runner")

    config = load_run_config(args.config)
    registry = AnnotationTableLoader().load(config["annotation_table"])
    logger.info("Loaded %r", registry)

    query_config = config.get("query", {})
    settings = QuerySettings.from_mapping(query_config)
    select = config.get("select", {})
    symbol_lookup = (
        TableGeneSymbolLookup.from_csv(config["gene_symbols"]) if config.get("gene_symbols") else None
    )

    pipeline = CrossReferencePipeline(
        registry=registry,
        service=OverlapQueryService(build_store(config), settings),
        binding_sites=load_binding_sites(config),
        rows=select.get("assay_types"),
        columns=select.get("samples"),
        builder=build_builder(config, settings),
        symbol_lookup=symbol_lookup,
        limit=query_config.get("limit"),
        strand_policy=settings.strand_policy,
    )
    report = pipeline.run(build_region(config))

    output = config.get("output", {})
    nodes, edges = report.graph.to_frames()
    for key, frame in (("nodes", nodes), ("edges", edges)):
        if output.get(key):
            target = Path(output[key])
            target.parent.mkdir(parents=True, exist_ok=True)
            frame.to_csv(target, index=False)
            logger.info("Wrote %d %s to %s", len(frame), key, target)

    payload = {
        "collections_queried": report.collections_queried,
        "records_retrieved": report.records_retrieved,
        "overlapping_records": report.overlapping_records,
        "variant_nodes": len(report.graph.variant_nodes()),
        "site_nodes": len(report.graph.site_nodes()),
        "edges": len(report.graph.edges),
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
