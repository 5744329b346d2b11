import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from locusgraph import (  # noqa: E402
    CollectionDescriptor,
    DuplicateKeyError,
    NotFoundError,
    RaggedCollectionRegistry,
    RemoteHandle,
    SchemaError,
)


def _descriptor(name: str, assay_type: str, sample_base: str) -> CollectionDescriptor:
    return CollectionDescriptor(
        name=name,
        assay_type=assay_type,
        sample_base=sample_base,
        handle=RemoteHandle(database="gtex", collection=name),
    )


def _registry() -> RaggedCollectionRegistry:
    return RaggedCollectionRegistry(
        [
            _descriptor("eqtl_subq", "eQTL", "Subcutaneous"),
            _descriptor("eqtl_visc", "eQTL", "VisceralOmentum"),
            _descriptor("eqtl_lung", "eQTL", "Lung"),
            _descriptor("tfbs_subq", "TFBS", "Subcutaneous"),
            _descriptor("dnase_lung", "DHS", "Lung"),
        ]
    )


def test_registry_exposes_ragged_rows_and_columns() -> None:
    registry = _registry()

    assert registry.rows() == ["eQTL", "TFBS", "DHS"]
    assert registry.columns() == ["Subcutaneous", "VisceralOmentum", "Lung"]
    assert len(registry) == 5
    assert ("TFBS", "Lung") not in registry
    assert registry.resolve("TFBS", "Subcutaneous").name == "tfbs_subq"


def test_resolve_missing_cell_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        _registry().resolve("TFBS", "Unknown")


def test_not_found_is_a_key_error() -> None:
    with pytest.raises(KeyError):
        _registry().resolve("TFBS", "Lung")


def test_duplicate_cell_rejected() -> None:
    with pytest.raises(DuplicateKeyError):
        RaggedCollectionRegistry(
            [
                _descriptor("a", "eQTL", "Lung"),
                _descriptor("b", "eQTL", "Lung"),
            ]
        )


def test_duplicate_logical_name_rejected() -> None:
    with pytest.raises(DuplicateKeyError):
        RaggedCollectionRegistry(
            [
                _descriptor("a", "eQTL", "Lung"),
                _descriptor("a", "TFBS", "Lung"),
            ]
        )


def test_descriptor_requires_fields() -> None:
    with pytest.raises(SchemaError):
        _descriptor("a", " ", "Lung")


def test_selection_is_non_destructive_and_shares_descriptors() -> None:
    registry = _registry()

    view = registry.select_rows(["eQTL"])

    assert view.rows() == ["eQTL"]
    assert len(registry) == 5
    assert view.resolve("eQTL", "Lung") is registry.resolve("eQTL", "Lung")
    with pytest.raises(NotFoundError):
        view.resolve("TFBS", "Subcutaneous")


def test_row_and_column_selection_commute() -> None:
    registry = _registry()
    rows = lambda assay: assay in {"eQTL", "TFBS"}  # noqa: E731
    columns = {"Subcutaneous", "Lung"}

    first = registry.select_rows(rows).select_columns(columns)
    second = registry.select_columns(columns).select_rows(rows)

    for row in registry.rows():
        for col in registry.columns():
            if (row, col) in first:
                assert second.resolve(row, col) is first.resolve(row, col)
            else:
                assert (row, col) not in second
    assert [item.name for item in first] == ["eqtl_subq", "eqtl_lung", "tfbs_subq"]
    assert [item.name for item in second] == [item.name for item in first]


def test_single_label_predicate_and_lookup_by_name() -> None:
    registry = _registry()

    view = registry.select_columns("Lung")

    assert [item.name for item in view] == ["eqtl_lung", "dnase_lung"]
    assert registry.get("dnase_lung").assay_type == "DHS"
    with pytest.raises(NotFoundError):
        view.get("eqtl_subq")


def test_registry_frame_lists_populated_cells() -> None:
    frame = _registry().select_rows({"TFBS"}).to_frame()

    assert list(frame["name"]) == ["tfbs_subq"]
    assert frame.loc[0, "collection"] == "tfbs_subq"
    assert frame.loc[0, "genome_build"] == "hg19"
