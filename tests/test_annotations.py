import csv
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from locusgraph import AnnotationTableLoader, DuplicateKeyError, SchemaError  # noqa: E402


def _write_table(path: Path, rows: list[dict[str, object]], delimiter: str = ",") -> None:
    with path.open("w", newline="") as stream:
        writer = csv.DictWriter(stream, fieldnames=list(rows[0].keys()), delimiter=delimiter)
        writer.writeheader()
        writer.writerows(rows)


def _row(name: str, assay_type: str, sample_base: str, **extra: object) -> dict[str, object]:
    return {
        "name": name,
        "assay_type": assay_type,
        "sample_base": sample_base,
        "database": "adipose",
        "collection": name,
        **extra,
    }


def test_loader_builds_registry_from_csv(tmp_path: Path) -> None:
    path = tmp_path / "annotation.csv"
    _write_table(
        path,
        [
            _row("eqtl_subq", "eQTL", "Subcutaneous", genome_build="hg19"),
            _row("eqtl_visc", "eQTL", "VisceralOmentum", genome_build=""),
            _row("fimo_subq", "TFBS", "Subcutaneous", genome_build="hg38"),
        ],
    )

    registry = AnnotationTableLoader().load(path)

    assert registry.rows() == ["eQTL", "TFBS"]
    assert registry.resolve("eQTL", "VisceralOmentum").genome_build == "hg19"
    descriptor = registry.resolve("TFBS", "Subcutaneous")
    assert descriptor.genome_build == "hg38"
    assert descriptor.handle.database == "adipose"
    assert descriptor.handle.collection == "fimo_subq"


def test_loader_reads_tsv(tmp_path: Path) -> None:
    path = tmp_path / "annotation.tsv"
    _write_table(path, [_row("eqtl_lung", "eQTL", "Lung")], delimiter="\t")

    registry = AnnotationTableLoader(default_genome_build="hg38").load(path)

    assert registry.resolve("eQTL", "Lung").genome_build == "hg38"


def test_loader_rejects_missing_columns(tmp_path: Path) -> None:
    path = tmp_path / "annotation.csv"
    _write_table(path, [{"name": "x", "assay_type": "eQTL", "sample_base": "Lung"}])

    with pytest.raises(SchemaError):
        AnnotationTableLoader().load(path)


def test_loader_rejects_blank_required_value(tmp_path: Path) -> None:
    path = tmp_path / "annotation.csv"
    _write_table(path, [_row("eqtl_lung", "eQTL", "Lung"), _row("eqtl_liver", "eQTL", "")])

    with pytest.raises(SchemaError):
        AnnotationTableLoader().load(path)


def test_loader_rejects_duplicate_cells(tmp_path: Path) -> None:
    path = tmp_path / "annotation.csv"
    _write_table(path, [_row("a", "eQTL", "Lung"), _row("b", "eQTL", "Lung")])

    with pytest.raises(DuplicateKeyError):
        AnnotationTableLoader().load(path)


def test_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        AnnotationTableLoader().load(tmp_path / "missing.csv")
