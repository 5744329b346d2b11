import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from locusgraph import (  # noqa: E402
    NamingConvention,
    SchemaError,
    SequenceNaming,
    UnmappableSequenceError,
    naming_for_build,
)


def test_builtin_naming_covers_primary_human_sequences() -> None:
    naming = naming_for_build("hg19")

    assert len(naming.vocabulary(NamingConvention.UCSC)) == 25
    assert "chr22" in naming.vocabulary(NamingConvention.UCSC)
    assert "MT" in naming.vocabulary(NamingConvention.ACCESSION)
    assert naming.translate("chr17", NamingConvention.UCSC, NamingConvention.ACCESSION) == "17"
    assert naming.translate("MT", NamingConvention.ACCESSION, NamingConvention.UCSC) == "chrM"
    assert naming.translate("X", NamingConvention.ACCESSION, NamingConvention.ACCESSION) == "X"


def test_builtin_naming_rejects_unknown_build() -> None:
    with pytest.raises(SchemaError):
        naming_for_build("mm10")


def test_translate_rejects_name_from_other_convention() -> None:
    naming = naming_for_build("GRCh38")

    with pytest.raises(UnmappableSequenceError):
        naming.translate("chr17", NamingConvention.ACCESSION, NamingConvention.UCSC)


def test_unmappable_error_is_a_key_error() -> None:
    naming = naming_for_build("hg38")

    with pytest.raises(KeyError):
        naming.translate("chr99", NamingConvention.UCSC, NamingConvention.ACCESSION)


def test_naming_rejects_duplicate_names() -> None:
    with pytest.raises(SchemaError):
        SequenceNaming("hg19", [("chr1", "1"), ("chr1", "01")])


def test_alias_table_loading(tmp_path: Path) -> None:
    path = tmp_path / "aliases.tsv"
    path.write_text("ucsc\taccession\nchr1\t1\nchr2\t2\nchrUn_gl000220\t\n")

    naming = SequenceNaming.from_alias_table(path, "hg19")

    assert naming.translate("2", NamingConvention.ACCESSION, NamingConvention.UCSC) == "chr2"
    assert naming.contains("chrUn_gl000220", NamingConvention.UCSC)
    with pytest.raises(UnmappableSequenceError):
        naming.translate("chrUn_gl000220", NamingConvention.UCSC, NamingConvention.ACCESSION)


def test_alias_table_requires_both_columns(tmp_path: Path) -> None:
    path = tmp_path / "aliases.csv"
    path.write_text("ucsc,refseq\nchr1,NC_000001.10\n")

    with pytest.raises(SchemaError):
        SequenceNaming.from_alias_table(path, "hg19")


def test_canonical_name_prefers_ucsc_and_keeps_one_sided_names() -> None:
    naming = SequenceNaming("custom", [("chr17", "17"), (None, "GL000192.1")])

    assert naming.canonical("17", NamingConvention.ACCESSION) == "chr17"
    assert naming.canonical("chr17", NamingConvention.UCSC) == "chr17"
    assert naming.canonical("GL000192.1", NamingConvention.ACCESSION) == "GL000192.1"
    with pytest.raises(UnmappableSequenceError):
        naming.canonical("chr17", NamingConvention.ACCESSION)
