import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from locusgraph import (  # noqa: E402
    ConventionMismatchError,
    CoordinateSystem,
    GenomicInterval,
    IntervalSet,
    NamingConvention,
    OverlapDirection,
    StrandPolicy,
    overlap_pairs,
    overlaps_of,
)


def _set(
    records: list[GenomicInterval],
    *,
    build: str = "hg19",
    convention: NamingConvention = NamingConvention.UCSC,
    system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN,
) -> IntervalSet:
    return IntervalSet(records, genome_build=build, convention=convention, coordinate_system=system)


def _run(targets: list[GenomicInterval], query: GenomicInterval, expected: list[GenomicInterval]) -> None:
    result = overlaps_of(_set(targets), _set([query]))
    assert list(result) == expected


def test_same_interval() -> None:
    interval = GenomicInterval("chr1", 10, 100)
    _run([interval], interval, [interval])


def test_query_wholly_contained_in_target() -> None:
    target = GenomicInterval("chr1", 10, 100)
    _run([target], GenomicInterval("chr1", 11, 99), [target])


def test_target_overlaps_last_base_only() -> None:
    target = GenomicInterval("chr1", 10, 100)
    _run([target], GenomicInterval("chr1", 99, 100), [target])


def test_half_open_neighbours_do_not_overlap() -> None:
    target = GenomicInterval("chr1", 10, 100)
    _run([target], GenomicInterval("chr1", 9, 10), [])
    _run([target], GenomicInterval("chr1", 100, 101), [])


def test_different_sequences_do_not_overlap() -> None:
    _run([GenomicInterval("chr1", 10, 100)], GenomicInterval("chr2", 10, 100), [])


def test_empty_intervals_overlap_nothing() -> None:
    target = GenomicInterval("chr1", 50, 50)
    _run([target, GenomicInterval("chr1", 10, 20)], GenomicInterval("chr1", 0, 100), [GenomicInterval("chr1", 10, 20)])
    _run([GenomicInterval("chr1", 10, 100)], GenomicInterval("chr1", 50, 50), [])


def test_each_subject_returned_once_in_input_order() -> None:
    a = [
        GenomicInterval("chr1", 30, 40, attributes={"variant_id": "rs3"}),
        GenomicInterval("chr1", 10, 20, attributes={"variant_id": "rs1"}),
        GenomicInterval("chr1", 500, 600, attributes={"variant_id": "rs9"}),
    ]
    b = [
        GenomicInterval("chr1", 0, 35),
        GenomicInterval("chr1", 15, 16),
        GenomicInterval("chr1", 38, 39),
    ]

    result = overlaps_of(_set(a), _set(b))

    assert [record.attributes["variant_id"] for record in result] == ["rs3", "rs1"]


def test_result_is_subset_of_subject_with_attributes() -> None:
    a = _set([GenomicInterval("chr2", i * 10, i * 10 + 5, attributes={"i": i}) for i in range(10)])
    b = _set([GenomicInterval("chr2", 22, 47)])

    result = overlaps_of(a, b)

    assert all(record in a.records for record in result)
    assert [record.attributes["i"] for record in result] == [2, 3, 4]


def test_subject_returned_unchanged_when_every_record_overlaps() -> None:
    a = _set([GenomicInterval("chr3", 5, 15), GenomicInterval("chr3", 100, 110), GenomicInterval("chr3", 12, 14)])
    b = _set([GenomicInterval("chr3", 0, 200)])

    assert overlaps_of(a, b, OverlapDirection.SUBJECT_FILTERED_BY_QUERY) == a


def test_query_filtered_by_subject_returns_other_side() -> None:
    a = _set([GenomicInterval("chr1", 10, 20)])
    b = _set([GenomicInterval("chr1", 15, 25, attributes={"factor": "CTCF"}), GenomicInterval("chr1", 30, 40)])

    result = overlaps_of(a, b, "queryFilteredBySubject")

    assert [record.attributes.get("factor") for record in result] == ["CTCF"]


def test_no_overlap_returns_empty_set() -> None:
    result = overlaps_of(_set([GenomicInterval("chr1", 1, 2)]), _set([GenomicInterval("chr1", 5, 6)]))

    assert len(result) == 0
    assert result.genome_build == "hg19"


def test_convention_mismatch_is_never_auto_converted() -> None:
    ucsc = _set([GenomicInterval("chr17", 1, 10)])
    accession = _set([GenomicInterval("17", 1, 10)], convention=NamingConvention.ACCESSION)

    with pytest.raises(ConventionMismatchError):
        overlaps_of(ucsc, accession)

    converted = accession.with_convention(NamingConvention.UCSC)
    assert len(overlaps_of(ucsc, converted)) == 1


def test_build_mismatch_is_rejected() -> None:
    with pytest.raises(ConventionMismatchError):
        overlaps_of(_set([GenomicInterval("chr1", 1, 10)]), _set([GenomicInterval("chr1", 1, 10)], build="hg38"))


def test_mixed_coordinate_systems_compare_on_declared_coordinates() -> None:
    closed = _set([GenomicInterval("chr1", 10, 10)], system=CoordinateSystem.ONE_BASED_CLOSED)
    touching = _set([GenomicInterval("chr1", 9, 10)])
    adjacent = _set([GenomicInterval("chr1", 10, 11)])

    assert len(overlaps_of(closed, touching)) == 1
    assert len(overlaps_of(closed, adjacent)) == 0


def test_strand_matching_is_optional() -> None:
    plus = _set([GenomicInterval("chr1", 10, 20, "+")])
    minus = _set([GenomicInterval("chr1", 10, 20, "-")])
    unstranded = _set([GenomicInterval("chr1", 10, 20)])

    assert len(overlaps_of(plus, minus)) == 1
    assert len(overlaps_of(plus, minus, strand_policy=StrandPolicy.MATCH)) == 0
    assert len(overlaps_of(plus, unstranded, strand_policy=StrandPolicy.MATCH)) == 1


def test_overlap_pairs_lists_every_intersection_in_order() -> None:
    left = _set([GenomicInterval("chr1", 10, 20, attributes={"v": 1}), GenomicInterval("chr1", 30, 40, attributes={"v": 2})])
    right = _set(
        [
            GenomicInterval("chr1", 35, 36, attributes={"s": "b"}),
            GenomicInterval("chr1", 0, 100, attributes={"s": "a"}),
            GenomicInterval("chr1", 15, 16, attributes={"s": "c"}),
        ]
    )

    pairs = overlap_pairs(left, right)

    assert [(l.attributes["v"], r.attributes["s"]) for l, r in pairs] == [
        (1, "a"),
        (1, "c"),
        (2, "b"),
        (2, "a"),
    ]
