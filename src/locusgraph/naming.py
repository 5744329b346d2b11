"""Sequence-name vocabularies and translation between naming conventions."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterable

import pandas as pd

from locusgraph.config import NamingConvention
from locusgraph.errors import SchemaError, UnmappableSequenceError


_HUMAN_PRIMARY: tuple[tuple[str, str], ...] = (
    *((f"chr{index}", str(index)) for index in range(1, 23)),
    ("chrX", "X"),
    ("chrY", "Y"),
    ("chrM", "MT"),
)

_HUMAN_BUILDS = {"hg19", "hg38", "grch37", "grch38"}


class SequenceNaming:
    """Bidirectional UCSC/accession name mapping for one genome build.

    A sequence may be known under one convention only (pass ``None`` or an
    empty string for the missing side); such names are valid in their own
    convention but cannot be translated.
    """

    def __init__(self, genome_build: str, pairs: Iterable[tuple[str | None, str | None]]) -> None:
        build = str(genome_build).strip()
        if not build:
            raise SchemaError("Genome build cannot be empty")

        self.genome_build = build
        self._names: dict[NamingConvention, dict[str, str | None]] = {
            NamingConvention.UCSC: {},
            NamingConvention.ACCESSION: {},
        }
        for raw_ucsc, raw_accession in pairs:
            ucsc = str(raw_ucsc).strip() if raw_ucsc is not None else ""
            accession = str(raw_accession).strip() if raw_accession is not None else ""
            if not ucsc and not accession:
                raise SchemaError(f"Blank sequence row in {build} naming table")
            self._add(NamingConvention.UCSC, ucsc, accession)
            self._add(NamingConvention.ACCESSION, accession, ucsc)

    def _add(self, convention: NamingConvention, name: str, counterpart: str) -> None:
        if not name:
            return
        names = self._names[convention]
        if name in names:
            raise SchemaError(f"Sequence listed twice in {self.genome_build} naming table: {name}")
        names[name] = counterpart or None

    def vocabulary(self, convention: NamingConvention) -> frozenset[str]:
        """Return every sequence name valid under ``convention``."""

        return frozenset(self._names[convention])

    def contains(self, name: str, convention: NamingConvention) -> bool:
        return name in self._names[convention]

    def translate(
        self,
        name: str,
        source: NamingConvention,
        target: NamingConvention,
    ) -> str:
        """Rewrite ``name`` from ``source`` into ``target`` convention."""

        if not self.contains(name, source):
            raise UnmappableSequenceError(
                f"Sequence '{name}' is not a {source.value} name in {self.genome_build}"
            )
        if source is target:
            return name
        counterpart = self._names[source][name]
        if counterpart is None:
            raise UnmappableSequenceError(
                f"Sequence '{name}' has no {target.value} name in {self.genome_build}"
            )
        return counterpart

    def canonical(self, name: str, convention: NamingConvention) -> str:
        """Name to use as a convention-independent key: UCSC where one exists."""

        if convention is NamingConvention.UCSC:
            return name
        if not self.contains(name, convention):
            raise UnmappableSequenceError(
                f"Sequence '{name}' is not a {convention.value} name in {self.genome_build}"
            )
        return self._names[convention][name] or name

    @classmethod
    def from_alias_table(
        cls,
        path: str | Path,
        genome_build: str,
        *,
        ucsc_column: str = "ucsc",
        accession_column: str = "accession",
    ) -> SequenceNaming:
        """Load a naming table with one row per sequence (CSV, or TSV by suffix)."""

        table_path = Path(path)
        sep = "\t" if table_path.suffix.lower() in {".tsv", ".txt"} else ","
        frame = pd.read_csv(table_path, sep=sep, dtype=str, keep_default_na=False)
        missing = {ucsc_column, accession_column} - set(frame.columns)
        if missing:
            raise SchemaError(
                f"{table_path}: naming table lacks columns {', '.join(sorted(missing))}"
            )
        return cls(genome_build, zip(frame[ucsc_column], frame[accession_column]))


@lru_cache(maxsize=None)
def naming_for_build(genome_build: str) -> SequenceNaming:
    """Return the built-in naming table for a supported genome build."""

    if genome_build.strip().lower() not in _HUMAN_BUILDS:
        raise SchemaError(
            f"No built-in sequence inventory for build '{genome_build}'. "
            f"Available: {', '.join(sorted(_HUMAN_BUILDS))}"
        )
    return SequenceNaming(genome_build.strip(), _HUMAN_PRIMARY)
