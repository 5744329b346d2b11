"""Gene symbol enrichment for variant records."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from locusgraph.errors import SchemaError
from locusgraph.intervals import IntervalSet


_VERSION_RE = re.compile(r"^(ENS[A-Z]*[GT]\d+)\.\d+$")


def strip_version(identifier: str) -> str:
    """Drop a trailing Ensembl version, e.g. ``ENSG00000141736.9`` -> ``ENSG00000141736``."""

    cleaned = identifier.strip()
    match = _VERSION_RE.match(cleaned)
    return match.group(1) if match else cleaned


class GeneSymbolLookup(ABC):
    """Maps stripped gene/transcript identifiers to display symbols."""

    @abstractmethod
    def lookup(self, ids: set[str]) -> dict[str, str | None]:
        """Return a symbol (or ``None``) for every requested identifier."""


class TableGeneSymbolLookup(GeneSymbolLookup):
    """Lookup backed by a two-column table of identifiers and symbols."""

    def __init__(self, frame: pd.DataFrame, *, id_column: str = "gene_id", symbol_column: str = "symbol"):
        missing = {id_column, symbol_column} - set(frame.columns)
        if missing:
            raise SchemaError(f"Symbol table lacks columns {', '.join(sorted(missing))}")

        self._symbols: dict[str, str] = {}
        for gene_id, symbol in zip(frame[id_column], frame[symbol_column]):
            if pd.isna(gene_id) or pd.isna(symbol) or not str(symbol).strip():
                continue
            self._symbols.setdefault(strip_version(str(gene_id)), str(symbol).strip())

    @classmethod
    def from_csv(cls, path: str | Path, **kwargs: str) -> TableGeneSymbolLookup:
        table_path = Path(path)
        sep = "\t" if table_path.suffix.lower() in {".tsv", ".txt"} else ","
        return cls(pd.read_csv(table_path, sep=sep, dtype=str), **kwargs)

    def lookup(self, ids: set[str]) -> dict[str, str | None]:
        return {gene_id: self._symbols.get(gene_id) for gene_id in ids}


def _identifiers(intervals: IntervalSet, id_attribute: str) -> Iterable[str]:
    for record in intervals:
        value = record.attributes.get(id_attribute)
        if value is not None:
            yield strip_version(str(value))


def enrich_with_symbols(
    intervals: IntervalSet,
    lookup: GeneSymbolLookup,
    *,
    id_attribute: str = "gene_id",
    symbol_attribute: str = "gene_symbol",
) -> IntervalSet:
    """Return a copy of ``intervals`` with ``symbol_attribute`` filled in.

    Records without ``id_attribute``, or whose identifier has no symbol, are
    kept unchanged. Existing symbol values are never overwritten.
    """

    ids = set(_identifiers(intervals, id_attribute))
    if not ids:
        return intervals.derive(intervals)

    symbols = lookup.lookup(ids)
    records = []
    for record in intervals:
        value = record.attributes.get(id_attribute)
        symbol = symbols.get(strip_version(str(value))) if value is not None else None
        if symbol is None or record.attributes.get(symbol_attribute) not in (None, "", "nan", "NaN"):
            records.append(record)
            continue
        records.append(record.with_attributes(**{symbol_attribute: symbol}))
    return intervals.derive(records)
