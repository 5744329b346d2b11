"""Annotation table loading for the collection registry."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from locusgraph.errors import SchemaError
from locusgraph.models import CollectionDescriptor, RemoteHandle
from locusgraph.registry import RaggedCollectionRegistry


ANNOTATION_COLUMNS: tuple[str, ...] = (
    "name",
    "assay_type",
    "sample_base",
    "database",
    "collection",
)

DEFAULT_GENOME_BUILD = "hg19"


def _is_table_like(path: Path) -> bool:
    name = path.name.lower()
    return name.endswith((".csv", ".csv.gz", ".tsv", ".tsv.gz", ".txt"))


class AnnotationTableLoader:
    """Read annotation rows and build a :class:`RaggedCollectionRegistry`.

    Every row must provide ``name``, ``assay_type``, ``sample_base``,
    ``database`` and ``collection``; ``genome_build`` is optional and falls back
    to ``default_genome_build``. Blank required values fail loudly.
    """

    def __init__(self, *, default_genome_build: str = DEFAULT_GENOME_BUILD) -> None:
        self.default_genome_build = default_genome_build

    def load(self, path: str | Path) -> RaggedCollectionRegistry:
        table_path = Path(path)
        if not table_path.exists():
            raise FileNotFoundError(f"Annotation table not found: {table_path}")
        if not _is_table_like(table_path):
            raise SchemaError(f"Unsupported annotation table format: {table_path.name}")

        sep = "\t" if ".tsv" in table_path.name.lower() or table_path.suffix == ".txt" else ","
        frame = pd.read_csv(table_path, sep=sep, dtype=str, keep_default_na=False)
        return self.from_frame(frame, source=str(table_path))

    def from_frame(self, frame: pd.DataFrame, *, source: str = "<frame>") -> RaggedCollectionRegistry:
        missing = [column for column in ANNOTATION_COLUMNS if column not in frame.columns]
        if missing:
            raise SchemaError(f"{source}: annotation table lacks columns {', '.join(missing)}")

        descriptors = [
            self._to_descriptor(row, line, source)
            for line, row in enumerate(frame.to_dict(orient="records"), start=1)
        ]
        return RaggedCollectionRegistry(descriptors)

    def _to_descriptor(self, row: dict[str, Any], line: int, source: str) -> CollectionDescriptor:
        values = {column: self._to_string(row.get(column)) for column in ANNOTATION_COLUMNS}
        blank = [column for column, value in values.items() if value is None]
        if blank:
            raise SchemaError(f"{source} row {line}: blank {', '.join(blank)}")

        return CollectionDescriptor(
            name=values["name"],
            assay_type=values["assay_type"],
            sample_base=values["sample_base"],
            handle=RemoteHandle(database=values["database"], collection=values["collection"]),
            genome_build=self._to_string(row.get("genome_build")) or self.default_genome_build,
        )

    @staticmethod
    def _to_string(value: Any) -> str | None:
        if value is None or pd.isna(value):
            return None
        cleaned = str(value).strip()
        return cleaned or None
