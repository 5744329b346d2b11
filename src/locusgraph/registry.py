"""Ragged assay x sample registry of remote collections."""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Iterator

import pandas as pd

from locusgraph.errors import DuplicateKeyError, NotFoundError
from locusgraph.models import CollectionDescriptor

LabelPredicate = Callable[[str], bool] | Collection[str]


def _as_predicate(predicate: LabelPredicate) -> Callable[[str], bool]:
    if callable(predicate):
        return predicate
    if isinstance(predicate, str):
        wanted = {predicate}
    else:
        wanted = set(predicate)
    return lambda label: label in wanted


class RaggedCollectionRegistry:
    """Registry whose rows are assay types and whose columns are sample bases.

    Each ``(assay_type, sample_base)`` cell holds at most one
    :class:`~locusgraph.models.CollectionDescriptor`. Row and column selections
    return narrowed views that share the same descriptors; nothing is copied
    and no remote access happens here.
    """

    def __init__(self, descriptors: Iterable[CollectionDescriptor]) -> None:
        self._cells: dict[tuple[str, str], CollectionDescriptor] = {}
        self._by_name: dict[str, CollectionDescriptor] = {}

        for descriptor in descriptors:
            cell = descriptor.cell()
            if cell in self._cells:
                raise DuplicateKeyError(
                    f"Cell {cell} already holds '{self._cells[cell].name}', "
                    f"cannot add '{descriptor.name}'"
                )
            if descriptor.name in self._by_name:
                raise DuplicateKeyError(f"Collection name registered twice: {descriptor.name}")
            self._cells[cell] = descriptor
            self._by_name[descriptor.name] = descriptor

    def _view(self, keep: Callable[[CollectionDescriptor], bool]) -> RaggedCollectionRegistry:
        return RaggedCollectionRegistry(
            descriptor for descriptor in self._cells.values() if keep(descriptor)
        )

    def select_rows(self, predicate: LabelPredicate) -> RaggedCollectionRegistry:
        """Keep rows whose assay type satisfies ``predicate``.

        ``predicate`` is either a callable on the assay type or a collection of
        assay types to keep.
        """

        test = _as_predicate(predicate)
        return self._view(lambda descriptor: bool(test(descriptor.assay_type)))

    def select_columns(self, predicate: LabelPredicate) -> RaggedCollectionRegistry:
        """Keep columns whose sample base satisfies ``predicate``."""

        test = _as_predicate(predicate)
        return self._view(lambda descriptor: bool(test(descriptor.sample_base)))

    def resolve(self, row: str, col: str) -> CollectionDescriptor:
        """Return the descriptor at ``(row, col)``; raise NotFoundError if the cell is empty."""

        try:
            return self._cells[(row, col)]
        except KeyError:
            raise NotFoundError(
                f"No collection for assay '{row}' and sample '{col}'. "
                f"Rows: {', '.join(self.rows()) or '-'}; columns: {', '.join(self.columns()) or '-'}"
            ) from None

    def get(self, name: str) -> CollectionDescriptor:
        """Return a descriptor by logical name."""

        try:
            return self._by_name[name]
        except KeyError:
            raise NotFoundError(f"Unknown collection '{name}'") from None

    def rows(self) -> list[str]:
        """Assay types present in this view, in first-seen order."""

        return list(dict.fromkeys(row for row, _ in self._cells))

    def columns(self) -> list[str]:
        """Sample bases present in this view, in first-seen order."""

        return list(dict.fromkeys(col for _, col in self._cells))

    def to_frame(self) -> pd.DataFrame:
        """Tabulate the view, one row per populated cell."""

        return pd.DataFrame(
            [
                {
                    "name": descriptor.name,
                    "assay_type": descriptor.assay_type,
                    "sample_base": descriptor.sample_base,
                    "database": descriptor.handle.database,
                    "collection": descriptor.handle.collection,
                    "genome_build": descriptor.genome_build,
                }
                for descriptor in self
            ],
            columns=["name", "assay_type", "sample_base", "database", "collection", "genome_build"],
        )

    def __iter__(self) -> Iterator[CollectionDescriptor]:
        """Iterate populated cells row by row, rows and columns in first-seen order."""

        for row in self.rows():
            for col in self.columns():
                descriptor = self._cells.get((row, col))
                if descriptor is not None:
                    yield descriptor

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, cell: object) -> bool:
        return cell in self._cells

    def __repr__(self) -> str:
        return (
            f"RaggedCollectionRegistry({len(self)} collections, "
            f"{len(self.rows())} rows x {len(self.columns())} columns)"
        )
