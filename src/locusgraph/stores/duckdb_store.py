"""DuckDB-backed document store: one database file per database, one table per collection."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import duckdb
import pandas as pd

from locusgraph.errors import NotFoundError, RemoteUnavailableError, SchemaError
from locusgraph.stores.base import DocumentStore, RecordFilter


_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _checked(name: str, kind: str) -> str:
    if not _NAME_RE.match(name):
        raise ValueError(f"Unsafe {kind} name: {name}")
    return name


class DuckDBDocumentStore(DocumentStore):
    """Query collections stored as DuckDB tables under ``root``.

    Every ``find`` opens its own read-only connection, so independent queries
    can run from several threads without sharing connection state.
    """

    def __init__(self, *, root: str | Path, suffix: str = ".duckdb") -> None:
        self.root = Path(root)
        self.suffix = suffix

    def database_path(self, database: str) -> Path:
        return self.root / f"{_checked(database, 'database')}{self.suffix}"

    def write(
        self,
        database: str,
        collection: str,
        records: Iterable[Mapping[str, Any]],
    ) -> None:
        """Create or replace ``collection`` from ``records``."""

        table = _checked(collection, "collection")
        frame = pd.DataFrame([dict(record) for record in records])
        if frame.empty:
            raise ValueError(f"Cannot create collection {database}.{collection} without records")

        db_path = self.database_path(database)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        connection = duckdb.connect(str(db_path))
        try:
            connection.register("collection_frame", frame)
            connection.execute(f'CREATE OR REPLACE TABLE "{table}" AS SELECT * FROM collection_frame')
        finally:
            connection.close()

    def find(
        self,
        database: str,
        collection: str,
        record_filter: RecordFilter,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        table = _checked(collection, "collection")
        db_path = self.database_path(database)
        if not db_path.exists():
            raise RemoteUnavailableError(f"Database {database} is not reachable at {db_path}")

        try:
            connection = duckdb.connect(str(db_path), read_only=True)
        except duckdb.Error as exc:
            raise RemoteUnavailableError(f"Cannot open database {database}: {exc}") from exc

        try:
            columns = self._columns(connection, table)
            if not columns:
                raise NotFoundError(f"Unknown collection {database}.{collection}")
            missing = record_filter.fields() - columns
            if missing:
                raise SchemaError(
                    f"Collection {database}.{collection} has no column "
                    f"{', '.join(sorted(missing))}"
                )

            sql, params = self._compile(table, record_filter, limit)
            cursor = connection.execute(sql, params)
            names = [item[0] for item in cursor.description]
            return [dict(zip(names, row)) for row in cursor.fetchall()]
        except (duckdb.IOException, duckdb.ConnectionException, duckdb.InterruptException) as exc:
            raise RemoteUnavailableError(
                f"Query against {database}.{collection} failed: {exc}"
            ) from exc
        except duckdb.CatalogException as exc:
            raise NotFoundError(f"Unknown collection {database}.{collection}: {exc}") from exc
        except (duckdb.ConversionException, duckdb.BinderException, duckdb.TypeMismatchException) as exc:
            raise SchemaError(
                f"Filter does not fit the columns of {database}.{collection}: {exc}"
            ) from exc
        finally:
            connection.close()

    @staticmethod
    def _columns(connection: duckdb.DuckDBPyConnection, table: str) -> set[str]:
        rows = connection.execute(
            "SELECT column_name FROM information_schema.columns WHERE table_name = ?",
            [table],
        ).fetchall()
        return {row[0] for row in rows}

    @staticmethod
    def _compile(
        table: str,
        record_filter: RecordFilter,
        limit: int | None,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        for name, value in record_filter.equals.items():
            clauses.append(f'"{_checked(name, "field")}" = ?')
            params.append(value)

        for name, (low, high) in record_filter.ranges.items():
            column = f'"{_checked(name, "field")}"'
            if low is not None:
                clauses.append(f"{column} >= ?")
                params.append(low)
            if high is not None:
                clauses.append(f"{column} <= ?")
                params.append(high)

        sql = f'SELECT * FROM "{table}"'
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY rowid"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return sql, params
