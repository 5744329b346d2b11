"""Remote document store backends used by overlap queries."""

from .base import DocumentStore, RecordFilter
from .duckdb_store import DuckDBDocumentStore
from .memory import InMemoryDocumentStore

__all__ = ["DocumentStore", "RecordFilter", "InMemoryDocumentStore", "DuckDBDocumentStore"]
