"""Error kinds raised by locusgraph.

Every error also derives from the built-in exception a caller would naturally
catch, so ``except KeyError`` around a registry lookup keeps working.
"""

from __future__ import annotations


class LocusGraphError(Exception):
    """Base class for all locusgraph errors."""


class SchemaError(LocusGraphError, ValueError):
    """Malformed or inconsistent interval records or annotation rows."""


class ConventionMismatchError(LocusGraphError, ValueError):
    """Two inputs use incompatible naming conventions or genome builds."""


class UnmappableSequenceError(LocusGraphError, KeyError):
    """A sequence name has no translation into the requested convention."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class NotFoundError(LocusGraphError, KeyError):
    """A registry cell or remote collection does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DuplicateKeyError(LocusGraphError, ValueError):
    """Two annotation rows claim the same registry cell or logical name."""


class RemoteUnavailableError(LocusGraphError, ConnectionError):
    """The remote store could not be reached or failed while answering."""


class InconsistentEvidenceError(LocusGraphError, ValueError):
    """Overlap evidence references records outside the node identity scheme."""
