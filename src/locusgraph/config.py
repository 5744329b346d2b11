"""Configuration contracts for locusgraph queries and runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from jsonschema import FormatChecker
from jsonschema.validators import validator_for

from locusgraph.errors import SchemaError


class NamingConvention(str, Enum):
    """Textual scheme used for sequence names."""

    UCSC = "ucsc"  # chr17
    ACCESSION = "accession"  # 17


class CoordinateSystem(str, Enum):
    """How ``start``/``end`` of a record are to be read."""

    ZERO_BASED_HALF_OPEN = "zero_based_half_open"
    ONE_BASED_CLOSED = "one_based_closed"


class OverlapDirection(str, Enum):
    """Which side of an overlap join is returned."""

    SUBJECT_FILTERED_BY_QUERY = "subjectFilteredByQuery"
    QUERY_FILTERED_BY_SUBJECT = "queryFilteredBySubject"


class StrandPolicy(str, Enum):
    """Whether strand participates in overlap tests."""

    IGNORE = "ignore"
    MATCH = "match"


class MergePolicy(str, Enum):
    """How records with identical coordinates from one collection are treated."""

    DISTINCT = "distinct"
    MERGE = "merge"


@dataclass(frozen=True)
class RecordFieldMap:
    """Field names used by stored records for interval coordinates."""

    seqname: str = "seqname"
    start: str = "start"
    end: str = "end"
    strand: str = "strand"
    ignored: tuple[str, ...] = ("_id",)

    def coordinate_fields(self) -> tuple[str, ...]:
        return (self.seqname, self.start, self.end, self.strand)


DEFAULT_ASSAY_CONVENTIONS: Mapping[str, NamingConvention] = {
    "eQTL": NamingConvention.ACCESSION,
}


@dataclass(frozen=True)
class QuerySettings:
    """Store-facing settings for overlap queries.

    ``assay_conventions`` maps assay types to the naming convention their
    remote collections are keyed by. Assay types not listed use
    ``default_convention``. Lookups ignore case.
    """

    assay_conventions: Mapping[str, NamingConvention] = field(
        default_factory=lambda: dict(DEFAULT_ASSAY_CONVENTIONS)
    )
    default_convention: NamingConvention = NamingConvention.UCSC
    store_coordinate_system: CoordinateSystem = CoordinateSystem.ZERO_BASED_HALF_OPEN
    fields: RecordFieldMap = field(default_factory=RecordFieldMap)
    strand_policy: StrandPolicy = StrandPolicy.IGNORE
    merge_policy: MergePolicy = MergePolicy.DISTINCT

    def convention_for(self, assay_type: str) -> NamingConvention:
        """Return the store naming convention for an assay type."""

        wanted = assay_type.strip().casefold()
        for name, convention in self.assay_conventions.items():
            if name.strip().casefold() == wanted:
                return convention
        return self.default_convention

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> QuerySettings:
        """Build settings from the ``query`` section of a run configuration."""

        payload = payload or {}
        conventions = dict(DEFAULT_ASSAY_CONVENTIONS)
        for assay_type, raw in payload.get("assay_conventions", {}).items():
            conventions[str(assay_type)] = NamingConvention(str(raw).lower())

        raw_fields = dict(payload.get("fields", {}))
        if "ignored" in raw_fields:
            raw_fields["ignored"] = tuple(raw_fields["ignored"])

        return cls(
            assay_conventions=conventions,
            default_convention=NamingConvention(
                str(payload.get("default_convention", "ucsc")).lower()
            ),
            store_coordinate_system=CoordinateSystem(
                str(payload.get("store_coordinate_system", "zero_based_half_open")).lower()
            ),
            fields=RecordFieldMap(**raw_fields),
            strand_policy=StrandPolicy(str(payload.get("strand_policy", "ignore")).lower()),
            merge_policy=MergePolicy(str(payload.get("merge_policy", "distinct")).lower()),
        )


_NAMING_VALUES = [item.value for item in NamingConvention]
_SYSTEM_VALUES = [item.value for item in CoordinateSystem]

_INTERVAL_SOURCE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["label", "path", "genome_build", "convention"],
    "properties": {
        "label": {"type": "string", "minLength": 1},
        "path": {"type": "string", "minLength": 1},
        "genome_build": {"type": "string", "minLength": 1},
        "convention": {"enum": _NAMING_VALUES},
        "coordinate_system": {"enum": _SYSTEM_VALUES},
    },
}

RUN_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["annotation_table", "store", "region", "binding_sites"],
    "properties": {
        "annotation_table": {"type": "string", "minLength": 1},
        "store": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "type": {"enum": ["duckdb"]},
                "params": {"type": "object"},
            },
        },
        "region": {
            "type": "object",
            "required": ["seqname", "start", "end", "genome_build", "convention"],
            "properties": {
                "seqname": {"type": "string", "minLength": 1},
                "start": {"type": "integer", "minimum": 0},
                "end": {"type": "integer", "minimum": 0},
                "strand": {"enum": ["+", "-", None]},
                "genome_build": {"type": "string", "minLength": 1},
                "convention": {"enum": _NAMING_VALUES},
                "coordinate_system": {"enum": _SYSTEM_VALUES},
            },
        },
        "select": {
            "type": "object",
            "properties": {
                "assay_types": {"type": "array", "items": {"type": "string"}},
                "samples": {"type": "array", "items": {"type": "string"}},
            },
        },
        "query": {
            "type": "object",
            "properties": {
                "limit": {"type": ["integer", "null"], "minimum": 1},
                "assay_conventions": {
                    "type": "object",
                    "additionalProperties": {"enum": _NAMING_VALUES},
                },
                "default_convention": {"enum": _NAMING_VALUES},
                "store_coordinate_system": {"enum": _SYSTEM_VALUES},
                "strand_policy": {"enum": [item.value for item in StrandPolicy]},
                "merge_policy": {"enum": [item.value for item in MergePolicy]},
                "fields": {"type": "object"},
            },
        },
        "binding_sites": {
            "type": "array",
            "minItems": 1,
            "items": _INTERVAL_SOURCE_SCHEMA,
        },
        "graph": {
            "type": "object",
            "properties": {
                "variant_key": {"type": "string", "minLength": 1},
                "site_key": {"type": ["string", "null"]},
                "factor_attribute": {"type": "string", "minLength": 1},
            },
        },
        "gene_symbols": {"type": "string"},
        "output": {
            "type": "object",
            "properties": {
                "nodes": {"type": "string"},
                "edges": {"type": "string"},
            },
        },
    },
}


def validate_run_config(payload: Any) -> dict[str, Any]:
    """Validate a run configuration document, reporting every violation."""

    validator_cls = validator_for(RUN_CONFIG_SCHEMA)
    validator = validator_cls(RUN_CONFIG_SCHEMA, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(payload), key=lambda err: [str(part) for part in err.path])
    if errors:
        details = "; ".join(
            f"/{'/'.join(str(part) for part in err.path)}: {err.message}" for err in errors
        )
        raise SchemaError(f"Invalid run configuration: {details}")
    return dict(payload)


def load_run_config(path: str | Path) -> dict[str, Any]:
    """Load and validate a JSON run configuration."""

    config_path = Path(path)
    try:
        payload = json.loads(config_path.read_text())
    except json.JSONDecodeError as exc:
        raise SchemaError(f"{config_path}: not valid JSON ({exc.msg})") from exc
    return validate_run_config(payload)
