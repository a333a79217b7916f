"""
Parcel Scout - Ingestion Layer

Field schemas, the record normaliser and the reconciliation engine.

Every row entering the engine, whatever its source (manual form, CSV bulk
paste, JSON import, stored blob), is normalised against its record kind's
FieldSchema and merged into the live record set by identity.
"""

from core.ingestion.schema import (
    FieldSchema,
    InvalidBatchError,
    LAND_SCHEMA,
    MULTI_UNIT_SCHEMA,
    SINGLE_FAMILY_SCHEMA,
    SCHEMAS,
    DEFAULT_IDENTITY_FIELDS,
    get_schema,
    identity_from,
    join_identity,
    to_boolean,
    to_number,
    to_text,
)
from core.ingestion.normalizer import RecordNormalizer, normalize_record
from core.ingestion.merge import is_populated, merge_fields, merge_records

__all__ = [
    # Schema
    "FieldSchema",
    "LAND_SCHEMA",
    "MULTI_UNIT_SCHEMA",
    "SINGLE_FAMILY_SCHEMA",
    "SCHEMAS",
    "DEFAULT_IDENTITY_FIELDS",
    "get_schema",
    "identity_from",
    "join_identity",
    # Coercion
    "to_boolean",
    "to_number",
    "to_text",
    # Normaliser
    "RecordNormalizer",
    "normalize_record",
    # Reconciliation
    "InvalidBatchError",
    "is_populated",
    "merge_fields",
    "merge_records",
]
