"""
Record Normaliser - Raw Row to Canonical Record

Every row entering the engine (manual form, CSV row, JSON element, stored
blob) passes through here. Coercion is driven entirely by the record kind's
FieldSchema.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.ingestion.schema import (
    FieldSchema,
    to_boolean,
    to_number,
    to_text,
)
from core.models import Record, TAG_FIELD


class RecordNormalizer:
    """
    Normalises raw key-value rows against one field schema.

    Never raises for malformed values. A row that is not a mapping is
    treated as empty.
    """

    def __init__(self, schema: FieldSchema) -> None:
        self._schema = schema

    @property
    def schema(self) -> FieldSchema:
        return self._schema

    def normalize(self, raw: Any) -> Record:
        """
        Coerce a raw row into a Record.

        Args:
            raw: Mapping of raw values, or an existing Record to re-normalise

        Returns:
            Record with every declared field coerced and an id derived
        """
        if isinstance(raw, Record):
            raw = raw.to_row()
        if not isinstance(raw, Mapping):
            raw = {}

        schema = self._schema
        fields: dict[str, Any] = {}

        for name in schema.strings:
            fields[name] = to_text(raw.get(name))
        for name in schema.numbers:
            fields[name] = to_number(raw.get(name))
        for name in schema.booleans:
            fields[name] = to_boolean(raw.get(name))

        # Blank tags stay unset so a merge never resets an existing tag
        if schema.lower_tags:
            tag = to_text(raw.get(TAG_FIELD)).lower()
            if tag:
                fields[TAG_FIELD] = tag

        for name in schema.passthrough:
            if name in raw:
                fields[name] = raw[name]

        record_id = schema.derive_identity({**raw, **fields})
        return Record(id=record_id, kind=schema.kind, fields=fields)

    __call__ = normalize


def normalize_record(raw: Any, schema: FieldSchema) -> Record:
    """Convenience wrapper for one-off normalisation."""
    return RecordNormalizer(schema).normalize(raw)
