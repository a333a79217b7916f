"""
Reconciliation Engine - Identity-Keyed Record Merge

Combines the live record set with an incoming batch. Records sharing an id
collapse into one; populated incoming values win field by field, blank
incoming values never erase known ones.

Records without an identity are always appended as new records.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from core.ingestion.normalizer import RecordNormalizer
from core.ingestion.schema import FieldSchema, InvalidBatchError
from core.models import DEFAULT_TAG, Record, TAG_FIELD


logger = logging.getLogger(__name__)


def is_populated(value: Any) -> bool:
    """A value counts as supplied unless it is None or an empty string."""
    return value is not None and value != ""


def merge_fields(existing: Record, incoming: Record) -> Record:
    """
    Merge one incoming record into an existing record with the same id.

    Every populated incoming field overwrites; blanks keep the existing
    value. An explicit incoming tag always wins.
    """
    fields = dict(existing.fields)
    for name, value in incoming.fields.items():
        if name == TAG_FIELD:
            continue
        if is_populated(value):
            fields[name] = value

    tag = incoming.fields.get(TAG_FIELD)
    if is_populated(tag):
        fields[TAG_FIELD] = str(tag).lower()

    return Record(id=existing.id, kind=existing.kind, fields=fields)


def _with_default_tag(record: Record) -> Record:
    """Copy a record for insertion, assigning the inbox tag when unset."""
    inserted = record.copy()
    if not is_populated(inserted.fields.get(TAG_FIELD)):
        inserted.fields[TAG_FIELD] = DEFAULT_TAG
    return inserted


def _coerce_batch(
    incoming: Any,
    schema: Optional[FieldSchema],
) -> list[Record]:
    """
    Validate the batch shape and normalise every row.

    Nothing is applied unless the whole batch is well formed.

    Raises:
        InvalidBatchError: If the payload is not a list of rows
    """
    if not isinstance(incoming, (list, tuple)):
        raise InvalidBatchError(
            f"Expected a list of rows, got {type(incoming).__name__}"
        )

    normalizer = RecordNormalizer(schema) if schema is not None else None
    records: list[Record] = []
    for position, row in enumerate(incoming):
        if isinstance(row, Record):
            records.append(row)
        elif isinstance(row, Mapping):
            if normalizer is None:
                raise InvalidBatchError("Raw rows require a field schema to normalise")
            records.append(normalizer.normalize(row))
        else:
            raise InvalidBatchError(
                f"Row {position} is not a mapping: {type(row).__name__}"
            )
    return records


def merge_records(
    existing: Sequence[Record],
    incoming: Any,
    schema: Optional[FieldSchema] = None,
) -> list[Record]:
    """
    Reconcile an incoming batch against the current record set.

    Args:
        existing: Current record set (not modified)
        incoming: List of raw rows and/or normalised Records
        schema: Field schema used to normalise raw rows

    Returns:
        New record set: existing order preserved, new records appended
        in incoming order

    Raises:
        InvalidBatchError: If the batch is not a list of rows
    """
    batch = _coerce_batch(incoming, schema)

    merged = [record.copy() for record in existing]
    index: dict[str, int] = {
        record.id: position
        for position, record in enumerate(merged)
        if record.id is not None
    }

    inserted = updated = unidentified = 0
    for record in batch:
        if record.id is None:
            merged.append(_with_default_tag(record))
            unidentified += 1
            continue

        position = index.get(record.id)
        if position is None:
            index[record.id] = len(merged)
            merged.append(_with_default_tag(record))
            inserted += 1
        else:
            merged[position] = merge_fields(merged[position], record)
            updated += 1

    logger.debug(
        "Merged batch of %d: %d inserted, %d merged, %d without identity",
        len(batch),
        inserted,
        updated,
        unidentified,
    )
    return merged
