"""
Row parsers and record exporters.

Parsing turns CSV text (bulk paste or file) and JSON arrays into raw rows
for the merge engine. Exporting writes records back out in the per-kind
column order, so an export can be re-imported unchanged.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from core.ingestion import FieldSchema, InvalidBatchError
from core.models import Record, TAG_FIELD


# =============================================================================
# Parsing
# =============================================================================


def parse_csv_text(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text with a header row into raw rows.

    Blank lines and rows with no values are skipped. Header names are
    trimmed.
    """
    if not text or not text.strip():
        return []
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

    rows = []
    for row in reader:
        values = {k: v for k, v in row.items() if k is not None}
        if not any(str(v or "").strip() for v in values.values()):
            continue
        rows.append(values)
    return rows


def parse_json_rows(text: str) -> List[Dict[str, Any]]:
    """
    Parse a JSON import payload.

    Raises:
        InvalidBatchError: If the text is not JSON or not an array
    """
    try:
        payload = json.loads(text)
    except ValueError as e:
        raise InvalidBatchError(f"Invalid JSON: {e}") from e
    if not isinstance(payload, list):
        raise InvalidBatchError(
            f"Expected a JSON array of rows, got {type(payload).__name__}"
        )
    return payload


def read_rows(path: Union[str, Path]) -> List[Any]:
    """
    Read raw rows from a .json or .csv file (anything else is read as CSV).

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8 text
        InvalidBatchError: If a JSON file does not hold an array
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_json_rows(text)
    return parse_csv_text(text)


# =============================================================================
# Exporting
# =============================================================================


def _export_value(record: Record, header: str) -> Any:
    if header == TAG_FIELD:
        return record.tag
    return record.get(header)


def export_rows(records: Sequence[Record], schema: FieldSchema) -> List[Dict[str, Any]]:
    """Records as ordered dictionaries in the schema's export column order."""
    return [
        {header: _export_value(record, header) for header in schema.export_headers}
        for record in records
    ]


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(records: Sequence[Record], schema: FieldSchema) -> str:
    """CSV text with a header row; missing values are empty cells."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(schema.export_headers)
    for row in export_rows(records, schema):
        writer.writerow([_csv_cell(v) for v in row.values()])
    return buffer.getvalue()


def to_json(records: Sequence[Record], schema: FieldSchema) -> str:
    """JSON array of export rows; missing values are null."""
    return json.dumps(export_rows(records, schema), indent=2)
