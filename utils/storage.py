"""
Local JSON blob store.

Persists one record set per record kind as a JSON array under a data
directory. Reads never raise; unusable blobs load as an empty list.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from core.models import RecordKind


logger = logging.getLogger(__name__)


STORAGE_KEYS = {
    RecordKind.LAND: "parcelscout.rows",
    RecordKind.MULTI_UNIT: "parcelscout.multi",
    RecordKind.SINGLE_FAMILY: "parcelscout.single",
}


def storage_key_for(kind: Union[RecordKind, str]) -> str:
    """
    Blob key for a record kind.

    Raises:
        ValueError: If the kind is not recognised
    """
    if not isinstance(kind, RecordKind):
        resolved = RecordKind.from_string(kind)
        if resolved is None:
            raise ValueError(f"Unknown record kind: {kind}")
        kind = resolved
    return STORAGE_KEYS[kind]


class JsonBlobStore:
    """Key-value store of JSON arrays, one file per key."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> List[Dict[str, Any]]:
        """
        Load the rows stored under a key.

        Returns:
            Stored rows, or [] when the blob is missing, corrupt or not an array
        """
        path = self.path_for(key)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return []
        if not isinstance(payload, list):
            logger.warning("Ignoring %s: expected a JSON array", path)
            return []
        return [row for row in payload if isinstance(row, dict)]

    def save(self, key: str, rows: List[Dict[str, Any]]) -> bool:
        """
        Write rows under a key.

        Returns:
            True on success, False if the write failed
        """
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Could not write %s: %s", path, e)
            return False
        return True

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
