"""
Data models for the triage engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


TAG_FIELD = "Tag"
DEFAULT_TAG = "inbox"


class RecordKind(Enum):
    """
    Record type a listing belongs to.

    Each kind has its own field schema, derived metrics and ordering.
    """
    LAND = "land"
    MULTI_UNIT = "multi"
    SINGLE_FAMILY = "single"

    @classmethod
    def from_string(cls, value: str) -> Optional["RecordKind"]:
        """Convert string to RecordKind, case-insensitive."""
        normalised = str(value or "").lower().strip().replace("_", "-")
        aliases = {
            "parcel": cls.LAND,
            "multi-unit": cls.MULTI_UNIT,
            "multifamily": cls.MULTI_UNIT,
            "single-family": cls.SINGLE_FAMILY,
            "sfh": cls.SINGLE_FAMILY,
        }
        for member in cls:
            if member.value == normalised:
                return member
        return aliases.get(normalised)


@dataclass
class Record:
    """
    A canonical listing record.

    ``fields`` holds the coerced raw attributes declared by the record's
    field schema (strings are ``""`` when absent, numbers and tri-state
    booleans are ``None``). ``id`` is derived from identity fields only and
    is ``None`` for records that carry no identity.

    ``metrics`` is attached by the annotation pass and is never compared
    or persisted.
    """
    id: Optional[str]
    kind: RecordKind
    fields: Dict[str, Any] = field(default_factory=dict)
    metrics: Optional[Any] = field(default=None, compare=False, repr=False)

    @property
    def tag(self) -> str:
        """Effective workflow tag (``inbox`` when unset)."""
        value = self.fields.get(TAG_FIELD)
        if value is None:
            return DEFAULT_TAG
        tag = str(value).strip().lower()
        return tag or DEFAULT_TAG

    @property
    def has_identity(self) -> bool:
        return self.id is not None

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field value, or ``default`` when the field is undeclared."""
        return self.fields.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def copy(self) -> "Record":
        """Shallow copy of identity and fields, without metrics."""
        return Record(id=self.id, kind=self.kind, fields=dict(self.fields))

    def to_row(self) -> Dict[str, Any]:
        """Flat dictionary form used for persistence and re-import."""
        row = dict(self.fields)
        row["id"] = self.id
        return row
