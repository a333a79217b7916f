"""
Field Schemas - Canonical Record Normalisation Rules

A field schema is plain configuration: it declares which raw keys are
strings, numbers or tri-state booleans for one record kind, whether the
workflow tag is lower-cased, and how identity is derived. The same
normaliser serves every record kind.

All coercions in this module are total: malformed values collapse to the
absence value for their type and never raise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Final, Iterable, Mapping, Optional, Union

from core.models import RecordKind, TAG_FIELD


Number = Union[int, float]
IdentityFunction = Callable[[Mapping[str, Any]], Optional[str]]


TRUE_TOKENS: Final = frozenset({"1", "true", "yes", "y"})
FALSE_TOKENS: Final = frozenset({"0", "false", "no", "n"})

# Location-like fields joined into an id when a schema has no identity function
DEFAULT_IDENTITY_FIELDS: Final = ("State", "County", "Town", "Parcel")
ID_SEPARATOR: Final = "|"


class InvalidBatchError(ValueError):
    """Raised when an import payload is not a collection of rows."""


# =============================================================================
# Coercion
# =============================================================================


def to_number(value: Any) -> Optional[Number]:
    """
    Coerce a raw value to a finite number.

    Empty, missing, unparseable and non-finite values become None.
    Integer text stays an int; other numeric text becomes a float.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None

    text = str(value).strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_boolean(value: Any) -> Optional[bool]:
    """
    Coerce a raw value to a tri-state boolean.

    Unknown is a real third state: anything not recognised returns None,
    which callers must not read as False.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        value = int(value)
    token = str(value).strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    return None


def to_text(value: Any) -> str:
    """Coerce a raw value to a trimmed string ("" when absent)."""
    if value is None:
        return ""
    return str(value).strip()


def join_identity(values: Iterable[Any]) -> Optional[str]:
    """Lower-case, trim and pipe-join the non-empty identity values."""
    parts = [to_text(v).lower() for v in values]
    parts = [p for p in parts if p]
    return ID_SEPARATOR.join(parts) if parts else None


def identity_from(*field_names: str) -> IdentityFunction:
    """Build an identity function over the given location fields."""
    if not field_names:
        raise ValueError("identity_from requires at least one field name")

    def _identity(row: Mapping[str, Any]) -> Optional[str]:
        return join_identity(row.get(name) for name in field_names)

    return _identity


# =============================================================================
# Field Schema
# =============================================================================


@dataclass(frozen=True)
class FieldSchema:
    """
    Declared field layout for one record kind.

    ``id_from`` overrides the default location-based identity. Its result
    is used as-is; an empty result means the record has no identity.
    ``passthrough`` keys are copied without coercion.
    ``export_headers`` is the column order used by CSV/JSON exports.
    """

    kind: RecordKind
    strings: tuple[str, ...] = ()
    numbers: tuple[str, ...] = ()
    booleans: tuple[str, ...] = ()
    lower_tags: bool = True
    id_from: Optional[IdentityFunction] = None
    passthrough: tuple[str, ...] = ()
    export_headers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Reject fields declared under more than one type."""
        seen: set[str] = set()
        for name in self.strings + self.numbers + self.booleans:
            if name in seen:
                raise ValueError(f"Field declared twice in schema: {name}")
            if name == "id":
                raise ValueError("'id' is derived and cannot be declared")
            seen.add(name)
        if self.lower_tags and TAG_FIELD in seen:
            raise ValueError(f"'{TAG_FIELD}' is handled by lower_tags")

    @property
    def declared_fields(self) -> tuple[str, ...]:
        """All coerced field names in declaration order."""
        return self.strings + self.numbers + self.booleans

    def derive_identity(self, row: Mapping[str, Any]) -> Optional[str]:
        """Derive the record id from a row of raw values overlaid with coerced ones."""
        if self.id_from is not None:
            return to_text(self.id_from(row)) or None
        return join_identity(row.get(name) for name in DEFAULT_IDENTITY_FIELDS)


LAND_SCHEMA: Final = FieldSchema(
    kind=RecordKind.LAND,
    strings=("State", "County", "Town", "Parcel", "Link", "Note"),
    numbers=("Acres", "Price", "WaterProximity", "Lat", "Lon", "CommuteMin", "Joy"),
    booleans=("Walkable", "WaterVibe"),
    lower_tags=True,
    export_headers=(
        "State", "County", "Town", "Parcel", "Acres", "Price", "WaterProximity",
        "Link", "Lat", "Lon", "Tag", "Note", "CommuteMin", "Walkable",
        "WaterVibe", "Joy",
    ),
)

MULTI_UNIT_SCHEMA: Final = FieldSchema(
    kind=RecordKind.MULTI_UNIT,
    strings=("Address", "City", "State", "Notes", "Link"),
    numbers=(
        "Units", "RentPerUnit", "VacancyPercent", "OtherIncomeMonthly",
        "TaxesAnnual", "InsuranceAnnual", "OpExAnnual", "Price", "DownPercent",
        "RatePercent", "TermYears", "HOAmonthly", "Lat", "Lon",
    ),
    lower_tags=True,
    id_from=identity_from("State", "City", "Address"),
    export_headers=(
        "Address", "City", "State", "Units", "RentPerUnit", "VacancyPercent",
        "OtherIncomeMonthly", "TaxesAnnual", "InsuranceAnnual", "OpExAnnual",
        "Price", "DownPercent", "RatePercent", "TermYears", "HOAmonthly",
        "Notes", "Tag", "Lat", "Lon", "Link",
    ),
)

SINGLE_FAMILY_SCHEMA: Final = FieldSchema(
    kind=RecordKind.SINGLE_FAMILY,
    strings=("Address", "City", "State", "Notes", "Link"),
    numbers=(
        "Beds", "Baths", "Sqft", "Price", "RentZestimate", "TaxesAnnual",
        "InsuranceAnnual", "HOAmonthly", "Lat", "Lon",
    ),
    lower_tags=True,
    id_from=identity_from("State", "City", "Address"),
    export_headers=(
        "Address", "City", "State", "Beds", "Baths", "Sqft", "Price",
        "RentZestimate", "TaxesAnnual", "InsuranceAnnual", "HOAmonthly",
        "Notes", "Tag", "Lat", "Lon", "Link",
    ),
)

SCHEMAS: Final[dict[RecordKind, FieldSchema]] = {
    RecordKind.LAND: LAND_SCHEMA,
    RecordKind.MULTI_UNIT: MULTI_UNIT_SCHEMA,
    RecordKind.SINGLE_FAMILY: SINGLE_FAMILY_SCHEMA,
}


def get_schema(kind: Union[RecordKind, str]) -> FieldSchema:
    """
    Get the field schema for a record kind.

    Raises:
        ValueError: If the kind is not recognised
    """
    if not isinstance(kind, RecordKind):
        resolved = RecordKind.from_string(kind)
        if resolved is None:
            raise ValueError(f"Unknown record kind: {kind}")
        kind = resolved
    return SCHEMAS[kind]
