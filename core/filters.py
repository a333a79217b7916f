"""
Record Filters and Workflow Tabs

Implements the narrowing applied before ranking:
- Workflow tab (inbox, shortlist, watch, archived, all)
- Land: state, water proximity, minimum acres, maximum price, text search
- Multi-unit: state, minimum DSCR and cap rate, maximum price per unit
- Single-family: state, minimum beds, maximum price

Bounds never exclude a record whose bounded value is unknown, except where
an explicit neutral is defined (missing DSCR / cap rate / beds count as 0,
missing price per unit or price as unbounded).
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .finance import FinancingAssumptions, derive_multi_unit
from .ingestion.schema import to_text
from .models import Record


# =============================================================================
# Configuration Constants
# =============================================================================

# Distance (feet) within which a parcel counts as near water
WATER_NEAR_FEET = 900

COUNTED_TAGS = ("inbox", "visit", "watch", "offer", "skip")


class Tab(Enum):
    """
    Workflow tab grouping records by tag.

    Inbox: inbox (or no tag)
    Shortlist: shortlist, offer, visit
    Watch: watch, hold
    Archived: archived, skip
    All: every record
    """
    INBOX = "inbox"
    SHORTLIST = "shortlist"
    WATCH = "watch"
    ARCHIVED = "archived"
    ALL = "all"

    @classmethod
    def from_string(cls, value: str) -> Optional["Tab"]:
        """Convert string to Tab, case-insensitive."""
        normalised = str(value or "").lower().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


TAB_TAGS = {
    Tab.INBOX: frozenset({"inbox"}),
    Tab.SHORTLIST: frozenset({"shortlist", "offer", "visit"}),
    Tab.WATCH: frozenset({"watch", "hold"}),
    Tab.ARCHIVED: frozenset({"archived", "skip"}),
}


def in_tab(record: Record, tab: Optional[Tab]) -> bool:
    """Whether a record belongs to a workflow tab (None means every tab)."""
    if tab is None or tab == Tab.ALL:
        return True
    return record.tag in TAB_TAGS[tab]


def _matches_search(record: Record, fields: Sequence[str], query: str) -> bool:
    needle = to_text(query).lower()
    if not needle:
        return True
    haystack = " ".join(to_text(record.get(name)) for name in fields).lower()
    return needle in haystack


def _matches_state(record: Record, state: str) -> bool:
    return not state or to_text(record.get("State")) == state


# =============================================================================
# Per-kind Filters
# =============================================================================


@dataclass
class LandFilter:
    """Land filter criteria; unset criteria match everything."""
    state: str = ""
    water: str = ""  # "adjacent", "near" or "" for any
    min_acres: Optional[float] = None
    max_price: Optional[float] = None
    search: str = ""

    SEARCH_FIELDS = ("Town", "Parcel", "Note")

    def matches(self, record: Record) -> bool:
        if not _matches_state(record, self.state):
            return False

        proximity = record.get("WaterProximity")
        if self.water == "adjacent":
            if proximity is None or proximity != 0:
                return False
        elif self.water == "near":
            if proximity is None or proximity > WATER_NEAR_FEET:
                return False

        acres = record.get("Acres")
        if self.min_acres is not None and acres is not None and acres < self.min_acres:
            return False

        price = record.get("Price")
        if self.max_price is not None and price is not None and price > self.max_price:
            return False

        return _matches_search(record, self.SEARCH_FIELDS, self.search)


@dataclass
class MultiUnitFilter:
    """Multi-unit filter criteria on derived financial metrics."""
    state: str = ""
    min_dscr: Optional[float] = None
    min_cap_rate: Optional[float] = None
    max_price_per_unit: Optional[float] = None
    search: str = ""
    assumptions: Optional[FinancingAssumptions] = None

    SEARCH_FIELDS = ("Address", "City", "Notes", "Tag")

    def matches(self, record: Record) -> bool:
        if not _matches_state(record, self.state):
            return False

        metrics = derive_multi_unit(record, self.assumptions)
        if self.min_dscr is not None and metrics.dscr < self.min_dscr:
            return False
        if self.min_cap_rate is not None and metrics.cap_rate < self.min_cap_rate:
            return False
        if self.max_price_per_unit is not None:
            ppu = metrics.price_per_unit
            if (ppu if ppu is not None else math.inf) > self.max_price_per_unit:
                return False

        return _matches_search(record, self.SEARCH_FIELDS, self.search)


@dataclass
class SingleFamilyFilter:
    """Single-family filter criteria."""
    state: str = ""
    min_beds: Optional[float] = None
    max_price: Optional[float] = None
    search: str = ""

    SEARCH_FIELDS = ("Address", "City", "Notes", "Tag")

    def matches(self, record: Record) -> bool:
        if not _matches_state(record, self.state):
            return False

        beds = record.get("Beds")
        if self.min_beds is not None and (beds if beds is not None else 0) < self.min_beds:
            return False

        price = record.get("Price")
        if self.max_price is not None and (price if price is not None else math.inf) > self.max_price:
            return False

        return _matches_search(record, self.SEARCH_FIELDS, self.search)


def apply_filters(
    records: Iterable[Record],
    criteria=None,
    tab: Optional[Tab] = None,
) -> List[Record]:
    """
    Narrow records to a tab and filter criteria, preserving order.

    Args:
        records: Record set
        criteria: LandFilter, MultiUnitFilter, SingleFamilyFilter or None
        tab: Workflow tab (None for every tab)
    """
    result = []
    for record in records:
        if not in_tab(record, tab):
            continue
        if criteria is not None and not criteria.matches(record):
            continue
        result.append(record)
    return result


# =============================================================================
# Summaries
# =============================================================================


def tag_counts(records: Iterable[Record]) -> Dict[str, int]:
    """Count records per counted workflow tag."""
    counts = {tag: 0 for tag in COUNTED_TAGS}
    for record in records:
        tag = record.tag
        if tag in counts:
            counts[tag] += 1
    return counts


def unique_states(records: Iterable[Record]) -> List[str]:
    """Sorted distinct non-empty states."""
    return sorted({to_text(r.get("State")) for r in records} - {""})
