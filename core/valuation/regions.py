"""
Region inference and the region benchmark cache.

Region lookup order:
1. Town name against a fixed town -> region table
2. State + county against a fixed pair table
3. The one region in the benchmark table whose name carries the record's
   state in its trailing qualifier, e.g. "Pioneer Valley (MA)"
"""

import logging
import re
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from core.ingestion.schema import to_number, to_text
from core.models import Record

from .models import RegionBenchmark


logger = logging.getLogger(__name__)


# =============================================================================
# Region Tables
# =============================================================================

BERKSHIRES = "Berkshires (Western MA)"
HILLTOWNS = "Hilltowns (MA)"
PIONEER_VALLEY = "Pioneer Valley (MA)"
LITCHFIELD_HILLS = "Litchfield Hills (CT)"

TOWN_TO_REGION = {
    "monterey": BERKSHIRES,
    "sheffield": BERKSHIRES,
    "becket": BERKSHIRES,
    "hinsdale": HILLTOWNS,
    "savoy": HILLTOWNS,
    "cummington": HILLTOWNS,
    "northampton": PIONEER_VALLEY,
    "amherst": PIONEER_VALLEY,
    "hadley": PIONEER_VALLEY,
    "easthampton": PIONEER_VALLEY,
    "torrington": LITCHFIELD_HILLS,
    "kent": LITCHFIELD_HILLS,
    "new milford": LITCHFIELD_HILLS,
    "sharon": LITCHFIELD_HILLS,
}

STATE_COUNTY_TO_REGION = {
    ("MA", "berkshire"): BERKSHIRES,
    ("CT", "litchfield"): LITCHFIELD_HILLS,
}

_QUALIFIER = re.compile(r"\(([^()]*)\)\s*$")


def region_state(region_name: str) -> Optional[str]:
    """
    State code encoded in a region name's trailing qualifier.

    "Berkshires (Western MA)" -> "MA"; names without a qualifier -> None.
    """
    match = _QUALIFIER.search(region_name or "")
    if not match:
        return None
    words = match.group(1).split()
    return words[-1].upper() if words else None


def infer_region(record: Record, region_names: Iterable[str] = ()) -> Optional[str]:
    """
    Infer the region a record belongs to.

    Args:
        record: Land record (Town, County, State are read)
        region_names: Region names available in the benchmark table,
            used only for the state fallback

    Returns:
        Region display name, or None when nothing matches
    """
    town = to_text(record.get("Town")).lower()
    county = to_text(record.get("County")).lower()
    state = to_text(record.get("State")).upper()

    hit = TOWN_TO_REGION.get(town)
    if hit:
        return hit

    hit = STATE_COUNTY_TO_REGION.get((state, county))
    if hit:
        return hit

    if not state:
        return None
    candidates = [name for name in region_names if region_state(name) == state]
    if len(candidates) == 1:
        return candidates[0]
    return None


# =============================================================================
# Benchmark Table
# =============================================================================


def parse_region_stats(payload: Any) -> Dict[str, RegionBenchmark]:
    """
    Parse a region benchmark payload.

    Expected shape: {"Region (ST)": {"median_ppacre": n, "p25": n, "p75": n}}.
    Anything that is not a mapping yields an empty table; malformed
    entries are kept with their unusable values as None.
    """
    if not isinstance(payload, Mapping):
        return {}

    table: Dict[str, RegionBenchmark] = {}
    for name, entry in payload.items():
        if isinstance(entry, RegionBenchmark):
            table[str(name)] = entry
            continue
        if not isinstance(entry, Mapping):
            logger.debug("Skipping region %r: entry is not an object", name)
            continue
        median = entry.get("median_ppacre", entry.get("median"))
        table[str(name)] = RegionBenchmark(
            median=to_number(median),
            p25=to_number(entry.get("p25")),
            p75=to_number(entry.get("p75")),
        )
    return table


class RegionStatsCache:
    """
    Region benchmark table with an explicit unpopulated state.

    Populated at most once per session. Reads before population behave as
    an empty table.
    """

    def __init__(self, stats: Optional[Mapping[str, Any]] = None):
        self._stats: Optional[Dict[str, RegionBenchmark]] = None
        if stats is not None:
            self._stats = parse_region_stats(stats)

    @property
    def is_populated(self) -> bool:
        return self._stats is not None

    @property
    def table(self) -> Dict[str, RegionBenchmark]:
        return dict(self._stats) if self._stats is not None else {}

    @property
    def region_names(self) -> list:
        return list(self._stats) if self._stats is not None else []

    def get(self, region_name: Optional[str]) -> Optional[RegionBenchmark]:
        if region_name is None or self._stats is None:
            return None
        return self._stats.get(region_name)

    def populate(self, loader: Callable[[], Any]) -> Dict[str, RegionBenchmark]:
        """
        Populate from a loader unless already populated.

        A loader that raises or returns a non-mapping populates an empty
        table.

        Args:
            loader: Zero-argument callable returning the raw payload

        Returns:
            The cached table
        """
        if self._stats is not None:
            return self.table

        try:
            payload = loader()
        except Exception as e:
            logger.warning("Region stats loader failed: %s", e)
            payload = None

        if not isinstance(payload, Mapping):
            if payload is not None:
                logger.warning(
                    "Region stats payload is %s, expected an object",
                    type(payload).__name__,
                )
            self._stats = {}
        else:
            self._stats = parse_region_stats(payload)
            logger.info("Loaded benchmark stats for %d regions", len(self._stats))
        return self.table
