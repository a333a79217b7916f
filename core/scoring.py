"""
Rank-based composite scoring.

Land parcels are compared on metrics that share no units (price per acre,
acreage, distance to water), so each metric is turned into an ordinal rank
within the current subset and the ranks are blended. Lower composite is
better.

Scoring methodology (land):
- Price per acre rank (50%): cheaper is better
- Acreage rank (30%): larger is better
- Water proximity rank (20%): closer is better
- Workflow tag nudge: parcels marked for a visit move up slightly
- Location fit blended in at 30%: joy, walkability, commute, water vibe

Multi-unit and single-family records are ordered directly on their
financial metrics.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .finance import (
    FinancingAssumptions,
    derive_multi_unit,
    derive_single_family,
    price_per_acre,
)
from .models import Record


# Location fit constants
JOY_MAX = 5.0
JOY_WEIGHT = 0.6
WALKABLE_WEIGHT = 0.4
NEUTRAL = 0.5
COMMUTE_CAP_MINUTES = 90.0
COMMUTE_SCALE_MINUTES = 180.0
WATER_VIBE_BONUS = 0.05


@dataclass(frozen=True)
class ScoringWeights:
    """
    Tunable weights for the land composite.

    The visit adjustment is a fixed nudge, not a derived quantity.
    """

    price_per_acre: float = 0.5
    acres: float = 0.3
    water: float = 0.2
    land_share: float = 0.7
    location_share: float = 0.3
    tag_adjustments: Mapping[str, float] = field(
        default_factory=lambda: {"visit": -0.2}
    )

    def __post_init__(self):
        """Validate weights after initialization."""
        for name in ("price_per_acre", "acres", "water", "land_share", "location_share"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} weight must be a non-negative number")

    def tag_adjustment(self, tag: str) -> float:
        return self.tag_adjustments.get(tag, 0.0)


# =============================================================================
# Ordinal Ranks
# =============================================================================


def _ordinal_ranks(values: Sequence[Optional[float]], descending: bool) -> List[int]:
    """
    1-based ordinal ranks aligned with ``values``.

    Equal values keep their input order. Missing values rank last with
    exactly ``len(values)``.
    """
    n = len(values)
    ranks = [n] * n
    present = [i for i, v in enumerate(values) if v is not None]
    present.sort(key=lambda i: -values[i] if descending else values[i])
    for position, index in enumerate(present, start=1):
        ranks[index] = position
    return ranks


def rank_ascending(values: Sequence[Optional[float]]) -> List[int]:
    """Rank where the lowest value is best."""
    return _ordinal_ranks(values, descending=False)


def rank_descending(values: Sequence[Optional[float]]) -> List[int]:
    """Rank where the highest value is best."""
    return _ordinal_ranks(values, descending=True)


@dataclass
class RankTable:
    """Per-metric ranks for one scoring pass, aligned with the scored subset."""
    ids: List[Optional[str]]
    price_per_acre: List[int]
    acres: List[int]
    water: List[int]

    @property
    def size(self) -> int:
        return len(self.ids)

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        """Ranks keyed by record id (records without identity are omitted)."""
        return {
            record_id: {
                "price_per_acre": self.price_per_acre[i],
                "acres": self.acres[i],
                "water": self.water[i],
            }
            for i, record_id in enumerate(self.ids)
            if record_id is not None
        }


def build_land_ranks(records: Sequence[Record]) -> RankTable:
    """Rank a land subset on price per acre, acreage and water proximity."""
    return RankTable(
        ids=[r.id for r in records],
        price_per_acre=rank_ascending([price_per_acre(r) for r in records]),
        acres=rank_descending([r.get("Acres") for r in records]),
        water=rank_ascending([r.get("WaterProximity") for r in records]),
    )


# =============================================================================
# Location Fit
# =============================================================================


def location_fit_score(record: Record) -> float:
    """
    Subjective location fit, higher is better.

    Unknown joy and walkability resolve to the neutral midpoint of their
    range; an unknown commute takes the full penalty.
    """
    joy = record.get("Joy")
    joy_scaled = max(0.0, min(JOY_MAX, joy)) / JOY_MAX if joy is not None else NEUTRAL

    walkable = record.get("Walkable")
    if walkable is True:
        walk = 1.0
    elif walkable is False:
        walk = 0.0
    else:
        walk = NEUTRAL

    commute = record.get("CommuteMin")
    if commute is None:
        # Unknown commute costs as much as the longest counted one
        commute = COMMUTE_CAP_MINUTES
    commute_penalty = max(0.0, min(commute, COMMUTE_CAP_MINUTES)) / COMMUTE_SCALE_MINUTES

    vibe_bonus = WATER_VIBE_BONUS if record.get("WaterVibe") is True else 0.0

    return JOY_WEIGHT * joy_scaled + WALKABLE_WEIGHT * walk - commute_penalty + vibe_bonus


# =============================================================================
# Land Scorer
# =============================================================================


@dataclass
class ScoredRecord:
    """A land record with its ranks and scores for one pass."""
    record: Record
    price_per_acre: Optional[float]
    price_per_acre_rank: int
    acres_rank: int
    water_rank: int
    land_score: float
    location_score: float
    composite_score: float


class LandRankScorer:
    """
    Orders a land subset by rank-based composite score.

    Recomputed from scratch on every call; the same subset in the same
    order always yields the same result.
    """

    def __init__(self, weights: ScoringWeights = None):
        self.weights = weights or ScoringWeights()

    def land_score(self, record: Record, ranks: RankTable, index: int) -> float:
        """Weighted sum of the record's ranks plus its tag adjustment."""
        w = self.weights
        return (
            ranks.price_per_acre[index] * w.price_per_acre
            + ranks.acres[index] * w.acres
            + ranks.water[index] * w.water
            + w.tag_adjustment(record.tag)
        )

    def composite(self, land_score: float, location_score: float) -> float:
        """Blend land and location scores; location fit is inverted so lower wins."""
        w = self.weights
        return w.land_share * land_score + w.location_share * (1 - location_score)

    def score(self, records: Sequence[Record]) -> List[ScoredRecord]:
        """
        Score a subset without ordering it.

        Args:
            records: The current filtered land records

        Returns:
            ScoredRecord list aligned with ``records``
        """
        ranks = build_land_ranks(records)
        scored = []
        for i, record in enumerate(records):
            land = self.land_score(record, ranks, i)
            location = location_fit_score(record)
            scored.append(ScoredRecord(
                record=record,
                price_per_acre=price_per_acre(record),
                price_per_acre_rank=ranks.price_per_acre[i],
                acres_rank=ranks.acres[i],
                water_rank=ranks.water[i],
                land_score=land,
                location_score=location,
                composite_score=self.composite(land, location),
            ))
        return scored

    def rank(self, records: Sequence[Record]) -> List[ScoredRecord]:
        """
        Score and order a subset, best first.

        Ties on composite score go to the lower price per acre; records
        with no price per acre sort after priced ones.
        """
        scored = self.score(records)
        return sorted(
            scored,
            key=lambda s: (
                s.composite_score,
                s.price_per_acre if s.price_per_acre is not None else math.inf,
            ),
        )


# =============================================================================
# Financial Orderings
# =============================================================================


def order_multi_unit(
    records: Sequence[Record],
    assumptions: FinancingAssumptions = None,
) -> List[Record]:
    """Order by DSCR, then cap rate (both descending), then price per unit."""
    def sort_key(record: Record):
        metrics = derive_multi_unit(record, assumptions)
        ppu = metrics.price_per_unit
        return (
            -metrics.dscr,
            -metrics.cap_rate,
            ppu if ppu is not None else math.inf,
        )

    return sorted(records, key=sort_key)


def order_single_family(records: Sequence[Record]) -> List[Record]:
    """Order by rent yield (descending), then asking price (ascending)."""
    def sort_key(record: Record):
        metrics = derive_single_family(record)
        price = record.get("Price")
        return (
            -metrics.rent_yield if metrics.rent_yield is not None else math.inf,
            price if price is not None else math.inf,
        )

    return sorted(records, key=sort_key)
