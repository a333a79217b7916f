"""
Data models for regional valuation.

Defines the regional benchmark statistics and the per-record
classification bundle.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class RegionBenchmark:
    """
    Price-per-acre statistics for one region.

    Supplied externally and read-only to the engine. Any field may be
    missing. The buy signal needs only ``has_median``; percentile and
    badge need ``is_valid``.
    """
    median: Optional[float] = None
    p25: Optional[float] = None
    p75: Optional[float] = None

    @property
    def has_median(self) -> bool:
        """Whether the median alone is usable (signal and price band)."""
        return self.median is not None and math.isfinite(self.median) and self.median > 0

    @property
    def is_valid(self) -> bool:
        """Whether percentile placement against this benchmark is defined."""
        values = (self.median, self.p25, self.p75)
        if any(v is None or not math.isfinite(v) for v in values):
            return False
        return self.median > 0 and self.p75 > self.p25


class ValuationBadge(Enum):
    """
    Position of a unit price within the regional interquartile range.

    Undervalued: below p25
    Fair value: p25 to p75 inclusive
    Overpriced: above p75
    """
    UNDERVALUED = "undervalued"
    FAIR_VALUE = "fair value"
    OVERPRICED = "overpriced"

    @property
    def detail_label(self) -> str:
        """Lead word used in the human-readable detail line."""
        return {
            ValuationBadge.UNDERVALUED: "Undervalued",
            ValuationBadge.FAIR_VALUE: "Near median",
            ValuationBadge.OVERPRICED: "Overpriced",
        }[self]


class BuySignal(Enum):
    """
    Buy signal from the discount to the regional median.

    Discount > 25%: Strong Buy Signal
    Discount 5-25%: Watch
    Discount < 5% (or a premium): Pass
    """
    STRONG_BUY = "Strong Buy Signal"
    WATCH = "Watch"
    PASS = "Pass"


class PriceBand(Enum):
    """Display hint for price per acre against the regional median."""
    AT_OR_BELOW_MEDIAN = "at-or-below-median"
    NEAR_MEDIAN = "near-median"
    ABOVE_MEDIAN = "above-median"


@dataclass
class RegionalValuation:
    """
    Classification bundle for one record.

    Region context is reported whenever the region is known, even when
    the benchmark or the unit price is unusable; every derived field is
    None in that case.
    """
    region_name: Optional[str]
    value_ppa: Optional[float]
    median: Optional[float] = None
    p25: Optional[float] = None
    p75: Optional[float] = None
    percentile: Optional[int] = None
    badge: Optional[ValuationBadge] = None
    detail: Optional[str] = None
    score: Optional[float] = None
    signal: Optional[BuySignal] = None
    price_band: Optional[PriceBand] = None

    @property
    def is_classified(self) -> bool:
        return self.badge is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "regionName": self.region_name,
            "median": self.median,
            "p25": self.p25,
            "p75": self.p75,
            "percentile": self.percentile,
            "badge": self.badge.value if self.badge else None,
            "detail": self.detail,
            "score": self.score,
            "signal": self.signal.value if self.signal else None,
            "valuePpa": self.value_ppa,
            "priceBand": self.price_band.value if self.price_band else None,
        }
