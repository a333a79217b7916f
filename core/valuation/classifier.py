"""
Regional Valuation Classifier

Places a land record's price per acre against its region's benchmark:
- Percentile within the interquartile range (tiered 10 / 25-75 / 90)
- Badge: undervalued / fair value / overpriced
- Buy signal from the discount to the regional median
- Price band hint for display
"""

from typing import List, Optional, Sequence

from core.finance import price_per_acre, round_half_up
from core.models import Record

from .models import (
    BuySignal,
    PriceBand,
    RegionalValuation,
    RegionBenchmark,
    ValuationBadge,
)
from .regions import RegionStatsCache, infer_region


# =============================================================================
# Configuration Constants
# =============================================================================

PERCENTILE_FLOOR = 10
PERCENTILE_CEILING = 90
PERCENTILE_MID_LOW = 25
PERCENTILE_MID_SPAN = 50

STRONG_BUY_DISCOUNT = 25.0
WATCH_DISCOUNT = 5.0

NEAR_MEDIAN_PREMIUM = 0.15

UNKNOWN_REGION_LABEL = "region"


def percentile_rank(value: float, p25: float, p75: float) -> Optional[int]:
    """
    Tiered percentile of a value against an interquartile range.

    At or below p25 maps to 10, at or above p75 to 90, and anything in
    between linearly onto 25-75 (rounded half up).

    Returns:
        Percentile, or None when p75 <= p25
    """
    if value is None or p25 is None or p75 is None or p75 <= p25:
        return None
    if value <= p25:
        return PERCENTILE_FLOOR
    if value >= p75:
        return PERCENTILE_CEILING
    position = (value - p25) / (p75 - p25)
    return round_half_up(PERCENTILE_MID_LOW + position * PERCENTILE_MID_SPAN)


def discount_to_median(value: float, median: float) -> float:
    """Percent below the median (negative for a premium)."""
    return (median - value) / median * 100


def badge_for(value: float, benchmark: RegionBenchmark) -> ValuationBadge:
    if value < benchmark.p25:
        return ValuationBadge.UNDERVALUED
    if value > benchmark.p75:
        return ValuationBadge.OVERPRICED
    return ValuationBadge.FAIR_VALUE


def signal_for(discount: float) -> BuySignal:
    if discount > STRONG_BUY_DISCOUNT:
        return BuySignal.STRONG_BUY
    if discount >= WATCH_DISCOUNT:
        return BuySignal.WATCH
    return BuySignal.PASS


def price_band_for(value: float, median: float) -> PriceBand:
    delta = (value - median) / median
    if delta <= 0:
        return PriceBand.AT_OR_BELOW_MEDIAN
    if delta <= NEAR_MEDIAN_PREMIUM:
        return PriceBand.NEAR_MEDIAN
    return PriceBand.ABOVE_MEDIAN


class RegionalValuationClassifier:
    """
    Classifies land records against a region benchmark cache.

    The cache is read, never populated, here; an unpopulated cache
    classifies every record as unbenchmarked.
    """

    def __init__(self, cache: RegionStatsCache = None):
        self._cache = cache if cache is not None else RegionStatsCache()

    @property
    def cache(self) -> RegionStatsCache:
        return self._cache

    def classify(self, record: Record) -> RegionalValuation:
        """
        Classify one record.

        Args:
            record: Land record

        Returns:
            RegionalValuation; derived fields are None when the region,
            its benchmark or the record's price per acre is unusable
        """
        value = price_per_acre(record)
        region_name = infer_region(record, self._cache.region_names)
        benchmark = self._cache.get(region_name)

        result = RegionalValuation(region_name=region_name, value_ppa=value)
        if benchmark is None:
            return result

        result.median = benchmark.median
        result.p25 = benchmark.p25
        result.p75 = benchmark.p75

        if value is None or not benchmark.has_median:
            return result

        discount = discount_to_median(value, benchmark.median)
        result.score = discount
        result.signal = signal_for(discount)
        result.price_band = price_band_for(value, benchmark.median)

        # Percentile and badge need a usable p25-p75 spread as well
        if not benchmark.is_valid:
            return result

        badge = badge_for(value, benchmark)
        result.percentile = percentile_rank(value, benchmark.p25, benchmark.p75)
        result.badge = badge
        result.detail = (
            f"{badge.detail_label} vs {region_name or UNKNOWN_REGION_LABEL} "
            f"by {abs(round_half_up(discount))}%"
        )
        return result

    def classify_all(self, records: Sequence[Record]) -> List[RegionalValuation]:
        """Classify records, aligned with the input order."""
        return [self.classify(record) for record in records]
