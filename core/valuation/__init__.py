"""
Regional Valuation

Region inference, region benchmark cache and percentile-based valuation
classification of land records against regional price-per-acre stats.
"""

from .models import (
    BuySignal,
    PriceBand,
    RegionalValuation,
    RegionBenchmark,
    ValuationBadge,
)
from .regions import (
    STATE_COUNTY_TO_REGION,
    TOWN_TO_REGION,
    RegionStatsCache,
    infer_region,
    parse_region_stats,
    region_state,
)
from .classifier import RegionalValuationClassifier, percentile_rank

__all__ = [
    # Models
    "BuySignal",
    "PriceBand",
    "RegionalValuation",
    "RegionBenchmark",
    "ValuationBadge",
    # Regions
    "STATE_COUNTY_TO_REGION",
    "TOWN_TO_REGION",
    "RegionStatsCache",
    "infer_region",
    "parse_region_stats",
    "region_state",
    # Classifier
    "RegionalValuationClassifier",
    "percentile_rank",
]
