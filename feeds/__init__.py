"""
External data feeds.

Available feeds:
- RegionBenchmarkFeed: regional price-per-acre benchmarks (URL or local file)
"""

from .region_benchmarks import RegionBenchmarkFeed, load_region_stats

__all__ = [
    "RegionBenchmarkFeed",
    "load_region_stats",
]
