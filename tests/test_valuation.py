"""
Tests for regional valuation.

Verifies:
- Region inference by town, state + county and unique state qualifier
- Tiered percentile boundaries (10 / 25-75 / 90)
- Badge, detail text, buy signal and price band
- Median-only benchmarks still give a signal; invalid ranges give no badge
- Region stats cache population is idempotent and failure tolerant
"""

import logging
import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import Record, RecordKind
from core.valuation import (
    BuySignal,
    PriceBand,
    RegionBenchmark,
    RegionalValuationClassifier,
    RegionStatsCache,
    ValuationBadge,
    infer_region,
    parse_region_stats,
    percentile_rank,
    region_state,
)


BERKSHIRES = "Berkshires (Western MA)"
PIONEER = "Pioneer Valley (MA)"
LITCHFIELD = "Litchfield Hills (CT)"


def parcel(price=None, acres=10, **fields) -> Record:
    fields.update(Price=price, Acres=acres)
    return Record(id="p", kind=RecordKind.LAND, fields=fields)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def stats_payload():
    return {
        BERKSHIRES: {"median_ppacre": 12000, "p25": 9000, "p75": 15000},
        PIONEER: {"median_ppacre": 20000, "p25": 15000, "p75": 26000},
        LITCHFIELD: {"median_ppacre": 18000, "p25": 14000, "p75": 24000},
    }


@pytest.fixture
def classifier(stats_payload):
    return RegionalValuationClassifier(RegionStatsCache(stats_payload))


# =============================================================================
# Test: Region Inference
# =============================================================================

class TestRegionInference:

    def test_town_lookup_case_insensitive(self):
        record = parcel(Town="  MONTEREY ", State="MA")
        assert infer_region(record) == BERKSHIRES

    def test_multi_word_town(self):
        assert infer_region(parcel(Town="New Milford", State="CT")) == LITCHFIELD

    def test_state_and_county(self):
        record = parcel(Town="Otis", County="Berkshire", State="ma")
        assert infer_region(record) == BERKSHIRES

    def test_unique_state_region(self, stats_payload):
        record = parcel(Town="Salisbury", County="", State="CT")
        assert infer_region(record, stats_payload) == LITCHFIELD

    def test_ambiguous_state_region_is_none(self, stats_payload):
        record = parcel(Town="Worthington", County="Hampshire", State="MA")
        assert infer_region(record, stats_payload) is None

    def test_unknown_state(self, stats_payload):
        assert infer_region(parcel(Town="Stowe", State="VT"), stats_payload) is None

    def test_region_state_qualifier(self):
        assert region_state(BERKSHIRES) == "MA"
        assert region_state(LITCHFIELD) == "CT"
        assert region_state("Upper Valley") is None


# =============================================================================
# Test: Percentile
# =============================================================================

class TestPercentile:

    def test_boundaries(self):
        assert percentile_rank(9000, 9000, 15000) == 10
        assert percentile_rank(15000, 9000, 15000) == 90
        assert percentile_rank(1, 9000, 15000) == 10
        assert percentile_rank(99999, 9000, 15000) == 90

    def test_mid_range(self):
        assert percentile_rank(12000, 9000, 15000) == 50
        assert percentile_rank(10000, 9000, 15000) == 33

    def test_rounds_half_up(self):
        # 25 + 0.75 * 50 = 62.5
        assert percentile_rank(13500, 9000, 15000) == 63

    def test_median_strictly_inside(self):
        result = percentile_rank(12000, 9000, 15000)
        assert 25 < result < 75

    def test_degenerate_range(self):
        assert percentile_rank(10000, 15000, 15000) is None
        assert percentile_rank(10000, 15000, 9000) is None


# =============================================================================
# Test: Classification
# =============================================================================

class TestClassification:

    def test_fair_value_example(self, classifier):
        result = classifier.classify(parcel(100000, Town="Monterey", State="MA"))

        assert result.region_name == BERKSHIRES
        assert result.value_ppa == 10000
        assert result.badge == ValuationBadge.FAIR_VALUE
        assert result.percentile == 33
        assert result.score == pytest.approx(16.667, abs=0.001)
        assert result.signal == BuySignal.WATCH
        assert result.detail == f"Near median vs {BERKSHIRES} by 17%"
        assert result.price_band == PriceBand.AT_OR_BELOW_MEDIAN

    def test_undervalued(self, classifier):
        result = classifier.classify(parcel(80000, Town="Sheffield"))

        assert result.badge == ValuationBadge.UNDERVALUED
        assert result.percentile == 10
        assert result.signal == BuySignal.STRONG_BUY
        assert result.detail == f"Undervalued vs {BERKSHIRES} by 33%"

    def test_overpriced(self, classifier):
        result = classifier.classify(parcel(160000, Town="Becket"))

        assert result.badge == ValuationBadge.OVERPRICED
        assert result.percentile == 90
        assert result.signal == BuySignal.PASS
        assert result.detail == f"Overpriced vs {BERKSHIRES} by 33%"
        assert result.price_band == PriceBand.ABOVE_MEDIAN

    def test_near_median_band(self, classifier):
        result = classifier.classify(parcel(130000, Town="Becket"))

        assert result.badge == ValuationBadge.FAIR_VALUE
        assert result.price_band == PriceBand.NEAR_MEDIAN
        assert result.signal == BuySignal.PASS

    def test_value_at_p25_is_fair(self, classifier):
        result = classifier.classify(parcel(90000, Town="Becket"))

        assert result.badge == ValuationBadge.FAIR_VALUE
        assert result.percentile == 10

    def test_signal_thresholds(self, classifier):
        # 25% below median is Watch, just over is a strong buy
        assert classifier.classify(parcel(90000, Town="Becket")).signal == BuySignal.WATCH
        assert classifier.classify(parcel(89900, Town="Becket")).signal == BuySignal.STRONG_BUY
        # exactly 5% below median is Watch
        assert classifier.classify(parcel(114000, Town="Becket")).signal == BuySignal.WATCH

    def test_no_price_reports_region_only(self, classifier):
        result = classifier.classify(parcel(None, Town="Kent"))

        assert result.region_name == LITCHFIELD
        assert result.median == 18000
        assert result.value_ppa is None
        assert result.badge is None
        assert result.percentile is None
        assert result.signal is None
        assert result.detail is None

    def test_unknown_region(self, classifier):
        result = classifier.classify(parcel(100000, Town="Stowe", State="VT"))

        assert result.region_name is None
        assert result.median is None
        assert result.badge is None

    def test_inverted_range_keeps_signal(self):
        cache = RegionStatsCache({BERKSHIRES: {"median_ppacre": 12000, "p25": 15000, "p75": 9000}})
        result = RegionalValuationClassifier(cache).classify(parcel(100000, Town="Monterey"))

        assert result.median == 12000
        assert result.percentile is None
        assert result.badge is None
        assert result.detail is None
        assert result.score == pytest.approx(16.667, abs=1e-3)
        assert result.signal == BuySignal.WATCH
        assert result.price_band == PriceBand.AT_OR_BELOW_MEDIAN

    def test_median_only_benchmark_gives_signal(self):
        cache = RegionStatsCache({"Hilltowns (MA)": {"median_ppacre": 12000}})
        result = RegionalValuationClassifier(cache).classify(parcel(60000, Town="Savoy"))

        assert result.region_name == "Hilltowns (MA)"
        assert result.score == pytest.approx(50.0)
        assert result.signal == BuySignal.STRONG_BUY
        assert result.price_band == PriceBand.AT_OR_BELOW_MEDIAN
        assert result.percentile is None
        assert result.badge is None

    def test_zero_median_is_invalid(self):
        cache = RegionStatsCache({BERKSHIRES: {"median_ppacre": 0, "p25": 1, "p75": 2}})
        result = RegionalValuationClassifier(cache).classify(parcel(100000, Town="Monterey"))

        assert result.score is None
        assert result.signal is None
        assert result.price_band is None
        assert result.percentile is None

    def test_to_dict_keys(self, classifier):
        bundle = classifier.classify(parcel(100000, Town="Monterey")).to_dict()

        assert set(bundle) == {
            "regionName", "median", "p25", "p75", "percentile", "badge",
            "detail", "score", "signal", "valuePpa", "priceBand",
        }
        assert bundle["badge"] == "fair value"
        assert bundle["signal"] == "Watch"

    def test_classify_all_aligned(self, classifier):
        records = [parcel(80000, Town="Becket"), parcel(160000, Town="Becket")]
        results = classifier.classify_all(records)

        assert [r.badge for r in results] == [ValuationBadge.UNDERVALUED, ValuationBadge.OVERPRICED]


# =============================================================================
# Test: Benchmark Parsing and Cache
# =============================================================================

class TestRegionStats:

    def test_parse_payload(self, stats_payload):
        table = parse_region_stats(stats_payload)

        assert table[BERKSHIRES] == RegionBenchmark(median=12000, p25=9000, p75=15000)
        assert table[BERKSHIRES].is_valid

    @pytest.mark.parametrize("payload", [None, [], "stats", 3])
    def test_non_mapping_payload_is_empty(self, payload):
        assert parse_region_stats(payload) == {}

    def test_malformed_entry_values_are_none(self):
        table = parse_region_stats({"X (MA)": {"median_ppacre": "n/a", "p25": "", "p75": 5}})

        assert table["X (MA)"] == RegionBenchmark(median=None, p25=None, p75=5)
        assert not table["X (MA)"].is_valid


class TestRegionStatsCache:

    def test_unpopulated_behaves_as_empty(self):
        cache = RegionStatsCache()

        assert not cache.is_populated
        assert cache.table == {}
        assert cache.get(BERKSHIRES) is None

    def test_classify_before_population(self):
        result = RegionalValuationClassifier(RegionStatsCache()).classify(parcel(100000, Town="Monterey"))

        assert result.region_name == BERKSHIRES
        assert result.badge is None

    def test_populate_runs_loader_once(self, stats_payload):
        calls = []

        def loader():
            calls.append(1)
            return stats_payload

        cache = RegionStatsCache()
        cache.populate(loader)
        cache.populate(loader)

        assert len(calls) == 1
        assert cache.is_populated
        assert set(cache.table) == set(stats_payload)

    def test_failing_loader_populates_empty(self, caplog):
        def loader():
            raise RuntimeError("offline")

        cache = RegionStatsCache()
        with caplog.at_level(logging.WARNING):
            table = cache.populate(loader)

        assert table == {}
        assert cache.is_populated
        assert "offline" in caplog.text

    def test_non_mapping_payload_populates_empty(self):
        cache = RegionStatsCache()
        cache.populate(lambda: ["not", "a", "table"])

        assert cache.is_populated
        assert cache.table == {}

    def test_table_is_a_copy(self, stats_payload):
        cache = RegionStatsCache(stats_payload)
        cache.table.clear()

        assert len(cache.table) == 3
