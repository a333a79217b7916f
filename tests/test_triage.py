"""
Integration tests for the triage session.

Runs the full pipeline: import -> merge -> tag -> filter -> rank -> classify.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    FinancingAssumptions,
    InvalidBatchError,
    LandFilter,
    MultiUnitFilter,
    MultiUnitMetrics,
    RecordKind,
    RegionStatsCache,
    Tab,
    TriageSession,
    ValuationBadge,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def rows():
    return [
        {"State": "MA", "County": "Berkshire", "Town": "Monterey", "Parcel": "1", "Acres": "10", "Price": "100000", "WaterProximity": "0"},
        {"State": "MA", "County": "Berkshire", "Town": "Becket", "Parcel": "2", "Acres": "20", "Price": "100000", "WaterProximity": "2000"},
        {"State": "MA", "County": "Berkshire", "Town": "Sheffield", "Parcel": "3", "Acres": "5", "Price": "100000", "WaterProximity": "500"},
    ]


@pytest.fixture
def stats():
    return {"Berkshires (Western MA)": {"median_ppacre": 12000, "p25": 9000, "p75": 15000}}


@pytest.fixture
def session(rows, stats):
    s = TriageSession(RecordKind.LAND, region_cache=RegionStatsCache(stats))
    s.import_rows(rows)
    return s


MONTEREY = "ma|berkshire|monterey|1"
BECKET = "ma|berkshire|becket|2"
SHEFFIELD = "ma|berkshire|sheffield|3"


# =============================================================================
# Test: Import
# =============================================================================

class TestImport:

    def test_import_counts_new_records(self, rows):
        session = TriageSession("land")

        assert session.import_rows(rows) == 3
        assert session.import_rows(rows) == 0
        assert len(session) == 3

    def test_reimport_merges_fields(self, session):
        session.import_rows([{"State": "MA", "County": "Berkshire", "Town": "Monterey", "Parcel": "1", "Joy": "5"}])
        record = session.find(MONTEREY)

        assert record["Joy"] == 5
        assert record["Acres"] == 10

    def test_invalid_batch_leaves_records_unchanged(self, session):
        with pytest.raises(InvalidBatchError):
            session.import_rows({"State": "MA"})
        assert len(session) == 3

    def test_add_manual_forces_inbox(self, session):
        session.set_tag(MONTEREY, "offer")
        record = session.add_manual({"State": "MA", "County": "Berkshire", "Town": "Monterey", "Parcel": "1", "Tag": "watch"})

        assert record.id == MONTEREY
        assert record.tag == "inbox"
        assert len(session) == 3

    def test_add_manual_without_identity(self, session):
        record = session.add_manual({"Acres": "3"})

        assert record.id is None
        assert len(session) == 4

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            TriageSession("castle")


# =============================================================================
# Test: Workflow Tags
# =============================================================================

class TestWorkflowTags:

    def test_set_tag_lower_cases(self, session):
        record = session.set_tag(BECKET, "VISIT")
        assert record.tag == "visit"
        assert session.find(BECKET)["Tag"] == "visit"

    def test_set_tag_unknown_id(self, session):
        assert session.set_tag("nope", "visit") is None

    def test_toggle_shortlist(self, session):
        assert session.toggle_shortlist(BECKET).tag == "shortlist"
        assert session.toggle_shortlist(BECKET).tag == "inbox"

    @pytest.mark.parametrize("target,expected", [
        ("shortlist", "shortlist"),
        ("watch", "watch"),
        ("archive", "archived"),
        ("anything", "archived"),
    ])
    def test_bulk_move(self, session, target, expected):
        moved = session.bulk_move([MONTEREY, BECKET, "missing"], target)

        assert moved == 2
        assert session.find(MONTEREY).tag == expected
        assert session.find(BECKET).tag == expected
        assert session.find(SHEFFIELD).tag == "inbox"

    def test_tag_counts(self, session):
        session.set_tag(BECKET, "visit")
        assert session.tag_counts() == {"inbox": 2, "visit": 1, "watch": 0, "offer": 0, "skip": 0}

    def test_clear(self, session):
        session.clear()
        assert len(session) == 0


# =============================================================================
# Test: Ranking and Classification
# =============================================================================

class TestRanking:

    def test_ranked_land_order(self, session):
        ranked = session.ranked()

        assert [item.record.id for item in ranked] == [BECKET, MONTEREY, SHEFFIELD]
        assert [item.position for item in ranked] == [1, 2, 3]

    def test_ranked_carries_valuation(self, session):
        by_id = {item.record.id: item for item in session.ranked()}

        assert by_id[MONTEREY].valuation.badge == ValuationBadge.FAIR_VALUE
        assert by_id[BECKET].valuation.badge == ValuationBadge.UNDERVALUED
        assert by_id[SHEFFIELD].valuation.badge == ValuationBadge.OVERPRICED

    def test_ranks_recomputed_for_filtered_subset(self, session):
        ranked = session.ranked(LandFilter(water="near"))

        assert [item.record.id for item in ranked] == [MONTEREY, SHEFFIELD]
        assert ranked[0].scored.price_per_acre_rank == 1

    def test_tab_by_name(self, session):
        session.set_tag(SHEFFIELD, "offer")
        ranked = session.ranked(tab="shortlist")

        assert [item.record.id for item in ranked] == [SHEFFIELD]

    def test_unknown_tab_rejected(self, session):
        with pytest.raises(ValueError):
            session.filtered(tab="someday")

    def test_filtered_preserves_set_order(self, session):
        assert [r.id for r in session.filtered(tab=Tab.INBOX)] == [MONTEREY, BECKET, SHEFFIELD]

    def test_valuations_keyed_by_id(self, session):
        valuations = session.valuations()

        assert set(valuations) == {MONTEREY, BECKET, SHEFFIELD}
        assert valuations[MONTEREY].percentile == 33

    def test_load_region_stats_once(self, rows, stats):
        session = TriageSession("land")
        session.import_rows(rows)

        assert session.load_region_stats(lambda: stats) == 1
        assert session.load_region_stats(lambda: {}) == 1
        assert session.classify(session.find(MONTEREY)).badge == ValuationBadge.FAIR_VALUE


class TestBuildingSessions:

    @pytest.fixture
    def multi_session(self):
        session = TriageSession("multi")
        session.import_rows([
            {"Address": "1 Elm St", "City": "Adams", "State": "MA", "Units": "2", "RentPerUnit": "1000", "Price": "400000"},
            {"Address": "9 Oak St", "City": "Pittsfield", "State": "MA", "Units": "4", "RentPerUnit": "1500", "Price": "400000"},
        ])
        return session

    def test_multi_unit_ranked_by_dscr(self, multi_session):
        ranked = multi_session.ranked()

        assert [item.record.id for item in ranked] == ["ma|pittsfield|9 oak st", "ma|adams|1 elm st"]
        assert ranked[0].scored is None

    def test_annotate_attaches_metrics(self, multi_session):
        records = multi_session.annotate()
        assert all(isinstance(r.metrics, MultiUnitMetrics) for r in records)

    def test_session_financing_used_by_filters(self):
        session = TriageSession("multi", financing=FinancingAssumptions(down_percent=100))
        session.import_rows([{"Address": "1 Elm St", "City": "Adams", "State": "MA", "Units": "2", "RentPerUnit": "1000", "Price": "400000"}])

        # Paid in cash: no debt service, so DSCR is defined as 0
        assert session.filtered(MultiUnitFilter(min_dscr=0.5)) == []

    def test_single_family_ranked_by_yield(self):
        session = TriageSession("single")
        session.import_rows([
            {"Address": "5 Pine", "City": "Keene", "State": "NH", "Price": "400000", "RentZestimate": "2500"},
            {"Address": "7 Pine", "City": "Keene", "State": "NH", "Price": "300000", "RentZestimate": "2500"},
        ])
        assert [item.record.id for item in session.ranked()] == ["nh|keene|7 pine", "nh|keene|5 pine"]


# =============================================================================
# Test: Persistence Round Trip
# =============================================================================

class TestPersistenceRows:

    def test_rows_rebuild_the_same_set(self, session):
        session.set_tag(BECKET, "visit")
        session.add_manual({"Acres": "3"})
        rebuilt = TriageSession.from_rows("land", session.to_rows())

        assert rebuilt.records == session.records

    @pytest.mark.parametrize("payload", [None, {"rows": []}, "[]"])
    def test_unusable_payload_gives_empty_session(self, payload):
        assert len(TriageSession.from_rows("land", payload)) == 0

    def test_non_mapping_rows_skipped(self, rows):
        session = TriageSession.from_rows("land", rows + [42, "x"])
        assert len(session) == 3
