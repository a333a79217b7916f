"""
Triage Session - Live Record Set Pipeline

Owns the record set for one record kind and runs the full pipeline over it:
1. IMPORT - normalise and merge incoming rows by identity
2. TAG - workflow actions (set, toggle shortlist, bulk move)
3. ANNOTATE - attach derived financial metrics
4. FILTER - workflow tab and per-kind criteria
5. RANK - composite scoring (land) or financial ordering
6. CLASSIFY - regional valuation of land records
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .filters import MultiUnitFilter, Tab, apply_filters, tag_counts, unique_states
from .finance import FinancingAssumptions, derive_metrics
from .ingestion import get_schema, merge_records, normalize_record
from .models import DEFAULT_TAG, Record, RecordKind, TAG_FIELD
from .scoring import (
    LandRankScorer,
    ScoredRecord,
    ScoringWeights,
    order_multi_unit,
    order_single_family,
)
from .valuation import RegionalValuation, RegionalValuationClassifier, RegionStatsCache


logger = logging.getLogger(__name__)


SHORTLIST_TAG = "shortlist"
BULK_TARGETS = ("shortlist", "watch")
ARCHIVED_TAG = "archived"


@dataclass
class RankedRecord:
    """
    A record in ranked order with everything computed for display.

    ``scored`` is only set for land records, ``valuation`` only for land
    records when a region cache is available.
    """
    position: int
    record: Record
    scored: Optional[ScoredRecord] = None
    valuation: Optional[RegionalValuation] = None

    @property
    def composite_score(self) -> Optional[float]:
        return self.scored.composite_score if self.scored else None


class TriageSession:
    """
    Triage pipeline over one record kind.

    The record set is only changed through the methods below; every read
    that ranks or classifies recomputes from the current records.
    """

    def __init__(
        self,
        kind: Union[RecordKind, str],
        records: Optional[Iterable[Record]] = None,
        region_cache: Optional[RegionStatsCache] = None,
        weights: Optional[ScoringWeights] = None,
        financing: Optional[FinancingAssumptions] = None,
    ):
        """
        Initialize session.

        Args:
            kind: Record kind (or its name)
            records: Initial record set
            region_cache: Region benchmark cache (a fresh empty one if None)
            weights: Land scoring weights
            financing: Default financing assumptions for multi-unit records

        Raises:
            ValueError: If the kind is not recognised
        """
        self.schema = get_schema(kind)
        self.kind = self.schema.kind
        self.region_cache = region_cache if region_cache is not None else RegionStatsCache()
        self.financing = financing or FinancingAssumptions()
        self._scorer = LandRankScorer(weights)
        self._classifier = RegionalValuationClassifier(self.region_cache)
        self._records: List[Record] = [r.copy() for r in records or ()]

    @property
    def records(self) -> List[Record]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def import_rows(self, rows: Any) -> int:
        """
        Merge a batch of raw rows into the record set.

        Returns:
            Number of records added (merged rows are not counted)

        Raises:
            InvalidBatchError: If the batch is not a list of rows
        """
        before = len(self._records)
        self._records = merge_records(self._records, rows, self.schema)
        added = len(self._records) - before
        logger.info("Imported %s batch: %d added, %d total", self.kind.value, added, len(self._records))
        return added

    def add_manual(self, row: Mapping[str, Any]) -> Optional[Record]:
        """Add (or update) a single manually entered record, tagged inbox."""
        entry = dict(row or {})
        entry[TAG_FIELD] = DEFAULT_TAG
        record = normalize_record(entry, self.schema)
        self._records = merge_records(self._records, [record])
        return self.find(record.id) if record.id is not None else self._records[-1]

    def find(self, record_id: str) -> Optional[Record]:
        for record in self._records:
            if record.id is not None and record.id == record_id:
                return record
        return None

    def clear(self) -> None:
        """Remove every record."""
        logger.info("Cleared %d %s records", len(self._records), self.kind.value)
        self._records = []

    # -------------------------------------------------------------------------
    # Workflow Tags
    # -------------------------------------------------------------------------

    def _retag(self, record_id: str, tag_for: Callable[[Record], str]) -> Optional[Record]:
        for position, record in enumerate(self._records):
            if record.id is not None and record.id == record_id:
                updated = record.copy()
                updated.fields[TAG_FIELD] = tag_for(record)
                self._records[position] = updated
                return updated
        return None

    def set_tag(self, record_id: str, tag: str) -> Optional[Record]:
        """
        Set a record's workflow tag (lower-cased).

        Returns:
            The updated record, or None if no record has that id
        """
        value = str(tag or "").strip().lower() or DEFAULT_TAG
        return self._retag(record_id, lambda _: value)

    def toggle_shortlist(self, record_id: str) -> Optional[Record]:
        """Move a record between shortlist and inbox."""
        return self._retag(
            record_id,
            lambda r: DEFAULT_TAG if r.tag == SHORTLIST_TAG else SHORTLIST_TAG,
        )

    def bulk_move(self, record_ids: Iterable[str], target: str) -> int:
        """
        Move the selected records to shortlist, watch or (anything else) archived.

        Returns:
            Number of records moved
        """
        target = str(target or "").strip().lower()
        tag = target if target in BULK_TARGETS else ARCHIVED_TAG
        moved = 0
        for record_id in set(record_ids):
            if self._retag(record_id, lambda _: tag) is not None:
                moved += 1
        return moved

    # -------------------------------------------------------------------------
    # Derivation, Filtering and Ranking
    # -------------------------------------------------------------------------

    def annotate(self) -> List[Record]:
        """Attach freshly derived metrics to every record."""
        for record in self._records:
            record.metrics = derive_metrics(record, self.financing)
        return self.records

    def filtered(self, criteria=None, tab: Union[Tab, str, None] = None) -> List[Record]:
        """Records in the given tab matching the filter criteria, in set order."""
        if isinstance(tab, str):
            resolved = Tab.from_string(tab)
            if resolved is None:
                raise ValueError(f"Unknown tab: {tab}")
            tab = resolved
        if isinstance(criteria, MultiUnitFilter) and criteria.assumptions is None:
            criteria = replace(criteria, assumptions=self.financing)
        return apply_filters(self._records, criteria, tab)

    def scored(self, criteria=None, tab: Union[Tab, str, None] = None) -> List[ScoredRecord]:
        """Land records scored and ordered best first."""
        return self._scorer.rank(self.filtered(criteria, tab))

    def ranked(self, criteria=None, tab: Union[Tab, str, None] = None) -> List[RankedRecord]:
        """
        Filter, annotate and order the record set for display.

        Land records are ordered by composite score and classified against
        the region cache; multi-unit and single-family records are ordered
        on their financial metrics.
        """
        self.annotate()
        subset = self.filtered(criteria, tab)

        if self.kind == RecordKind.LAND:
            return [
                RankedRecord(
                    position=i,
                    record=s.record,
                    scored=s,
                    valuation=self._classifier.classify(s.record),
                )
                for i, s in enumerate(self._scorer.rank(subset), start=1)
            ]

        if self.kind == RecordKind.MULTI_UNIT:
            ordered = order_multi_unit(subset, self.financing)
        else:
            ordered = order_single_family(subset)
        return [RankedRecord(position=i, record=r) for i, r in enumerate(ordered, start=1)]

    # -------------------------------------------------------------------------
    # Regional Valuation
    # -------------------------------------------------------------------------

    def load_region_stats(self, loader: Callable[[], Any]) -> int:
        """Populate the region cache once; returns the number of regions known."""
        return len(self.region_cache.populate(loader))

    def classify(self, record: Record) -> RegionalValuation:
        return self._classifier.classify(record)

    def valuations(self) -> Dict[str, RegionalValuation]:
        """Classification of every identified record, keyed by id."""
        return {
            record.id: self._classifier.classify(record)
            for record in self._records
            if record.id is not None
        }

    # -------------------------------------------------------------------------
    # Summaries and Persistence
    # -------------------------------------------------------------------------

    def tag_counts(self) -> Dict[str, int]:
        return tag_counts(self._records)

    def unique_states(self) -> List[str]:
        return unique_states(self._records)

    def to_rows(self) -> List[Dict[str, Any]]:
        """Flat rows for the persistence blob."""
        return [record.to_row() for record in self._records]

    @classmethod
    def from_rows(cls, kind: Union[RecordKind, str], rows: Any, **kwargs) -> "TriageSession":
        """
        Rebuild a session from persisted rows.

        Unusable payloads produce an empty session.
        """
        session = cls(kind, **kwargs)
        if isinstance(rows, (list, tuple)):
            session.import_rows([row for row in rows if isinstance(row, Mapping)])
        else:
            logger.warning("Ignoring stored %s payload: not a list", session.kind.value)
        return session
