"""
Parcel Scout - Core Triage Engine

This package provides the listing triage pipeline:
1. Ingestion (field schemas, normaliser, identity-keyed merge)
2. Financial Derivation (amortisation, cap rate, DSCR, unit prices)
3. Filtering (workflow tabs and per-kind criteria)
4. Scoring & Ranking (rank-based composite, deterministic)
5. Regional Valuation (percentile against regional benchmarks)
"""

from .models import DEFAULT_TAG, TAG_FIELD, Record, RecordKind

# Ingestion Layer
from .ingestion import (
    FieldSchema,
    InvalidBatchError,
    LAND_SCHEMA,
    MULTI_UNIT_SCHEMA,
    SINGLE_FAMILY_SCHEMA,
    get_schema,
    identity_from,
    merge_records,
    normalize_record,
    RecordNormalizer,
)

# Financial Derivation
from .finance import (
    AcquisitionEstimate,
    AcquisitionInputs,
    FinancingAssumptions,
    LandMetrics,
    MultiUnitCalculatorEstimate,
    MultiUnitCalculatorInputs,
    MultiUnitMetrics,
    SingleFamilyMetrics,
    derive_metrics,
    estimate_acquisition,
    estimate_multi_unit_purchase,
    monthly_payment,
)

# Filters and Scoring
from .filters import LandFilter, MultiUnitFilter, SingleFamilyFilter, Tab
from .scoring import (
    LandRankScorer,
    RankTable,
    ScoredRecord,
    ScoringWeights,
    build_land_ranks,
    location_fit_score,
    order_multi_unit,
    order_single_family,
)

# Regional Valuation
from .valuation import (
    BuySignal,
    RegionalValuation,
    RegionalValuationClassifier,
    RegionBenchmark,
    RegionStatsCache,
    ValuationBadge,
)

# Triage Session
from .triage import RankedRecord, TriageSession

__all__ = [
    # Models
    "DEFAULT_TAG",
    "TAG_FIELD",
    "Record",
    "RecordKind",
    # Ingestion
    "FieldSchema",
    "InvalidBatchError",
    "LAND_SCHEMA",
    "MULTI_UNIT_SCHEMA",
    "SINGLE_FAMILY_SCHEMA",
    "get_schema",
    "identity_from",
    "merge_records",
    "normalize_record",
    "RecordNormalizer",
    # Finance
    "AcquisitionEstimate",
    "AcquisitionInputs",
    "FinancingAssumptions",
    "LandMetrics",
    "MultiUnitMetrics",
    "SingleFamilyMetrics",
    "derive_metrics",
    "estimate_acquisition",
    "estimate_multi_unit_purchase",
    "MultiUnitCalculatorInputs",
    "MultiUnitCalculatorEstimate",
    "monthly_payment",
    # Filters
    "LandFilter",
    "MultiUnitFilter",
    "SingleFamilyFilter",
    "Tab",
    # Scoring
    "LandRankScorer",
    "RankTable",
    "ScoredRecord",
    "ScoringWeights",
    "build_land_ranks",
    "location_fit_score",
    "order_multi_unit",
    "order_single_family",
    # Valuation
    "BuySignal",
    "RegionalValuation",
    "RegionalValuationClassifier",
    "RegionBenchmark",
    "RegionStatsCache",
    "ValuationBadge",
    # Session
    "RankedRecord",
    "TriageSession",
]
