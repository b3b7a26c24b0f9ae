"""
ARV Comp Engine - Core Business Logic

Pipeline:
1. Ingestion (CompSet: validation and duplicate-address rejection)
2. Scoring (seven weighted similarity factors)
3. Price Adjustment (sqft, beds, baths, age)
4. Aggregation (similarity-weighted ARV, median fallback)
5. Publication (RecomputeController: publish only on change)
"""

from .comp_engine import (
    ComparableSale,
    SubjectProperty,
    Photo,
    ScoreBreakdown,
    CompAdjustment,
    ARVResult,
    CompStats,
    ValuationMethod,
    CompSetError,
    InvalidCompError,
    CompNotFoundError,
    ARVValuationEngine,
    ControllerState,
    RecomputeController,
    CompSet,
)

__all__ = [
    "ComparableSale",
    "SubjectProperty",
    "Photo",
    "ScoreBreakdown",
    "CompAdjustment",
    "ARVResult",
    "CompStats",
    "ValuationMethod",
    "CompSetError",
    "InvalidCompError",
    "CompNotFoundError",
    "ARVValuationEngine",
    "ControllerState",
    "RecomputeController",
    "CompSet",
]
