"""
ARV Comp Engine v1.0

Comparable-sales valuation for After-Repair Value (ARV) estimates.
Each comp's sale price is adjusted toward the subject property, scored for
similarity on seven weighted factors, and aggregated into a single
similarity-weighted ARV, falling back to the median sale price when the
subject has no usable size data.
"""

from .models import (
    ComparableSale,
    SubjectProperty,
    Photo,
    ScoreBreakdown,
    CompAdjustment,
    ARVResult,
    CompStats,
    ValuationMethod,
)
from .errors import CompSetError, InvalidCompError, CompNotFoundError
from .geo import haversine_miles
from .scoring import SCORE_WEIGHTS, parse_sale_date, score_comp
from .adjustments import PriceAdjustment, adjust_price
from .valuation import ARVValuationEngine
from .controller import ControllerState, RecomputeController
from .comp_set import CompSet

__all__ = [
    # Models
    "ComparableSale",
    "SubjectProperty",
    "Photo",
    "ScoreBreakdown",
    "CompAdjustment",
    "ARVResult",
    "CompStats",
    "ValuationMethod",
    # Errors
    "CompSetError",
    "InvalidCompError",
    "CompNotFoundError",
    # Scoring and adjustment
    "haversine_miles",
    "SCORE_WEIGHTS",
    "parse_sale_date",
    "score_comp",
    "PriceAdjustment",
    "adjust_price",
    # Engine
    "ARVValuationEngine",
    "ControllerState",
    "RecomputeController",
    "CompSet",
]

__version__ = "1.0"
