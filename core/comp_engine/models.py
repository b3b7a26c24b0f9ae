"""
Data models for the ARV Comp Engine

Defines the comparable sale and subject property records supplied by the
caller, and the derived structures the engine returns (per-comp
adjustments, score breakdowns and the ARV result).
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .rounding import round_half_up


# Placeholder address used by listing extraction when none could be parsed
UNKNOWN_ADDRESS = "unknown address"


class ValuationMethod(Enum):
    """
    How the ARV was produced.

    WEIGHTED: similarity-weighted average of adjusted prices
    MEDIAN_FALLBACK: median of raw sale prices (subject lacks sqft)
    NO_COMPS: no comps supplied, no estimate
    """
    WEIGHTED = "weighted"
    MEDIAN_FALLBACK = "median_fallback"
    NO_COMPS = "no_comps"


@dataclass
class Photo:
    """A listing photo owned by a single comp."""
    id: str
    url: str
    is_primary: bool = False


@dataclass
class ComparableSale:
    """
    A sold (or actively listed) property used as a market reference.

    Zero values for beds, baths, sqft and year_built mean "unknown",
    never a zero-valued measurement.
    """
    # Identity
    id: str
    address: str

    # Financial
    sold_price: int
    sold_date: str = ""  # M/D/YY, M/D/YYYY or YYYY-MM-DD
    price_per_sqft: float = 0.0  # 0 = derive from sold_price / sqft
    zestimate: Optional[int] = None
    rent_zestimate: Optional[int] = None

    # Physical
    beds: int = 0
    baths: float = 0.0
    sqft: int = 0
    year_built: int = 0
    property_type: str = ""
    lot_size: Optional[int] = None
    has_pool: Optional[bool] = None
    parking_spaces: Optional[int] = None
    days_on_market: Optional[int] = None

    # Narrative
    description: str = ""
    listing_url: str = ""

    # Geospatial (absent until geocoded)
    lat: Optional[float] = None
    lng: Optional[float] = None

    # Media
    photos: List[Photo] = field(default_factory=list)

    def __post_init__(self):
        """Validate physical fields."""
        if self.beds < 0:
            raise ValueError("beds cannot be negative")
        if self.baths < 0:
            raise ValueError("baths cannot be negative")
        if self.sqft < 0:
            raise ValueError("sqft cannot be negative")

    @property
    def address_key(self) -> str:
        """Normalised address used for duplicate detection."""
        return self.address.lower().strip()

    @property
    def effective_price_per_sqft(self) -> float:
        """Provided price per sqft, or derived from sale price and size."""
        if self.price_per_sqft > 0:
            return self.price_per_sqft
        if self.sqft > 0 and self.sold_price > 0:
            return round_half_up(self.sold_price / self.sqft)
        return 0.0

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass
class SubjectProperty:
    """
    The property being valued.

    sqft = 0 signals insufficient data for weighted adjustment; the engine
    falls back to the median of comp sale prices.
    """
    address: str = ""
    purchase_price: int = 0  # Asking/purchase price
    beds: int = 0
    baths: float = 0.0
    sqft: int = 0
    year_built: int = 0
    property_type: str = ""
    units: int = 1

    # Optional listing metadata
    description: str = ""
    days_on_market: Optional[int] = None
    listing_url: str = ""
    zestimate: Optional[int] = None
    rent_zestimate: Optional[int] = None
    is_off_market: bool = False

    # Geospatial
    lat: Optional[float] = None
    lng: Optional[float] = None

    def __post_init__(self):
        """Validate physical fields."""
        if self.beds < 0:
            raise ValueError("beds cannot be negative")
        if self.baths < 0:
            raise ValueError("baths cannot be negative")
        if self.sqft < 0:
            raise ValueError("sqft cannot be negative")

    @property
    def has_usable_size(self) -> bool:
        """Whether weighted adjustment can be applied."""
        return self.sqft > 0

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def recompute_key(self) -> Tuple:
        """Fields whose change requires the ARV to be recomputed."""
        return (
            self.beds,
            self.baths,
            self.sqft,
            self.year_built,
            self.property_type,
            self.purchase_price,
            self.description,
            self.lat,
            self.lng,
        )


@dataclass
class ScoreBreakdown:
    """
    Per-comp diagnostic record of the similarity score.

    Derived on demand and never persisted. Sub-scores are clamped to
    0-100; condition_raw keeps the pre-clamp condition score.
    """
    distance_score: float
    recency_score: float
    living_area_score: float
    beds_baths_score: float
    condition_score: float
    year_built_score: float
    price_per_sqft_score: float
    final_score: int

    condition_raw: float = 100.0

    # Raw measurements
    distance_miles: Optional[float] = None
    months_since_sale: Optional[float] = None
    sqft_diff_percent: float = 0.0
    bed_diff: int = 0
    bath_diff: float = 0.0
    age_diff: int = 0
    ppsf_diff_percent: float = 0.0

    @property
    def sub_scores(self) -> dict:
        """The seven sub-scores keyed by factor name."""
        return {
            "distance": self.distance_score,
            "recency": self.recency_score,
            "living_area": self.living_area_score,
            "beds_baths": self.beds_baths_score,
            "condition": self.condition_score,
            "year_built": self.year_built_score,
            "price_per_sqft": self.price_per_sqft_score,
        }

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for any presentation layer."""
        return asdict(self)


@dataclass
class CompAdjustment:
    """Adjusted price and similarity score for a single comp."""
    comp_id: str
    adjusted_price: int
    similarity_score: int  # 0-100

    def to_dict(self) -> dict:
        return {
            "comp_id": self.comp_id,
            "adjusted_price": self.adjusted_price,
            "similarity_score": self.similarity_score,
        }


@dataclass
class ARVResult:
    """
    Freshly computed After-Repair Value for a comp set and subject.

    An arv of 0 with no comps means "no estimate", not a computed zero.
    """
    arv: int
    method: ValuationMethod
    comps_used: int
    adjustments: List[CompAdjustment] = field(default_factory=list)

    @property
    def has_estimate(self) -> bool:
        return self.arv > 0 and self.comps_used > 0

    def adjustment_for(self, comp_id: str) -> Optional[CompAdjustment]:
        """Look up the adjustment for a comp id."""
        for adjustment in self.adjustments:
            if adjustment.comp_id == comp_id:
                return adjustment
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "arv": self.arv,
            "method": self.method.value,
            "comps_used": self.comps_used,
            "has_estimate": self.has_estimate,
            "adjustments": [a.to_dict() for a in self.adjustments],
        }


@dataclass
class CompStats:
    """Summary statistics across the raw comp set."""
    avg_price: int
    min_price: int
    max_price: int
    avg_sqft: int
    avg_price_per_sqft: int

    def to_dict(self) -> dict:
        return asdict(self)
