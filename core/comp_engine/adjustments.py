"""
Price Adjuster for the ARV Comp Engine

Moves a comp's sale price toward the subject's characteristics:
- Living area at the comp's own $/sqft
- 9% of sale price per bedroom, 6% per bathroom
- 0.7% of sale price per year of construction age difference

Condition and $/sqft alignment are scoring signals only and carry no
price term.
"""

from dataclasses import dataclass

from .models import ComparableSale, SubjectProperty
from .rounding import round_half_up


BED_VALUE_RATE = 0.09
BATH_VALUE_RATE = 0.06
AGE_VALUE_RATE_PER_YEAR = 0.007


@dataclass
class PriceAdjustment:
    """Individual adjustment terms applied to a comp's sale price."""
    sold_price: int
    sqft: float = 0.0
    beds: float = 0.0
    baths: float = 0.0
    age: float = 0.0

    @property
    def total(self) -> float:
        """Sum of all adjustment terms."""
        return self.sqft + self.beds + self.baths + self.age

    @property
    def adjusted_price(self) -> int:
        """Sale price plus adjustments, rounded to whole currency units."""
        return round_half_up(self.sold_price + self.total)


def adjust_price(comp: ComparableSale, subject: SubjectProperty) -> PriceAdjustment:
    """
    Calculate the subject-adjusted price for a comp.

    Each term applies only when both sides carry the measurement.

    Args:
        comp: Comparable sale
        subject: Subject property

    Returns:
        PriceAdjustment with each term and the rounded adjusted price
    """
    adjustment = PriceAdjustment(sold_price=comp.sold_price)

    if comp.sqft > 0 and subject.sqft > 0:
        adjustment.sqft = (subject.sqft - comp.sqft) * (comp.sold_price / comp.sqft)

    if comp.beds > 0 and subject.beds > 0:
        adjustment.beds = (subject.beds - comp.beds) * comp.sold_price * BED_VALUE_RATE

    if comp.baths > 0 and subject.baths > 0:
        adjustment.baths = (subject.baths - comp.baths) * comp.sold_price * BATH_VALUE_RATE

    # Newer comps carry a premium that is subtracted out, and vice versa
    if comp.year_built > 0 and subject.year_built > 0:
        age_diff = comp.year_built - subject.year_built
        adjustment.age = -age_diff * comp.sold_price * AGE_VALUE_RATE_PER_YEAR

    return adjustment
