"""
Similarity Scoring for the ARV Comp Engine

Seven independent sub-scores, each normalised to 0-100:
- Distance (25%)
- Recency (20%)
- Living area (20%)
- Beds/baths (10%)
- Condition keywords (10%)
- Year built (5%)
- Price per sqft alignment (10%)

Missing data is treated as unknown, never as zero magnitude. Factors that
carry a price adjustment default to 100 (no penalty); pure scoring
factors (distance, recency) default to a neutral 50.
"""

import re
from datetime import date
from typing import Dict, Final, Optional, Tuple

from .geo import haversine_miles
from .models import ComparableSale, ScoreBreakdown, SubjectProperty
from .rounding import round_half_up


# =============================================================================
# Configuration Constants
# =============================================================================

SCORE_WEIGHTS: Final[Dict[str, float]] = {
    "distance": 0.25,
    "recency": 0.20,
    "living_area": 0.20,
    "beds_baths": 0.10,
    "condition": 0.10,
    "year_built": 0.05,
    "price_per_sqft": 0.10,
}

# Neutral scores when there is no signal
NEUTRAL_DISTANCE_SCORE = 50.0
NEUTRAL_RECENCY_SCORE = 50.0

# Distance bands (miles)
DISTANCE_BAND_NEAR = 0.25
DISTANCE_BAND_CLOSE = 0.5
DISTANCE_BAND_LOCAL = 1.0
DISTANCE_DECAY_PER_MILE = 25.0

# Recency bands (months)
AVERAGE_DAYS_PER_MONTH = 30.44
RECENCY_FULL_MONTHS = 6
RECENCY_HALF_MONTHS = 12
RECENCY_ZERO_MONTHS = 18

# Living area: 2 points per % difference, max 30
SQFT_PENALTY_PER_PERCENT = 2.0
SQFT_MAX_PENALTY = 30.0

# Beds/baths: points per room difference
BED_PENALTY = 10.0
BATH_PENALTY = 5.0

# Condition keywords
UPDATED_KEYWORDS: Final[tuple] = ("updated", "renovated", "remodeled")
AS_IS_KEYWORDS: Final[tuple] = ("as-is", "as is", "fixer")
CONDITION_BOTH_UPDATED = 110.0
CONDITION_MISMATCH = 90.0

# Year built: 1.5 points per year beyond a 10 year tolerance, max 15
AGE_TOLERANCE_YEARS = 10
AGE_PENALTY_PER_YEAR = 1.5
AGE_MAX_PENALTY = 15.0

# Price per sqft: 0.3 points per % difference, max 20
PPSF_PENALTY_PER_PERCENT = 0.3
PPSF_MAX_PENALTY = 20.0

_US_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")


def clamp_score(value: float) -> float:
    """Clamp a score to the 0-100 range."""
    return max(0.0, min(100.0, value))


# =============================================================================
# Sale Dates
# =============================================================================

def parse_sale_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a sale or listing date string.

    Accepts M/D/YYYY, M/D/YY and YYYY-MM-DD. Two digit years below 50
    map to 20xx, the rest to 19xx.

    Returns:
        The parsed date, or None if the value is empty or unparsable
    """
    if not value:
        return None

    text = value.strip()

    try:
        match = _US_DATE_PATTERN.match(text)
        if match:
            month, day, year_text = match.groups()
            year = int(year_text)
            if len(year_text) == 2:
                year += 2000 if year < 50 else 1900
            return date(year, int(month), int(day))

        match = _ISO_DATE_PATTERN.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)
    except ValueError:
        # Out-of-range month or day
        return None

    return None


def months_since(sale_date: date, reference_date: date) -> float:
    """Months elapsed between a sale date and the reference date."""
    return (reference_date - sale_date).days / AVERAGE_DAYS_PER_MONTH


# =============================================================================
# Sub-Scores
# =============================================================================

def score_distance_miles(miles: float) -> float:
    """
    Map a distance to a score.

    <= 0.25 mi: 100, <= 0.5 mi: 80, <= 1.0 mi: 50, then linear decay to
    0 at 3 miles.
    """
    if miles <= DISTANCE_BAND_NEAR:
        return 100.0
    if miles <= DISTANCE_BAND_CLOSE:
        return 80.0
    if miles <= DISTANCE_BAND_LOCAL:
        return 50.0
    return max(0.0, 50.0 - (miles - DISTANCE_BAND_LOCAL) * DISTANCE_DECAY_PER_MILE)


def distance_score(
    comp: ComparableSale,
    subject: SubjectProperty,
) -> Tuple[float, Optional[float]]:
    """
    Score proximity of comp to subject.

    Returns:
        Tuple of (score, distance in miles or None if not geocoded)
    """
    if not (comp.has_coordinates and subject.has_coordinates):
        return NEUTRAL_DISTANCE_SCORE, None

    miles = haversine_miles(subject.lat, subject.lng, comp.lat, comp.lng)
    return score_distance_miles(miles), miles


def score_recency_months(months: float) -> float:
    """
    Map months since sale to a score.

    <= 6 months: 100, linear 100 -> 50 up to 12 months, linear 50 -> 0
    up to 18 months, 0 beyond.
    """
    if months <= RECENCY_FULL_MONTHS:
        return 100.0
    if months <= RECENCY_HALF_MONTHS:
        return 50.0 + ((RECENCY_HALF_MONTHS - months) / 6) * 50.0
    if months <= RECENCY_ZERO_MONTHS:
        return ((RECENCY_ZERO_MONTHS - months) / 6) * 50.0
    return 0.0


def recency_score(
    comp: ComparableSale,
    reference_date: date,
) -> Tuple[float, Optional[float]]:
    """
    Score how recently the comp sold.

    Returns:
        Tuple of (score, months since sale or None if date is unusable)
    """
    sale_date = parse_sale_date(comp.sold_date)
    if sale_date is None:
        return NEUTRAL_RECENCY_SCORE, None

    months = months_since(sale_date, reference_date)
    return score_recency_months(months), months


def living_area_score(
    comp: ComparableSale,
    subject: SubjectProperty,
) -> Tuple[float, float]:
    """
    Score living area similarity.

    Returns:
        Tuple of (score, absolute sqft difference as % of subject sqft)
    """
    if comp.sqft <= 0 or subject.sqft <= 0:
        return 100.0, 0.0

    diff_percent = abs(subject.sqft - comp.sqft) / subject.sqft * 100
    penalty = min(diff_percent * SQFT_PENALTY_PER_PERCENT, SQFT_MAX_PENALTY)
    return max(0.0, 100.0 - penalty), diff_percent


def beds_baths_score(
    comp: ComparableSale,
    subject: SubjectProperty,
) -> Tuple[float, int, float]:
    """
    Score room count similarity.

    Returns:
        Tuple of (score, bed difference, bath difference), differences
        being subject minus comp and 0 when either side is unknown
    """
    score = 100.0
    bed_diff = 0
    bath_diff = 0.0

    if comp.beds > 0 and subject.beds > 0:
        bed_diff = subject.beds - comp.beds
        score -= abs(bed_diff) * BED_PENALTY

    if comp.baths > 0 and subject.baths > 0:
        bath_diff = subject.baths - comp.baths
        score -= abs(bath_diff) * BATH_PENALTY

    return max(0.0, score), bed_diff, bath_diff


def condition_flags(description: Optional[str]) -> Tuple[bool, bool]:
    """
    Detect condition keywords in a listing description.

    Returns:
        Tuple of (updated, as_is)
    """
    text = (description or "").lower()
    updated = any(keyword in text for keyword in UPDATED_KEYWORDS)
    as_is = any(keyword in text for keyword in AS_IS_KEYWORDS)
    return updated, as_is


def condition_score(comp: ComparableSale, subject: SubjectProperty) -> float:
    """
    Raw condition score before clamping.

    Both updated: 110 (bonus). As-is flags disagree: 90. Otherwise 100.
    """
    comp_updated, comp_as_is = condition_flags(comp.description)
    subject_updated, subject_as_is = condition_flags(subject.description)

    if comp_updated and subject_updated:
        return CONDITION_BOTH_UPDATED
    if comp_as_is != subject_as_is:
        return CONDITION_MISMATCH
    return 100.0


def year_built_score(
    comp: ComparableSale,
    subject: SubjectProperty,
) -> Tuple[float, int]:
    """
    Score construction age similarity.

    Returns:
        Tuple of (score, comp year minus subject year)
    """
    if comp.year_built <= 0 or subject.year_built <= 0:
        return 100.0, 0

    age_diff = comp.year_built - subject.year_built
    if abs(age_diff) <= AGE_TOLERANCE_YEARS:
        return 100.0, age_diff

    penalty = min(
        (abs(age_diff) - AGE_TOLERANCE_YEARS) * AGE_PENALTY_PER_YEAR,
        AGE_MAX_PENALTY,
    )
    return max(0.0, 100.0 - penalty), age_diff


def price_per_sqft_score(
    comp: ComparableSale,
    subject: SubjectProperty,
) -> Tuple[float, float]:
    """
    Cross-check comp $/sqft against the subject's asking $/sqft.

    Returns:
        Tuple of (score, absolute $/sqft difference as % of subject $/sqft)
    """
    if (
        comp.sqft <= 0
        or subject.sqft <= 0
        or comp.sold_price <= 0
        or subject.purchase_price <= 0
    ):
        return 100.0, 0.0

    comp_ppsf = comp.sold_price / comp.sqft
    subject_ppsf = subject.purchase_price / subject.sqft
    diff_percent = abs(comp_ppsf - subject_ppsf) / subject_ppsf * 100
    penalty = min(diff_percent * PPSF_PENALTY_PER_PERCENT, PPSF_MAX_PENALTY)
    return max(0.0, 100.0 - penalty), diff_percent


# =============================================================================
# Aggregate
# =============================================================================

def weighted_score(sub_scores: Dict[str, float]) -> int:
    """Combine sub-scores into a 0-100 similarity score."""
    total = sum(
        sub_scores[factor] * weight
        for factor, weight in SCORE_WEIGHTS.items()
    )
    return int(clamp_score(round_half_up(total)))


def score_comp(
    comp: ComparableSale,
    subject: SubjectProperty,
    reference_date: date,
) -> ScoreBreakdown:
    """
    Compute every sub-score and the weighted similarity for one comp.

    Args:
        comp: Comparable sale being scored
        subject: Subject property
        reference_date: Date recency is measured against

    Returns:
        ScoreBreakdown with clamped sub-scores and raw measurements
    """
    dist, miles = distance_score(comp, subject)
    recency, months = recency_score(comp, reference_date)
    living_area, sqft_diff_percent = living_area_score(comp, subject)
    beds_baths, bed_diff, bath_diff = beds_baths_score(comp, subject)
    condition_raw = condition_score(comp, subject)
    year_built, age_diff = year_built_score(comp, subject)
    ppsf, ppsf_diff_percent = price_per_sqft_score(comp, subject)

    breakdown = ScoreBreakdown(
        distance_score=clamp_score(dist),
        recency_score=clamp_score(recency),
        living_area_score=clamp_score(living_area),
        beds_baths_score=clamp_score(beds_baths),
        condition_score=clamp_score(condition_raw),
        year_built_score=clamp_score(year_built),
        price_per_sqft_score=clamp_score(ppsf),
        final_score=0,
        condition_raw=condition_raw,
        distance_miles=miles,
        months_since_sale=months,
        sqft_diff_percent=sqft_diff_percent,
        bed_diff=bed_diff,
        bath_diff=bath_diff,
        age_diff=age_diff,
        ppsf_diff_percent=ppsf_diff_percent,
    )
    breakdown.final_score = weighted_score(breakdown.sub_scores)
    return breakdown
