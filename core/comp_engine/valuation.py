"""
Valuation Engine for the ARV Comp Engine

Implements:
- Per-comp adjusted price and similarity score
- Similarity-weighted ARV aggregation
- Median fallback when the subject lacks size data
- Score breakdowns and summary statistics on demand
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from .adjustments import adjust_price
from .models import (
    ARVResult,
    ComparableSale,
    CompAdjustment,
    CompStats,
    ScoreBreakdown,
    SubjectProperty,
    ValuationMethod,
)
from .rounding import round_half_up
from .scoring import score_comp


logger = logging.getLogger(__name__)


class ARVValuationEngine:
    """
    Pure, synchronous ARV calculation over a snapshot of comps and subject.

    Pipeline order:
    1. SELECT - No comps, median fallback, or weighted
    2. SCORE - Seven sub-scores per comp, weighted to a similarity score
    3. ADJUST - Move each sale price toward the subject
    4. AGGREGATE - Similarity-weighted average of adjusted prices
    """

    def __init__(self, reference_date: date = None):
        """
        Initialize valuation engine.

        Args:
            reference_date: Date recency is measured against (default: today)
        """
        self._reference_date = reference_date

    @property
    def reference_date(self) -> date:
        return self._reference_date or date.today()

    def valuate(
        self,
        subject: Optional[SubjectProperty],
        comps: Sequence[ComparableSale],
    ) -> ARVResult:
        """
        Compute the ARV for a subject from its comps.

        Args:
            subject: The property being valued (may be None)
            comps: Comparable sales supplied by the caller

        Returns:
            ARVResult with the estimate and per-comp adjustments
        """
        comps = tuple(comps)

        # Step 1: No comps, no estimate
        if not comps:
            logger.debug("No comps supplied, no estimate")
            return ARVResult(arv=0, method=ValuationMethod.NO_COMPS, comps_used=0)

        # Step 2: Subject lacks size data, use median of raw prices
        if subject is None or not subject.has_usable_size:
            median = self._calculate_median(comps)
            logger.debug("Subject has no usable sqft, median of %d comps: %d", len(comps), median)
            return ARVResult(
                arv=median,
                method=ValuationMethod.MEDIAN_FALLBACK,
                comps_used=len(comps),
                adjustments=[self.adjust_comp(c, subject) for c in comps],
            )

        # Step 3: Score and adjust every comp
        adjustments = [self.adjust_comp(c, subject) for c in comps]

        # Step 4: Aggregate
        arv = self._calculate_weighted_arv(adjustments)
        logger.debug("Weighted ARV from %d comps: %d", len(comps), arv)

        return ARVResult(
            arv=arv,
            method=ValuationMethod.WEIGHTED,
            comps_used=len(comps),
            adjustments=adjustments,
        )

    def adjust_comp(
        self,
        comp: ComparableSale,
        subject: Optional[SubjectProperty],
    ) -> CompAdjustment:
        """
        Adjusted price and similarity score for a single comp.

        Without subject size data the raw sale price is reported with a
        similarity of 100.
        """
        if subject is None or not subject.has_usable_size:
            return CompAdjustment(
                comp_id=comp.id,
                adjusted_price=comp.sold_price,
                similarity_score=100,
            )

        breakdown = score_comp(comp, subject, self.reference_date)
        return CompAdjustment(
            comp_id=comp.id,
            adjusted_price=adjust_price(comp, subject).adjusted_price,
            similarity_score=breakdown.final_score,
        )

    def breakdown(
        self,
        comp: ComparableSale,
        subject: Optional[SubjectProperty],
    ) -> Optional[ScoreBreakdown]:
        """
        Full score breakdown for diagnostic display.

        Returns:
            ScoreBreakdown, or None when the subject lacks size data
        """
        if subject is None or not subject.has_usable_size:
            return None
        return score_comp(comp, subject, self.reference_date)

    def summarize(self, comps: Sequence[ComparableSale]) -> Optional[CompStats]:
        """
        Summary statistics across raw comp data.

        Returns:
            CompStats, or None if there are no comps
        """
        if not comps:
            return None

        prices = [c.sold_price for c in comps]
        sqfts = [c.sqft for c in comps if c.sqft > 0]
        ppsfs = [
            c.effective_price_per_sqft for c in comps
            if c.effective_price_per_sqft > 0
        ]

        return CompStats(
            avg_price=round_half_up(sum(prices) / len(prices)),
            min_price=min(prices),
            max_price=max(prices),
            avg_sqft=round_half_up(sum(sqfts) / len(sqfts)) if sqfts else 0,
            avg_price_per_sqft=round_half_up(sum(ppsfs) / len(ppsfs)) if ppsfs else 0,
        )

    def _calculate_median(self, comps: Sequence[ComparableSale]) -> int:
        """
        Median of raw comp sale prices.

        Args:
            comps: At least one comparable sale

        Returns:
            Middle price, or the average of the two middle prices
        """
        prices = sorted(c.sold_price for c in comps)
        n = len(prices)

        if n % 2 == 1:
            return prices[n // 2]

        mid = n // 2
        return round_half_up((prices[mid - 1] + prices[mid]) / 2)

    def _calculate_weighted_arv(self, adjustments: List[CompAdjustment]) -> int:
        """
        Similarity-weighted average of adjusted prices.

        ARV = sum(adjusted * score / 100) / sum(score / 100)

        Falls back to the unweighted mean when every comp scored 0.
        """
        total_weight = 0.0
        total_weighted_price = 0.0

        for adjustment in adjustments:
            weight = adjustment.similarity_score / 100
            total_weighted_price += adjustment.adjusted_price * weight
            total_weight += weight

        if total_weight > 0:
            return round_half_up(total_weighted_price / total_weight)

        logger.debug("All comps scored 0, using unweighted mean")
        return round_half_up(
            sum(a.adjusted_price for a in adjustments) / len(adjustments)
        )
