"""
ARV Routes - JSON API over the comp engine

Stateless: each request carries the full subject and comp set, and the
response is computed from that snapshot alone.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from core.comp_engine import (
    ComparableSale,
    CompSet,
    CompSetError,
    Photo,
    SubjectProperty,
)
from utils.formatting import format_currency, format_distance, format_percent


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api/arv", tags=["arv"])


# =============================================================================
# Request Models
# =============================================================================

class PhotoInput(BaseModel):
    """Comp listing photo."""
    id: str
    url: str
    is_primary: bool = False


class CompInput(BaseModel):
    """Comparable sale as supplied by the caller."""
    id: str
    address: str
    sold_price: int
    sold_date: str = ""
    beds: int = Field(0, ge=0)
    baths: float = Field(0.0, ge=0)
    sqft: int = Field(0, ge=0)
    year_built: int = 0
    property_type: str = ""
    price_per_sqft: float = 0.0
    zestimate: Optional[int] = None
    rent_zestimate: Optional[int] = None
    lot_size: Optional[int] = None
    has_pool: Optional[bool] = None
    parking_spaces: Optional[int] = None
    days_on_market: Optional[int] = None
    description: str = ""
    listing_url: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    photos: List[PhotoInput] = []


class SubjectInput(BaseModel):
    """Subject property as supplied by the caller."""
    address: str = ""
    purchase_price: int = 0
    beds: int = Field(0, ge=0)
    baths: float = Field(0.0, ge=0)
    sqft: int = Field(0, ge=0)
    year_built: int = 0
    property_type: str = ""
    units: int = 1
    description: str = ""
    days_on_market: Optional[int] = None
    listing_url: str = ""
    zestimate: Optional[int] = None
    rent_zestimate: Optional[int] = None
    is_off_market: bool = False
    lat: Optional[float] = None
    lng: Optional[float] = None


class ARVRequest(BaseModel):
    """Request body for ARV calculation."""
    subject: Optional[SubjectInput] = None
    comps: List[CompInput] = []
    reference_date: Optional[date] = None


# =============================================================================
# Conversion
# =============================================================================

def to_comp(data: CompInput) -> ComparableSale:
    """Convert request comp to engine model."""
    values = data.model_dump(exclude={"photos"})
    return ComparableSale(
        **values,
        photos=[Photo(**p.model_dump()) for p in data.photos],
    )


def to_subject(data: Optional[SubjectInput]) -> Optional[SubjectProperty]:
    """Convert request subject to engine model."""
    if data is None:
        return None
    return SubjectProperty(**data.model_dump())


def build_comp_set(request: ARVRequest) -> tuple[CompSet, List[str]]:
    """
    Load request comps through the comp set.

    Returns:
        Tuple of (comp set, ids of comps rejected as duplicate addresses)

    Raises:
        HTTPException: 422 if a comp is invalid
    """
    comp_set = CompSet(
        subject=to_subject(request.subject),
        reference_date=request.reference_date,
    )
    rejected: List[str] = []

    try:
        with comp_set.batch():
            for comp_input in request.comps:
                if not comp_set.add(to_comp(comp_input)):
                    rejected.append(comp_input.id)
    except CompSetError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return comp_set, rejected


# =============================================================================
# Routes
# =============================================================================

@router.post("")
def calculate_arv(request: ARVRequest):
    """
    Calculate the ARV for a subject from its comps.

    Returns:
        ARV result with per-comp adjusted prices and similarity scores,
        display-formatted ARV, comp statistics and rejected duplicates
    """
    comp_set, rejected = build_comp_set(request)
    result = comp_set.result
    stats = comp_set.stats()

    logger.info(
        "ARV request: %d comps (%d rejected), arv=%d",
        len(comp_set), len(rejected), result.arv,
    )

    response = result.to_dict()
    response["arv_display"] = (
        format_currency(result.arv) if result.has_estimate else "No estimate"
    )
    response["stats"] = stats.to_dict() if stats else None
    response["rejected"] = rejected
    return response


@router.post("/breakdown")
def score_breakdown(request: ARVRequest):
    """
    Per-comp score breakdown for diagnostic display.

    Breakdown is null for each comp when the subject has no usable sqft.
    """
    comp_set, rejected = build_comp_set(request)
    result = comp_set.result

    comps = []
    for comp in comp_set:
        adjustment = result.adjustment_for(comp.id)
        breakdown = comp_set.breakdown(comp.id)
        entry = {
            "comp_id": comp.id,
            "address": comp.address,
            "adjusted_price": adjustment.adjusted_price,
            "similarity_score": adjustment.similarity_score,
            "breakdown": None,
        }
        if breakdown is not None:
            entry["breakdown"] = breakdown.to_dict()
            entry["distance_display"] = format_distance(breakdown.distance_miles)
            entry["sqft_diff_display"] = format_percent(breakdown.sqft_diff_percent)
        comps.append(entry)

    return {
        "arv": result.arv,
        "method": result.method.value,
        "comps": comps,
        "rejected": rejected,
    }

