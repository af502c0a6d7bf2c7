from typing import Any

from fastapi import APIRouter, Body, HTTPException

from compliance_report.schemas.property import PropertyData, PropertyDataError
from compliance_report.services.scoring_engine import (
    DEFAULT_WEIGHTS,
    LOW_RISK_THRESHOLD,
    MEDIUM_RISK_THRESHOLD,
    RISK_COLORS,
    ScoringEngine,
    compute_compliance_score,
)

router = APIRouter()


@router.post("")
async def score_property_data(payload: dict[str, Any] = Body(...)):
    """Compute the compliance score of a PropertyData payload."""
    try:
        data = PropertyData.from_dict(payload)
        score = compute_compliance_score(data)
    except PropertyDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return score.to_dict()


@router.get("/weights")
async def get_scoring_weights():
    return {
        "weights": DEFAULT_WEIGHTS,
        "risk_tiers": {
            "low": f">= {LOW_RISK_THRESHOLD}",
            "medium": f"{MEDIUM_RISK_THRESHOLD}-{LOW_RISK_THRESHOLD - 1}",
            "high": f"< {MEDIUM_RISK_THRESHOLD}",
        },
        "colors": RISK_COLORS,
        "scoring_version": ScoringEngine.SCORING_VERSION,
    }
