"""
ScoringEngine -- 4-category compliance scoring for NYC buildings.

Categories (each 0-100, weighted):
    DOB Violations      35%  Open Dept. of Buildings violations by severity.
    ECB Penalties       25%  Open ECB violations + outstanding penalty balance.
    HPD Violations      30%  Open HPD violations by class (C = hazardous).
    Permit Compliance   10%  Completed permits, stale in-process filings.

Risk tiers on the overall score:
    >= 80  low      (green)
    50-79  medium   (yellow)
    <  50  high     (red)
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date

import structlog

from compliance_report.schemas.property import (
    CategoryScore,
    ComplianceScore,
    PropertyData,
    RiskLevel,
)
from compliance_report.services.category_scorers import (
    clamp,
    score_dob,
    score_ecb,
    score_hpd,
    score_permits,
)
from compliance_report.services.violation_normalizer import normalize

logger = structlog.get_logger(__name__)

DEFAULT_WEIGHTS: dict[str, float] = {
    "dob": 0.35,
    "ecb": 0.25,
    "hpd": 0.30,
    "permits": 0.10,
}

LOW_RISK_THRESHOLD = 80
MEDIUM_RISK_THRESHOLD = 50

RISK_COLORS: dict[str, str] = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
}

RISK_LABELS: dict[str, str] = {
    "low": "Low Risk",
    "medium": "Medium Risk",
    "high": "High Risk",
}

_WEIGHT_TOLERANCE = 1e-9


def validate_weights(weights: dict[str, float]) -> dict[str, float]:
    """Return *weights* if it covers every category and sums to 1.0."""
    missing = set(DEFAULT_WEIGHTS) - set(weights)
    if missing:
        raise ValueError(f"Missing weights for: {', '.join(sorted(missing))}")
    if any(w < 0 for w in weights.values()):
        raise ValueError("Category weights must be non-negative")
    total = sum(weights[k] for k in DEFAULT_WEIGHTS)
    if not math.isclose(total, 1.0, abs_tol=_WEIGHT_TOLERANCE):
        raise ValueError(f"Category weights must sum to 1.0, got {total}")
    return {k: weights[k] for k in DEFAULT_WEIGHTS}


validate_weights(DEFAULT_WEIGHTS)


# ---------------------------------------------------------------------------
# Risk tiers
# ---------------------------------------------------------------------------


def risk_level_for(overall: int) -> RiskLevel:
    if overall >= LOW_RISK_THRESHOLD:
        return "low"
    if overall >= MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "high"


def color_for(risk_level: str) -> str:
    """UI color tag for a risk level. Derived from the tier only, never from the score."""
    return RISK_COLORS.get(risk_level, "red")


def score_color(score: int) -> str:
    """Color tag for a single score bar (overall or per category)."""
    return color_for(risk_level_for(score))


def risk_label(risk_level: str) -> str:
    return RISK_LABELS.get(risk_level, "Unknown")


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(categories: Iterable[CategoryScore]) -> ComplianceScore:
    """Combine category scores into the overall score and risk tier.

    Weights that do not sum to 1.0 are renormalised. An empty sequence (or
    zero total weight) yields the conservative default: 0 / high.
    """
    categories = tuple(categories)
    total_weight = sum(c.weight for c in categories)

    if not categories or total_weight <= 0:
        return ComplianceScore(
            overall=0,
            categories=categories,
            risk_level="high",
            color=color_for("high"),
        )

    weighted = sum(c.score * c.weight for c in categories)
    if not math.isclose(total_weight, 1.0, abs_tol=_WEIGHT_TOLERANCE):
        weighted /= total_weight

    overall = round(clamp(weighted))
    level = risk_level_for(overall)
    return ComplianceScore(
        overall=overall,
        categories=categories,
        risk_level=level,
        color=color_for(level),
    )


# ---------------------------------------------------------------------------
# ScoringEngine
# ---------------------------------------------------------------------------


class ScoringEngine:
    """Compute the compliance score of one building's PropertyData."""

    SCORING_VERSION = "1.0"

    def __init__(self, weights: dict[str, float] | None = None) -> None:
        self.weights = validate_weights(weights) if weights else dict(DEFAULT_WEIGHTS)

    def score_categories(self, data: PropertyData, as_of: date | None = None) -> tuple[CategoryScore, ...]:
        """Normalize *data* and run the four category scorers, in display order."""
        normalized = normalize(data, as_of=as_of)
        return (
            score_dob(normalized.dob, self.weights["dob"]),
            score_ecb(normalized.ecb, self.weights["ecb"]),
            score_hpd(normalized.hpd, self.weights["hpd"]),
            score_permits(normalized.permits, self.weights["permits"]),
        )

    def score(self, data: PropertyData, as_of: date | None = None) -> ComplianceScore:
        """Validate, normalize, score and aggregate.

        Raises PropertyDataError if *data* lacks its bin or borough.
        """
        data.validate()
        result = aggregate(self.score_categories(data, as_of=as_of))

        logger.debug(
            "scoring.property_scored",
            bin=data.bin,
            overall=result.overall,
            risk_level=result.risk_level,
            version=self.SCORING_VERSION,
        )
        return result


_default_engine = ScoringEngine()


def compute_compliance_score(data: PropertyData, as_of: date | None = None) -> ComplianceScore:
    """Score *data* with the default weights. *as_of* pins "today" for recency."""
    return _default_engine.score(data, as_of=as_of)
