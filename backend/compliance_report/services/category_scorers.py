"""
Category scorers -- one pure function per compliance category.

Violation categories (DOB, ECB, HPD) share one skeleton:
    1. start at 100
    2. each open violation costs  severity_weight * recency_multiplier(age)
    3. each closed violation costs a small fixed amount (history of risk), capped
    4. clamp to [0, 100] and round

Permit Compliance scores the share of completed permits and penalises permits
stuck in process / disapproved for longer than PERMIT_STALE_DAYS.
"""

from __future__ import annotations

from collections.abc import Sequence

from compliance_report.schemas.property import CategoryScore
from compliance_report.services.violation_normalizer import (
    NormalizedPermit,
    NormalizedViolation,
)
from compliance_report.utils.currency import format_dollars

# Recency: full weight for the first year, decaying linearly to the floor at 5 years
RECENT_DAYS = 365
DECAY_END_DAYS = 5 * 365
RECENCY_FLOOR = 0.5

CLOSED_PENALTY = 0.5
CLOSED_PENALTY_CAP = 10.0

# ECB: outstanding balance on open violations, $1,000 per point
ECB_BALANCE_DIVISOR = 1_000.0
ECB_BALANCE_PENALTY_CAP = 20.0

PERMIT_STALE_DAYS = 180
PERMIT_INCOMPLETE_PENALTY = 25.0  # at 0% completion
PERMIT_STALE_PENALTY = 8.0


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def recency_multiplier(age_days: int | None) -> float:
    """Penalty multiplier for a violation issued *age_days* ago.

    1.0 within RECENT_DAYS, linear down to RECENCY_FLOOR at DECAY_END_DAYS.
    Unknown age is not adjusted.
    """
    if age_days is None or age_days <= RECENT_DAYS:
        return 1.0
    if age_days >= DECAY_END_DAYS:
        return RECENCY_FLOOR
    progress = (age_days - RECENT_DAYS) / (DECAY_END_DAYS - RECENT_DAYS)
    return 1.0 - (1.0 - RECENCY_FLOOR) * progress


def open_violation_penalty(v: NormalizedViolation) -> float:
    return v.severity_weight * recency_multiplier(v.age_days)


def closed_violations_penalty(closed_count: int) -> float:
    return min(CLOSED_PENALTY_CAP, closed_count * CLOSED_PENALTY)


def _violation_details(
    violations: Sequence[NormalizedViolation],
    breakdown_labels: Sequence[str],
) -> str:
    """e.g. "3 open (2 Class C, 1 Class B), 5 closed"."""
    if not violations:
        return "No violations on record"

    open_violations = [v for v in violations if v.is_open]
    closed_count = len(violations) - len(open_violations)

    parts = []
    for label in breakdown_labels:
        count = sum(1 for v in open_violations if v.severity_label == label)
        if count:
            parts.append(f"{count} {label}")

    text = f"{len(open_violations)} open"
    if parts:
        text += f" ({', '.join(parts)})"
    return f"{text}, {closed_count} closed"


def _score_violations(violations: Sequence[NormalizedViolation]) -> float:
    score = 100.0
    closed_count = 0
    for v in violations:
        if v.is_open:
            score -= open_violation_penalty(v)
        else:
            closed_count += 1
    score -= closed_violations_penalty(closed_count)
    return score


# ---------------------------------------------------------------------------
# Scorers
# ---------------------------------------------------------------------------


def score_dob(violations: Sequence[NormalizedViolation], weight: float) -> CategoryScore:
    score = _score_violations(violations)
    return CategoryScore(
        category="DOB Violations",
        score=round(clamp(score)),
        weight=weight,
        details=_violation_details(violations, ["hazardous", "major"]),
    )


def score_ecb(violations: Sequence[NormalizedViolation], weight: float) -> CategoryScore:
    score = _score_violations(violations)

    balance = sum(v.balance_due for v in violations if v.is_open)
    score -= min(ECB_BALANCE_PENALTY_CAP, balance / ECB_BALANCE_DIVISOR)

    details = _violation_details(violations, ["hazardous", "major"])
    if balance > 0:
        details += f", {format_dollars(balance)} balance due"

    return CategoryScore(
        category="ECB Penalties",
        score=round(clamp(score)),
        weight=weight,
        details=details,
    )


def score_hpd(violations: Sequence[NormalizedViolation], weight: float) -> CategoryScore:
    score = _score_violations(violations)
    return CategoryScore(
        category="HPD Violations",
        score=round(clamp(score)),
        weight=weight,
        details=_violation_details(violations, ["Class C", "Class B", "Class A", "Class I"]),
    )


def is_stale_permit(p: NormalizedPermit) -> bool:
    """Stalled permit filed more than PERMIT_STALE_DAYS ago. Unknown filing date is never stale."""
    return p.is_stalled and p.age_days is not None and p.age_days > PERMIT_STALE_DAYS


def score_permits(permits: Sequence[NormalizedPermit], weight: float) -> CategoryScore:
    if not permits:
        return CategoryScore(
            category="Permit Compliance",
            score=100,
            weight=weight,
            details="No permits on record",
        )

    completed = sum(1 for p in permits if p.is_complete)
    stale = sum(1 for p in permits if is_stale_permit(p))
    ratio = completed / len(permits)

    score = 100.0 - (1.0 - ratio) * PERMIT_INCOMPLETE_PENALTY - stale * PERMIT_STALE_PENALTY

    details = f"{completed} of {len(permits)} permits complete"
    if stale:
        details += f", {stale} stale"

    return CategoryScore(
        category="Permit Compliance",
        score=round(clamp(score)),
        weight=weight,
        details=details,
    )
