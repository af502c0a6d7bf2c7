"""Report summary: headline counts and risk flags shown next to the score."""

from datetime import date
from typing import Any

from compliance_report.schemas.property import ComplianceScore, PropertyData
from compliance_report.services.category_scorers import PERMIT_STALE_DAYS, is_stale_permit
from compliance_report.services.scoring_engine import risk_label, score_color
from compliance_report.services.violation_normalizer import Severity, normalize
from compliance_report.utils.currency import format_dollars

HIGH_DOB_VOLUME = 5
HIGH_ECB_BALANCE = 5_000.0


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def build_report_summary(
    data: PropertyData,
    score: ComplianceScore,
    as_of: date | None = None,
) -> dict[str, Any]:
    normalized = normalize(data, as_of=as_of)
    violations = normalized.dob + normalized.ecb + normalized.hpd

    open_by_agency = {
        "DOB": sum(1 for v in normalized.dob if v.is_open),
        "ECB": sum(1 for v in normalized.ecb if v.is_open),
        "HPD": sum(1 for v in normalized.hpd if v.is_open),
    }
    total_open = sum(open_by_agency.values())

    risk_flags: list[str] = []

    class_c = sum(1 for v in normalized.hpd if v.is_open and v.severity == Severity.HIGH)
    if class_c:
        risk_flags.append(_plural(class_c, "active HPD Class C violation"))

    if open_by_agency["DOB"] > HIGH_DOB_VOLUME:
        risk_flags.append(f"High volume of active DOB violations ({open_by_agency['DOB']})")

    balance = sum(v.balance_due for v in normalized.ecb if v.is_open)
    if balance > HIGH_ECB_BALANCE:
        risk_flags.append(f"{format_dollars(balance)} in ECB penalties")

    stale = sum(1 for p in normalized.permits if is_stale_permit(p))
    if stale:
        risk_flags.append(f"{_plural(stale, 'permit')} stalled for over {PERMIT_STALE_DAYS} days")

    return {
        "open_violations": total_open,
        "closed_violations": len(violations) - total_open,
        "open_by_agency": open_by_agency,
        "permits": len(normalized.permits),
        "compliance_score": score.overall,
        "score_color": score_color(score.overall),
        "risk_label": risk_label(score.risk_level),
        "risk_flags": risk_flags,
    }
