"""
Violation normalizer -- turns agency-specific DOB / ECB / HPD records and DOB
permits into one severity-bearing representation the category scorers consume.

Each violation is tagged with:
    is_open          open/unresolved vs closed/dismissed
    severity         low / medium / high (missing severity = low)
    severity_weight  base penalty for that severity in its category
    age_days         days since issue, None when the date is unparsable

Permits are not violations; they are tagged complete / stalled and summarised
as a completion ratio.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from compliance_report.schemas.property import (
    DOBPermit,
    DOBViolation,
    ECBViolation,
    HPDViolation,
    PropertyData,
)
from compliance_report.utils.currency import parse_dollars
from compliance_report.utils.date_helpers import age_in_days, parse_date, today_utc
from compliance_report.utils.violation_status import (
    is_ambiguous_status,
    is_resolved_status,
    normalize_status,
)


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Base penalty (points off 100) for one open violation issued within the last year
SEVERITY_WEIGHTS: dict[str, dict[Severity, float]] = {
    "DOB": {Severity.LOW: 3.0, Severity.MEDIUM: 5.0, Severity.HIGH: 8.0},
    "ECB": {Severity.LOW: 3.0, Severity.MEDIUM: 5.0, Severity.HIGH: 8.0},
    "HPD": {Severity.LOW: 2.0, Severity.MEDIUM: 5.0, Severity.HIGH: 10.0},
}

HPD_CLASS_SEVERITY: dict[str, Severity] = {
    "C": Severity.HIGH,  # immediately hazardous
    "B": Severity.MEDIUM,  # hazardous
    "A": Severity.LOW,  # non-hazardous
    "I": Severity.LOW,  # information order
}

# DOB / ECB severity vocabulary ("CLASS - 1", "Hazardous", "Non-Hazardous", ...)
_HIGH_SEVERITY_KEYWORDS = (
    "class - 1",
    "class 1",
    "immediately hazardous",
    "unsafe",
    "emergency",
    "imegncy",
)
_MEDIUM_SEVERITY_KEYWORDS = ("class - 2", "class 2", "major")

_PERMIT_COMPLETE_KEYWORDS = ("issued", "signed off", "signed-off", "approved", "completed", "complete")
_PERMIT_STALLED_KEYWORDS = (
    "in process",
    "pending",
    "disapproved",
    "incomplete",
    "objection",
    "on hold",
    "revoked",
    "suspended",
)


@dataclass(frozen=True)
class NormalizedViolation:
    category: str
    identifier: str
    is_open: bool
    severity: Severity
    severity_label: str
    severity_weight: float
    issued_on: date | None
    age_days: int | None
    balance_due: float = 0.0


@dataclass(frozen=True)
class NormalizedPermit:
    job_number: str
    is_complete: bool
    is_stalled: bool
    filed_on: date | None
    age_days: int | None


@dataclass(frozen=True)
class NormalizedViolations:
    dob: tuple[NormalizedViolation, ...]
    ecb: tuple[NormalizedViolation, ...]
    hpd: tuple[NormalizedViolation, ...]
    permits: tuple[NormalizedPermit, ...]

    @property
    def permit_completion_ratio(self) -> float:
        """Completed permits / total permits; 1.0 when there are none."""
        if not self.permits:
            return 1.0
        return sum(1 for p in self.permits if p.is_complete) / len(self.permits)


def classify_severity(*labels: str | None) -> Severity:
    """Map free-form DOB/ECB severity strings to a Severity (LOW when unknown)."""
    for label in labels:
        text = normalize_status(label)
        if not text:
            continue
        if any(kw in text for kw in _HIGH_SEVERITY_KEYWORDS):
            return Severity.HIGH
        # "Non-Hazardous", "NON HAZARDOUS" and "NONHAZARDOUS" all occur
        compact = text.replace("-", "").replace(" ", "")
        if "hazardous" in text and "nonhazardous" not in compact:
            return Severity.HIGH
        if any(kw in text for kw in _MEDIUM_SEVERITY_KEYWORDS):
            return Severity.MEDIUM
    return Severity.LOW


def _severity_label(severity: Severity) -> str:
    return {
        Severity.HIGH: "hazardous",
        Severity.MEDIUM: "major",
        Severity.LOW: "minor",
    }[severity]


# ---------------------------------------------------------------------------
# Per-category normalization
# ---------------------------------------------------------------------------


def is_dob_open(v: DOBViolation) -> bool:
    if v.violation_date_closed.strip():
        return False
    if "dismiss" in normalize_status(v.disposition_comments):
        return False
    return not (is_resolved_status(v.status) or is_resolved_status(v.violation_category))


def is_ecb_open(v: ECBViolation) -> bool:
    """Open unless the status is terminal; any unpaid balance keeps it active."""
    if ecb_balance_due(v) > 0:
        return True
    status = v.ecb_violation_status or v.status
    if is_ambiguous_status(status):
        return True
    return not is_resolved_status(status)


def ecb_balance_due(v: ECBViolation) -> float:
    return max(parse_dollars(v.penalty_balance_due), parse_dollars(v.amount_baldue), 0.0)


def is_hpd_open(v: HPDViolation) -> bool:
    if is_resolved_status(v.violationstatus):  # "Close"
        return False
    if v.certifieddate.strip():
        return False
    return not is_resolved_status(v.currentstatus)


def hpd_class(v: HPDViolation) -> str:
    cls = v.violation_class.strip().upper()
    return cls if cls in HPD_CLASS_SEVERITY else "A"


def normalize_dob(v: DOBViolation, as_of: date) -> NormalizedViolation:
    severity = classify_severity(v.severity, v.violation_type, v.violation_category)
    issued_on = parse_date(v.violation_date)
    return NormalizedViolation(
        category="DOB",
        identifier=v.violation_number or v.isn_dob_bis_viol,
        is_open=is_dob_open(v),
        severity=severity,
        severity_label=_severity_label(severity),
        severity_weight=SEVERITY_WEIGHTS["DOB"][severity],
        issued_on=issued_on,
        age_days=age_in_days(issued_on, as_of),
    )


def normalize_ecb(v: ECBViolation, as_of: date) -> NormalizedViolation:
    severity = classify_severity(v.severity)
    issued_on = parse_date(v.violation_date)
    return NormalizedViolation(
        category="ECB",
        identifier=v.ecb_violation_number or v.isn_dob_bis_viol,
        is_open=is_ecb_open(v),
        severity=severity,
        severity_label=_severity_label(severity),
        severity_weight=SEVERITY_WEIGHTS["ECB"][severity],
        issued_on=issued_on,
        age_days=age_in_days(issued_on, as_of),
        balance_due=ecb_balance_due(v),
    )


def normalize_hpd(v: HPDViolation, as_of: date) -> NormalizedViolation:
    cls = hpd_class(v)
    severity = HPD_CLASS_SEVERITY[cls]
    issued_on = parse_date(v.novissueddate) or parse_date(v.inspectiondate)
    return NormalizedViolation(
        category="HPD",
        identifier=v.violationid,
        is_open=is_hpd_open(v),
        severity=severity,
        severity_label=f"Class {cls}",
        severity_weight=SEVERITY_WEIGHTS["HPD"][severity],
        issued_on=issued_on,
        age_days=age_in_days(issued_on, as_of),
    )


def normalize_permit(p: DOBPermit, as_of: date) -> NormalizedPermit:
    statuses = [normalize_status(s) for s in (p.permit_status, p.job_status_descrp, p.filing_status)]
    is_complete = any(kw in s for s in statuses for kw in _PERMIT_COMPLETE_KEYWORDS)
    # "disapproved" contains "approved", "incomplete" contains "complete"
    if any("disapproved" in s or "incomplete" in s for s in statuses):
        is_complete = False
    is_stalled = not is_complete and any(kw in s for s in statuses for kw in _PERMIT_STALLED_KEYWORDS)
    filed_on = parse_date(p.filing_date)
    return NormalizedPermit(
        job_number=p.job__,
        is_complete=is_complete,
        is_stalled=is_stalled,
        filed_on=filed_on,
        age_days=age_in_days(filed_on, as_of),
    )


def normalize(data: PropertyData, as_of: date | None = None) -> NormalizedViolations:
    """Normalize every record of *data*. Never raises on missing or malformed fields."""
    as_of = as_of or today_utc()
    return NormalizedViolations(
        dob=tuple(normalize_dob(v, as_of) for v in data.dob_violations),
        ecb=tuple(normalize_ecb(v, as_of) for v in data.ecb_violations),
        hpd=tuple(normalize_hpd(v, as_of) for v in data.hpd_violations),
        permits=tuple(normalize_permit(p, as_of) for p in data.permits),
    )
