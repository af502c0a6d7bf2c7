"""
Report data model: violation/permit records for one building and the
compliance score computed from them.

Record field names follow the NYC Open Data (Socrata) datasets so rows can be
loaded without renaming. Every record field is optional and defaults to "".
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

RiskLevel = Literal["low", "medium", "high"]


class PropertyDataError(ValueError):
    """PropertyData is missing identifying fields or is not a mapping."""


def _load(cls, record: Any, aliases: dict[str, str] | None = None):
    """Build a record dataclass from a raw dict, ignoring unknown keys."""
    if not isinstance(record, dict):
        raise PropertyDataError(f"{cls.__name__} record must be an object, got {type(record).__name__}")
    aliases = aliases or {}
    kwargs: dict[str, str] = {}
    for f in fields(cls):
        key = aliases.get(f.name, f.name)
        value = record.get(key, record.get(f.name))
        kwargs[f.name] = "" if value is None else str(value)
    return cls(**kwargs)


@dataclass(frozen=True)
class DOBViolation:
    isn_dob_bis_viol: str = ""
    violation_type: str = ""
    violation_category: str = ""
    violation_type_code: str = ""
    violation_number: str = ""
    violation_date: str = ""
    violation_date_closed: str = ""
    disposition_date: str = ""
    disposition_comments: str = ""
    device_type: str = ""
    description: str = ""
    ecb_penalty_status: str = ""
    severity: str = ""
    respondent_name: str = ""
    status: str = ""

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> DOBViolation:
        return _load(cls, record)


@dataclass(frozen=True)
class ECBViolation:
    isn_dob_bis_viol: str = ""
    ecb_violation_number: str = ""
    ecb_violation_status: str = ""
    violation_type: str = ""
    violation_description: str = ""
    penalty_balance_due: str = ""
    amount_paid: str = ""
    amount_baldue: str = ""
    infraction_codes: str = ""
    violation_date: str = ""
    hearing_date_time: str = ""
    hearing_result: str = ""
    issuing_office: str = ""
    respondent_name: str = ""
    severity: str = ""
    status: str = ""

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> ECBViolation:
        return _load(cls, record)


_HPD_ALIASES = {"violation_class": "class"}


@dataclass(frozen=True)
class HPDViolation:
    violationid: str = ""
    boroid: str = ""
    block: str = ""
    lot: str = ""
    violation_class: str = ""  # "class" in the dataset: A, B, C or I
    inspectiondate: str = ""
    approveddate: str = ""
    originalcertifybydate: str = ""
    originalcorrectbydate: str = ""
    newcertifybydate: str = ""
    newcorrectbydate: str = ""
    certifieddate: str = ""
    ordernumber: str = ""
    novid: str = ""
    novdescription: str = ""
    novissueddate: str = ""
    currentstatusid: str = ""
    currentstatus: str = ""
    currentstatusdate: str = ""
    violationstatus: str = ""

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> HPDViolation:
        return _load(cls, record, _HPD_ALIASES)

    def to_dict(self) -> dict[str, str]:
        data = asdict(self)
        data["class"] = data.pop("violation_class")
        return data


@dataclass(frozen=True)
class DOBPermit:
    job__: str = ""
    job_type: str = ""
    job_status: str = ""
    job_status_descrp: str = ""
    job_description: str = ""
    filing_date: str = ""
    filing_status: str = ""
    permit_type: str = ""
    permit_status: str = ""
    permit_status_date: str = ""
    work_type: str = ""
    floor: str = ""
    apartment: str = ""
    applicant_s_first_name: str = ""
    applicant_s_last_name: str = ""
    owner_s_first_name: str = ""
    owner_s_last_name: str = ""
    borough: str = ""
    block: str = ""
    lot: str = ""
    bin__: str = ""

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> DOBPermit:
        return _load(cls, record)


def _records(payload: dict[str, Any], snake: str, camel: str) -> list:
    value = payload.get(snake)
    if value is None:
        value = payload.get(camel)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise PropertyDataError(f"'{snake}' must be a list")
    return list(value)


@dataclass(frozen=True)
class PropertyData:
    """All violation and permit records for one building (one BIN)."""

    bin: str
    address: str = ""
    borough: str = ""
    block: str = ""
    lot: str = ""
    dob_violations: tuple[DOBViolation, ...] = ()
    ecb_violations: tuple[ECBViolation, ...] = ()
    hpd_violations: tuple[HPDViolation, ...] = ()
    permits: tuple[DOBPermit, ...] = ()

    @classmethod
    def from_dict(cls, payload: Any) -> PropertyData:
        """Load from a JSON payload (snake_case or the web client's camelCase keys)."""
        if not isinstance(payload, dict):
            raise PropertyDataError("PropertyData must be a JSON object")

        def _text(key: str) -> str:
            value = payload.get(key)
            return "" if value is None else str(value).strip()

        return cls(
            bin=_text("bin"),
            address=_text("address"),
            borough=_text("borough"),
            block=_text("block"),
            lot=_text("lot"),
            dob_violations=tuple(
                DOBViolation.from_dict(r) for r in _records(payload, "dob_violations", "dobViolations")
            ),
            ecb_violations=tuple(
                ECBViolation.from_dict(r) for r in _records(payload, "ecb_violations", "ecbViolations")
            ),
            hpd_violations=tuple(
                HPDViolation.from_dict(r) for r in _records(payload, "hpd_violations", "hpdViolations")
            ),
            permits=tuple(DOBPermit.from_dict(r) for r in _records(payload, "permits", "permits")),
        )

    def validate(self) -> PropertyData:
        """Raise PropertyDataError unless the identifying fields are present."""
        missing = [name for name in ("bin", "borough") if not getattr(self, name).strip()]
        if missing:
            raise PropertyDataError(f"PropertyData is missing required field(s): {', '.join(missing)}")
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "bin": self.bin,
            "address": self.address,
            "borough": self.borough,
            "block": self.block,
            "lot": self.lot,
            "dob_violations": [asdict(v) for v in self.dob_violations],
            "ecb_violations": [asdict(v) for v in self.ecb_violations],
            "hpd_violations": [v.to_dict() for v in self.hpd_violations],
            "permits": [asdict(p) for p in self.permits],
        }


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: int  # 0-100
    weight: float  # 0-1
    details: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ComplianceScore:
    overall: int  # 0-100
    categories: tuple[CategoryScore, ...] = field(default_factory=tuple)
    risk_level: RiskLevel = "high"
    color: str = "red"

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "categories": [c.to_dict() for c in self.categories],
            "risk_level": self.risk_level,
            "color": self.color,
        }
