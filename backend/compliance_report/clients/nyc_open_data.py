"""
NYC Open Data (Socrata) client for building violations and permits.

Datasets (https://data.cityofnewyork.us):
    3h2n-5cm9  DOB Violations
    6bgk-3dad  DOB ECB Violations
    wvxf-dwi5  HPD Housing Maintenance Code Violations
    ic3t-wcy2  DOB Permit Issuance
"""

from typing import Any

import structlog

from compliance_report.clients.base_client import BaseAPIClient
from compliance_report.config import settings
from compliance_report.schemas.property import (
    DOBPermit,
    DOBViolation,
    ECBViolation,
    HPDViolation,
)

logger = structlog.get_logger()

DOB_VIOLATIONS = "3h2n-5cm9"
DOB_ECB_VIOLATIONS = "6bgk-3dad"
HPD_VIOLATIONS = "wvxf-dwi5"
DOB_PERMITS = "ic3t-wcy2"


def _s(row: dict[str, Any], *keys: str, default: str = "") -> str:
    """First non-empty value among *keys*, as a string."""
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return str(value)
    return default


def _soql_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted SoQL string."""
    return value.replace("'", "''")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def to_dob_violation(row: dict[str, Any]) -> DOBViolation:
    comments = _s(row, "disposition_comments")
    closed = _s(row, "violation_date_closed")
    if "dismiss" in comments.lower() or closed:
        status = "Closed"
    else:
        status = "Active"
    return DOBViolation(
        isn_dob_bis_viol=_s(row, "isn_dob_bis_viol", "violation_number"),
        violation_type=_s(row, "violation_type"),
        violation_category=_s(row, "violation_category"),
        violation_type_code=_s(row, "violation_type_code"),
        violation_number=_s(row, "violation_number"),
        violation_date=_s(row, "issue_date", "violation_date"),
        violation_date_closed=closed,
        disposition_date=_s(row, "disposition_date"),
        disposition_comments=comments,
        device_type=_s(row, "device_type"),
        description=_s(row, "description", "violation_type"),
        ecb_penalty_status=_s(row, "ecb_penalty_status"),
        severity=_s(row, "severity"),
        respondent_name=_s(row, "respondent_name"),
        status=status,
    )


def to_ecb_violation(row: dict[str, Any]) -> ECBViolation:
    return ECBViolation(
        isn_dob_bis_viol=_s(row, "isn_dob_bis_viol"),
        ecb_violation_number=_s(row, "ecb_violation_number"),
        ecb_violation_status=_s(row, "ecb_violation_status"),
        violation_type=_s(row, "violation_type"),
        violation_description=_s(row, "violation_description"),
        penalty_balance_due=_s(row, "balance_due", "penalty_balance_due", default="0"),
        amount_paid=_s(row, "amount_paid", default="0"),
        amount_baldue=_s(row, "amount_baldue", "balance_due", default="0"),
        infraction_codes=_s(row, "infraction_code1"),
        violation_date=_s(row, "issue_date", "served_date"),
        hearing_date_time=_s(row, "hearing_date", "hearing_date_time"),
        hearing_result=_s(row, "hearing_status", "hearing_result"),
        issuing_office=_s(row, "issuing_office"),
        respondent_name=_s(row, "respondent_name"),
        severity=_s(row, "severity"),
        status=_s(row, "ecb_violation_status", default="Unknown"),
    )


def to_hpd_violation(row: dict[str, Any]) -> HPDViolation:
    return HPDViolation(
        violationid=_s(row, "violationid"),
        boroid=_s(row, "boroid"),
        block=_s(row, "block"),
        lot=_s(row, "lot"),
        violation_class=_s(row, "class", "nov_type"),
        inspectiondate=_s(row, "inspectiondate"),
        approveddate=_s(row, "approveddate"),
        originalcertifybydate=_s(row, "originalcertifybydate"),
        originalcorrectbydate=_s(row, "originalcorrectbydate"),
        newcertifybydate=_s(row, "newcertifybydate"),
        newcorrectbydate=_s(row, "newcorrectbydate"),
        certifieddate=_s(row, "certifieddate"),
        ordernumber=_s(row, "ordernumber"),
        novid=_s(row, "novid"),
        novdescription=_s(row, "novdescription"),
        novissueddate=_s(row, "novissueddate"),
        currentstatusid=_s(row, "currentstatusid"),
        currentstatus=_s(row, "currentstatus"),
        currentstatusdate=_s(row, "currentstatusdate"),
        violationstatus=_s(row, "violationstatus"),
    )


def to_dob_permit(row: dict[str, Any]) -> DOBPermit:
    return DOBPermit(
        job__=_s(row, "job__"),
        job_type=_s(row, "job_type"),
        job_status=_s(row, "job_status"),
        job_status_descrp=_s(row, "job_status_descrp"),
        job_description=_s(row, "job_description"),
        filing_date=_s(row, "filing_date"),
        filing_status=_s(row, "filing_status"),
        permit_type=_s(row, "permit_type"),
        permit_status=_s(row, "permit_status"),
        permit_status_date=_s(row, "permit_status_date", "issuance_date"),
        work_type=_s(row, "work_type"),
        floor=_s(row, "floor"),
        apartment=_s(row, "apartment"),
        applicant_s_first_name=_s(row, "permittee_s_first_name", "applicant_s_first_name"),
        applicant_s_last_name=_s(row, "permittee_s_last_name", "applicant_s_last_name"),
        owner_s_first_name=_s(row, "owner_s_first_name"),
        owner_s_last_name=_s(row, "owner_s_last_name"),
        borough=_s(row, "borough"),
        block=_s(row, "block"),
        lot=_s(row, "lot"),
        bin__=_s(row, "bin__"),
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class NycOpenDataClient(BaseAPIClient):
    """Fetches raw violation and permit rows for one BIN."""

    def __init__(
        self,
        base_url: str | None = None,
        app_token: str | None = None,
        limit: int | None = None,
        **kwargs,
    ):
        token = app_token if app_token is not None else settings.nyc_open_data_app_token
        headers = {"Accept": "application/json"}
        if token:
            headers["X-App-Token"] = token
        kwargs.setdefault("rate_limit_delay", settings.nyc_request_delay)
        super().__init__(base_url or settings.nyc_open_data_url, headers=headers, **kwargs)
        self.limit = limit or settings.nyc_fetch_limit

    async def _rows(self, dataset: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        data = await self.get(f"/{dataset}.json", params={**params, "$limit": self.limit})
        if not isinstance(data, list):
            logger.warning("Unexpected Open Data payload", dataset=dataset, type=type(data).__name__)
            return []
        return data

    async def dob_violation_rows(self, bin_number: str) -> list[dict[str, Any]]:
        return await self._rows(DOB_VIOLATIONS, {"bin": bin_number})

    async def dob_violations(self, bin_number: str) -> list[DOBViolation]:
        return [to_dob_violation(r) for r in await self.dob_violation_rows(bin_number)]

    async def ecb_violations(self, bin_number: str) -> list[ECBViolation]:
        rows = await self._rows(DOB_ECB_VIOLATIONS, {"bin": bin_number})
        return [to_ecb_violation(r) for r in rows]

    async def hpd_violations(self, bin_number: str) -> list[HPDViolation]:
        rows = await self._rows(HPD_VIOLATIONS, {"bin": bin_number})
        return [to_hpd_violation(r) for r in rows]

    async def permit_rows(self, bin_number: str) -> list[dict[str, Any]]:
        return await self._rows(DOB_PERMITS, {"bin__": bin_number})

    async def permits(self, bin_number: str) -> list[DOBPermit]:
        return [to_dob_permit(r) for r in await self.permit_rows(bin_number)]

    async def lookup_bin(self, address: str) -> str | None:
        """Reverse-lookup a BIN from a street address ("123 MAIN ST").

        Tries the DOB violations dataset first, then permits.
        """
        needle = _soql_literal(address.strip().upper())
        if not needle:
            return None

        candidates = (
            (DOB_VIOLATIONS, "house_number", "street", "bin"),
            (DOB_PERMITS, "house__", "street_name", "bin__"),
        )
        for dataset, house_col, street_col, bin_col in candidates:
            data = await self.get(
                f"/{dataset}.json",
                params={
                    "$where": f"upper({house_col}) || ' ' || upper({street_col}) like '%{needle}%'",
                    "$select": bin_col,
                    "$limit": 1,
                },
            )
            if isinstance(data, list) and data and data[0].get(bin_col):
                logger.debug("BIN resolved", address=address, dataset=dataset)
                return str(data[0][bin_col])
        return None
