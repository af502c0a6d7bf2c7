"""
Save / list / delete compliance reports for signed-in users.

The score stored with a report is computed here from the submitted
PropertyData; clients never supply their own score.
"""

from datetime import date
from typing import Any

import structlog

from compliance_report.models.saved_report import SavedReport
from compliance_report.schemas.property import PropertyData
from compliance_report.services.auth_service import AuthService, AuthSession
from compliance_report.services.report_store import ReportStore
from compliance_report.services.scoring_engine import compute_compliance_score

logger = structlog.get_logger()

ADMIN_ROLE = "admin"


class AuthenticationRequired(Exception):
    """No valid session: only signed-in users may save or read reports."""


class ReportNotFoundError(Exception):
    pass


def report_to_dict(report: SavedReport, include_data: bool = True) -> dict[str, Any]:
    data = {
        "id": str(report.id),
        "user_id": report.user_id,
        "bin": report.bin,
        "address": report.address,
        "compliance_score": report.compliance_score,
        "risk_level": report.risk_level,
        "created_at": report.created_at.isoformat() if report.created_at else None,
    }
    if include_data:
        data["report_data"] = report.report_data
    return data


class ReportService:
    def __init__(self, auth: AuthService, store: ReportStore):
        self.auth = auth
        self.store = store

    async def require_session(self, access_token: str | None) -> AuthSession:
        session = await self.auth.get_session(access_token)
        if session is None:
            raise AuthenticationRequired("Sign in to save reports")
        return session

    async def save_report(
        self,
        access_token: str | None,
        payload: dict[str, Any] | PropertyData,
        as_of: date | None = None,
    ) -> SavedReport:
        """Score *payload* and persist it for the session's user.

        Raises AuthenticationRequired before touching the data, and
        PropertyDataError if the payload lacks a bin or borough.
        """
        session = await self.require_session(access_token)

        data = payload if isinstance(payload, PropertyData) else PropertyData.from_dict(payload)
        score = compute_compliance_score(data, as_of=as_of)

        report = await self.store.save(
            {
                "user_id": session.user_id,
                "bin": data.bin,
                "address": data.address,
                "report_data": data.to_dict(),
                "compliance_score": score.overall,
                "risk_level": score.risk_level,
            }
        )
        logger.info(
            "Report saved",
            report_id=str(report.id),
            user_id=session.user_id,
            bin=data.bin,
            compliance_score=score.overall,
            risk_level=score.risk_level,
        )
        return report

    async def list_reports(self, access_token: str | None) -> list[SavedReport]:
        session = await self.require_session(access_token)
        return await self.store.list_for_user(session.user_id)

    async def get_report(self, access_token: str | None, report_id: str) -> SavedReport:
        session = await self.require_session(access_token)
        report = await self.store.get(report_id, session.user_id)
        if report is None:
            raise ReportNotFoundError(f"Report '{report_id}' not found")
        return report

    async def delete_report(self, access_token: str | None, report_id: str) -> None:
        session = await self.require_session(access_token)
        if not await self.store.delete(report_id, session.user_id):
            raise ReportNotFoundError(f"Report '{report_id}' not found")
        logger.info("Report deleted", report_id=report_id, user_id=session.user_id)

    async def list_all_reports(self, access_token: str | None, limit: int = 200) -> list[SavedReport]:
        """Every user's reports. Admin role only."""
        session = await self.require_session(access_token)
        if not await self.auth.has_role(session.user_id, ADMIN_ROLE, session.access_token):
            raise PermissionError("Admin role required")
        return await self.store.list_all(limit=limit)
