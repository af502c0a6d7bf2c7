"""Persistence of saved reports."""

from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_report.models.saved_report import SavedReport


class ReportStore(Protocol):
    async def save(self, record: dict[str, Any]) -> SavedReport: ...

    async def list_for_user(self, user_id: str) -> list[SavedReport]: ...

    async def get(self, report_id: str, user_id: str) -> SavedReport | None: ...

    async def delete(self, report_id: str, user_id: str) -> bool: ...

    async def list_all(self, limit: int = 200) -> list[SavedReport]: ...


class SqlAlchemyReportStore:
    """ReportStore on the saved_reports table. id / created_at are server-assigned."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, record: dict[str, Any]) -> SavedReport:
        report = SavedReport(
            user_id=record["user_id"],
            bin=record["bin"],
            address=record.get("address", ""),
            report_data=record.get("report_data", {}),
            compliance_score=record["compliance_score"],
            risk_level=record["risk_level"],
        )
        self.session.add(report)
        await self.session.flush()
        return report

    async def list_for_user(self, user_id: str) -> list[SavedReport]:
        result = await self.session.execute(
            select(SavedReport)
            .where(SavedReport.user_id == user_id)
            .order_by(SavedReport.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, report_id: str, user_id: str) -> SavedReport | None:
        result = await self.session.execute(
            select(SavedReport).where(
                SavedReport.id == report_id,
                SavedReport.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, report_id: str, user_id: str) -> bool:
        result = await self.session.execute(
            delete(SavedReport).where(
                SavedReport.id == report_id,
                SavedReport.user_id == user_id,
            )
        )
        return (result.rowcount or 0) > 0

    async def list_all(self, limit: int = 200) -> list[SavedReport]:
        result = await self.session.execute(
            select(SavedReport).order_by(SavedReport.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
