from collections.abc import AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_report.database import get_db
from compliance_report.services.auth_service import SupabaseAuthService
from compliance_report.services.property_service import PropertyService
from compliance_report.services.report_service import ReportService
from compliance_report.services.report_store import SqlAlchemyReportStore


def get_access_token(authorization: str | None = Header(None)) -> str | None:
    """Bearer token from the Authorization header, if any."""
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


async def get_auth_service() -> AsyncGenerator[SupabaseAuthService, None]:
    auth = SupabaseAuthService()
    try:
        yield auth
    finally:
        await auth.close()


async def get_report_service(
    db: AsyncSession = Depends(get_db),
    auth: SupabaseAuthService = Depends(get_auth_service),
) -> ReportService:
    return ReportService(auth, SqlAlchemyReportStore(db))


async def get_property_service() -> AsyncGenerator[PropertyService, None]:
    service = PropertyService()
    try:
        yield service
    finally:
        await service.close()
