from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from compliance_report.api.deps import get_access_token, get_report_service
from compliance_report.schemas.property import PropertyDataError
from compliance_report.services.auth_service import AuthUnavailableError
from compliance_report.services.report_service import (
    AuthenticationRequired,
    ReportNotFoundError,
    ReportService,
    report_to_dict,
)

router = APIRouter()


class SaveReportRequest(BaseModel):
    report_data: dict[str, Any]


@router.post("", status_code=201)
async def save_report(
    req: SaveReportRequest,
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = await service.save_report(token, req.report_data)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except PropertyDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return report_to_dict(report)


@router.get("")
async def list_reports(
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    try:
        reports = await service.list_reports(token)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [report_to_dict(r, include_data=False) for r in reports]


@router.get("/admin/all")
async def list_all_reports(
    limit: int = Query(200, ge=1, le=1000),
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    try:
        reports = await service.list_all_reports(token, limit=limit)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return [report_to_dict(r, include_data=False) for r in reports]


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    try:
        report = await service.get_report(token, report_id)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return report_to_dict(report)


@router.delete("/{report_id}", status_code=204)
async def delete_report(
    report_id: str,
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    try:
        await service.delete_report(token, report_id)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
