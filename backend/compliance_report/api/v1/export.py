import csv
import io

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from compliance_report.api.deps import get_access_token, get_report_service
from compliance_report.services.auth_service import AuthUnavailableError
from compliance_report.services.report_service import AuthenticationRequired, ReportService
from compliance_report.services.scoring_engine import risk_label

router = APIRouter()


@router.get("/reports/csv")
async def export_reports_csv(
    token: str | None = Depends(get_access_token),
    service: ReportService = Depends(get_report_service),
):
    """Export the caller's saved reports as CSV."""
    try:
        reports = await service.list_reports(token)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AuthUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    output = io.StringIO()
    writer = csv.writer(output)

    # Header
    writer.writerow([
        "id", "bin", "address", "compliance_score", "risk_level", "risk_label", "created_at",
    ])

    for r in reports:
        writer.writerow([
            r.id, r.bin, r.address or "", r.compliance_score, r.risk_level,
            risk_label(r.risk_level),
            r.created_at.isoformat() if r.created_at else "",
        ])

    csv_content = output.getvalue()
    output.close()

    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=saved_reports.csv"},
    )
