from fastapi import APIRouter

from compliance_report.api.v1 import export, properties, reports, scoring

api_router = APIRouter()

api_router.include_router(properties.router, prefix="/properties", tags=["properties"])
api_router.include_router(scoring.router, prefix="/scoring", tags=["scoring"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
