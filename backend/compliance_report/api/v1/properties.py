from fastapi import APIRouter, Depends, HTTPException

from compliance_report.api.deps import get_property_service
from compliance_report.schemas.property import PropertyDataError
from compliance_report.services.property_service import (
    PropertyLookupError,
    PropertyNotFoundError,
    PropertyService,
)
from compliance_report.services.report_summary import build_report_summary
from compliance_report.services.scoring_engine import compute_compliance_score
from compliance_report.utils.agency import (
    agency_display_name,
    agency_lookup_url,
    borough_name,
    build_bbl,
)

router = APIRouter()


@router.get("/search")
async def search_property(
    bin: str | None = None,
    address: str | None = None,
    service: PropertyService = Depends(get_property_service),
):
    """Fetch a building's records and return them with its compliance report."""
    if not (bin or address):
        raise HTTPException(status_code=400, detail="Please provide a BIN or address.")

    try:
        data = await service.fetch(bin_number=bin, address=address)
        score = compute_compliance_score(data)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PropertyLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except PropertyDataError as e:
        raise HTTPException(status_code=422, detail=str(e))

    bbl = build_bbl(data.borough, data.block, data.lot)
    return {
        "property": {
            **data.to_dict(),
            "borough_name": borough_name(data.borough),
            "bbl": bbl,
        },
        "score": score.to_dict(),
        "summary": build_report_summary(data, score),
        "agencies": [
            {
                "agency": agency,
                "name": agency_display_name(agency),
                "lookup_url": agency_lookup_url(agency, bbl),
            }
            for agency in ("DOB", "ECB", "HPD")
        ],
    }
