"""Builds a PropertyData snapshot for one building from NYC Open Data."""

import asyncio
from typing import Any

import httpx
import structlog

from compliance_report.clients.nyc_open_data import (
    NycOpenDataClient,
    to_dob_permit,
    to_dob_violation,
)
from compliance_report.schemas.property import PropertyData
from compliance_report.utils.agency import borough_code_from_bin

logger = structlog.get_logger()

# httpx failures plus non-JSON bodies (maintenance pages)
UPSTREAM_ERRORS = (httpx.HTTPError, ValueError)


class PropertyLookupError(Exception):
    """Upstream NYC Open Data request failed; the caller may retry."""


class PropertyNotFoundError(Exception):
    """An address could not be resolved to a BIN."""


def _header_from_rows(
    dob_rows: list[dict[str, Any]],
    permit_rows: list[dict[str, Any]],
) -> dict[str, str]:
    """Address / borough / block / lot from the first record that has them."""
    if dob_rows:
        r = dob_rows[0]
        return {
            "address": f"{r.get('house_number') or ''} {r.get('street') or ''}".strip(),
            "borough": str(r.get("boro") or ""),
            "block": str(r.get("block") or ""),
            "lot": str(r.get("lot") or ""),
        }
    if permit_rows:
        r = permit_rows[0]
        return {
            "address": f"{r.get('house__') or ''} {r.get('street_name') or ''}".strip(),
            "borough": str(r.get("borough") or ""),
            "block": str(r.get("block") or ""),
            "lot": str(r.get("lot") or ""),
        }
    return {"address": "", "borough": "", "block": "", "lot": ""}


async def _gather_or_cancel(*aws):
    """asyncio.gather(), cancelling the remaining requests as soon as one fails."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class PropertyService:
    """Resolves a BIN (or address) and fetches all four record sets."""

    def __init__(self, client: NycOpenDataClient | None = None):
        self.client = client or NycOpenDataClient()

    async def resolve_bin(self, bin_number: str | None = None, address: str | None = None) -> str:
        if bin_number and bin_number.strip():
            return bin_number.strip()
        if not address or not address.strip():
            raise ValueError("Please provide a BIN or address.")
        try:
            resolved = await self.client.lookup_bin(address)
        except UPSTREAM_ERRORS as e:
            logger.warning("BIN lookup failed", address=address, error=str(e))
            raise PropertyLookupError("NYC Open Data is unavailable, please retry") from e
        if not resolved:
            raise PropertyNotFoundError(
                "Could not find a BIN for that address. Try searching by BIN directly."
            )
        return resolved

    async def fetch(self, bin_number: str | None = None, address: str | None = None) -> PropertyData:
        """Fetch DOB, ECB, HPD and permit records for one building.

        The four datasets are queried concurrently. Any upstream failure raises
        PropertyLookupError rather than scoring a partial record set.
        """
        resolved_bin = await self.resolve_bin(bin_number, address)

        try:
            dob_rows, ecb, hpd, permit_rows = await _gather_or_cancel(
                self.client.dob_violation_rows(resolved_bin),
                self.client.ecb_violations(resolved_bin),
                self.client.hpd_violations(resolved_bin),
                self.client.permit_rows(resolved_bin),
            )
        except UPSTREAM_ERRORS as e:
            logger.warning("Open Data fetch failed", bin=resolved_bin, error=str(e))
            raise PropertyLookupError("NYC Open Data is unavailable, please retry") from e

        header = _header_from_rows(dob_rows, permit_rows)
        data = PropertyData(
            bin=resolved_bin,
            address=(address or "").strip() or header["address"],
            borough=header["borough"] or borough_code_from_bin(resolved_bin),
            block=header["block"],
            lot=header["lot"],
            dob_violations=tuple(to_dob_violation(r) for r in dob_rows),
            ecb_violations=tuple(ecb),
            hpd_violations=tuple(hpd),
            permits=tuple(to_dob_permit(r) for r in permit_rows),
        )

        logger.info(
            "Property data fetched",
            bin=resolved_bin,
            dob=len(data.dob_violations),
            ecb=len(data.ecb_violations),
            hpd=len(data.hpd_violations),
            permits=len(data.permits),
        )
        return data

    async def close(self):
        await self.client.close()
