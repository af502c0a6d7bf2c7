"""Tests for building a PropertyData snapshot from Open Data rows."""

import asyncio

import httpx
import pytest

from compliance_report.clients.nyc_open_data import NycOpenDataClient, to_ecb_violation, to_hpd_violation
from compliance_report.services.property_service import (
    PropertyLookupError,
    PropertyNotFoundError,
    PropertyService,
)


class FakeOpenDataClient:
    def __init__(self, dob=None, ecb=None, hpd=None, permits=None, bins=None, fail=False):
        self.dob = dob or []
        self.ecb = ecb or []
        self.hpd = hpd or []
        self.permits = permits or []
        self.bins = bins or {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise httpx.ConnectError("connection refused")

    async def dob_violation_rows(self, bin_number):
        self._check()
        return self.dob

    async def ecb_violations(self, bin_number):
        self._check()
        return [to_ecb_violation(r) for r in self.ecb]

    async def hpd_violations(self, bin_number):
        self._check()
        return [to_hpd_violation(r) for r in self.hpd]

    async def permit_rows(self, bin_number):
        self._check()
        return self.permits

    async def lookup_bin(self, address):
        self._check()
        return self.bins.get(address)

    async def close(self):
        self.closed = True


DOB_ROW = {
    "bin": "3001234",
    "boro": "3",
    "block": "00123",
    "lot": "0045",
    "house_number": "123",
    "street": "ATLANTIC AVENUE",
    "violation_number": "V1",
    "issue_date": "20260501",
    "violation_type": "LL6291-LOCAL LAW 62/91 - BOILERS",
}


class TestFetch:
    def test_header_from_dob_rows(self):
        service = PropertyService(
            FakeOpenDataClient(dob=[DOB_ROW], hpd=[{"violationid": "H1", "class": "C"}])
        )
        data = asyncio.run(service.fetch(bin_number=" 3001234 "))
        assert data.bin == "3001234"
        assert data.address == "123 ATLANTIC AVENUE"
        assert data.borough == "3"
        assert data.block == "00123"
        assert data.dob_violations[0].violation_number == "V1"
        assert data.dob_violations[0].status == "Active"
        assert data.hpd_violations[0].violation_class == "C"

    def test_header_from_permit_rows(self):
        permit = {"house__": "9", "street_name": "MAIN ST", "borough": "QUEENS", "block": "1", "lot": "2"}
        data = asyncio.run(PropertyService(FakeOpenDataClient(permits=[permit])).fetch(bin_number="4000001"))
        assert data.address == "9 MAIN ST"
        assert data.borough == "QUEENS"
        assert len(data.permits) == 1

    def test_no_records_borough_from_bin(self):
        data = asyncio.run(PropertyService(FakeOpenDataClient()).fetch(bin_number="2000001"))
        assert data.borough == "2"
        assert data.validate() is data

    def test_address_lookup(self):
        client = FakeOpenDataClient(bins={"123 ATLANTIC AVENUE": "3001234"})
        data = asyncio.run(PropertyService(client).fetch(address="123 ATLANTIC AVENUE"))
        assert data.bin == "3001234"
        assert data.address == "123 ATLANTIC AVENUE"

    def test_unknown_address(self):
        with pytest.raises(PropertyNotFoundError):
            asyncio.run(PropertyService(FakeOpenDataClient()).fetch(address="1 NOWHERE"))

    def test_requires_bin_or_address(self):
        with pytest.raises(ValueError):
            asyncio.run(PropertyService(FakeOpenDataClient()).fetch())

    def test_upstream_failure(self):
        with pytest.raises(PropertyLookupError):
            asyncio.run(PropertyService(FakeOpenDataClient(fail=True)).fetch(bin_number="3001234"))

    def test_upstream_failure_during_lookup(self):
        with pytest.raises(PropertyLookupError):
            asyncio.run(PropertyService(FakeOpenDataClient(fail=True)).fetch(address="123 MAIN"))

    def test_close(self):
        client = FakeOpenDataClient()
        asyncio.run(PropertyService(client).close())
        assert client.closed


class SlowDobClient(FakeOpenDataClient):
    """DOB rows hang while the ECB request fails straight away."""

    def __init__(self):
        super().__init__()
        self.dob_cancelled = False

    async def dob_violation_rows(self, bin_number):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.dob_cancelled = True
            raise
        return []

    async def ecb_violations(self, bin_number):
        raise httpx.ConnectError("connection refused")


def _maintenance_page(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="<html>Down for maintenance</html>")


class TestUpstreamErrors:
    def test_failed_request_cancels_the_others(self):
        client = SlowDobClient()
        with pytest.raises(PropertyLookupError):
            asyncio.run(PropertyService(client).fetch(bin_number="3001234"))
        assert client.dob_cancelled

    def test_non_json_body_during_fetch(self):
        client = NycOpenDataClient(
            base_url="https://data.example.org/resource",
            app_token="",
            rate_limit_delay=0.0,
            transport=httpx.MockTransport(_maintenance_page),
        )
        with pytest.raises(PropertyLookupError):
            asyncio.run(PropertyService(client).fetch(bin_number="3001234"))

    def test_non_json_body_during_lookup(self):
        client = NycOpenDataClient(
            base_url="https://data.example.org/resource",
            app_token="",
            rate_limit_delay=0.0,
            transport=httpx.MockTransport(_maintenance_page),
        )
        with pytest.raises(PropertyLookupError):
            asyncio.run(PropertyService(client).fetch(address="123 ATLANTIC AVENUE"))
