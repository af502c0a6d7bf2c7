"""Tests for the NYC Open Data client and its row mappers."""

import asyncio

import httpx
import pytest

from compliance_report.clients.nyc_open_data import (
    DOB_PERMITS,
    DOB_VIOLATIONS,
    HPD_VIOLATIONS,
    NycOpenDataClient,
    to_dob_permit,
    to_dob_violation,
    to_ecb_violation,
    to_hpd_violation,
)

BASE_URL = "https://data.example.org/resource"


def _client(handler, **kwargs) -> NycOpenDataClient:
    return NycOpenDataClient(
        base_url=BASE_URL,
        app_token=kwargs.pop("app_token", ""),
        limit=kwargs.pop("limit", 50),
        rate_limit_delay=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestMappers:
    def test_dob_active(self):
        v = to_dob_violation({"violation_number": "V1", "issue_date": "20260501"})
        assert v.status == "Active"
        assert v.violation_date == "20260501"
        assert v.isn_dob_bis_viol == "V1"

    def test_dob_dismissed(self):
        v = to_dob_violation({"disposition_comments": "Violation Dismissed"})
        assert v.status == "Closed"

    def test_dob_closed_date(self):
        assert to_dob_violation({"violation_date_closed": "20240101"}).status == "Closed"

    def test_ecb_balance_defaults(self):
        v = to_ecb_violation({"ecb_violation_number": "E1", "ecb_violation_status": "RESOLVE"})
        assert v.penalty_balance_due == "0"
        assert v.status == "RESOLVE"

    def test_ecb_missing_status(self):
        assert to_ecb_violation({}).status == "Unknown"

    def test_ecb_balance_field(self):
        v = to_ecb_violation({"balance_due": "1250.00", "served_date": "2026-01-02T00:00:00.000"})
        assert v.penalty_balance_due == "1250.00"
        assert v.amount_baldue == "1250.00"
        assert v.violation_date == "2026-01-02T00:00:00.000"

    def test_hpd_class(self):
        assert to_hpd_violation({"class": "B", "violationid": 42}).violation_class == "B"
        assert to_hpd_violation({"violationid": 42}).violationid == "42"

    def test_permit_issuance_date(self):
        p = to_dob_permit({"job__": "1", "issuance_date": "01/02/2026", "permittee_s_last_name": "SMITH"})
        assert p.permit_status_date == "01/02/2026"
        assert p.applicant_s_last_name == "SMITH"


class TestClient:
    def test_queries_dataset_by_bin(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"violationid": "1", "class": "C"}])

        client = _client(handler, app_token="secret")
        rows = asyncio.run(client.hpd_violations("3001234"))

        assert rows[0].violation_class == "C"
        request = seen[0]
        assert request.url.path == f"/resource/{HPD_VIOLATIONS}.json"
        assert request.url.params["bin"] == "3001234"
        assert request.url.params["$limit"] == "50"
        assert request.headers["X-App-Token"] == "secret"

    def test_no_token_header_without_token(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        asyncio.run(_client(handler).dob_violations("3001234"))
        assert "X-App-Token" not in seen[0].headers

    def test_permits_use_bin_column(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"job__": "321", "permit_status": "ISSUED"}])

        permits = asyncio.run(_client(handler).permits("3001234"))
        assert permits[0].job__ == "321"
        assert seen[0].url.path == f"/resource/{DOB_PERMITS}.json"
        assert seen[0].url.params["bin__"] == "3001234"

    def test_unexpected_payload_is_empty(self):
        client = _client(lambda request: httpx.Response(200, json={"error": "bad"}))
        assert asyncio.run(client.ecb_violations("3001234")) == []

    def test_client_error_raises(self):
        client = _client(lambda request: httpx.Response(404, json={"message": "not found"}))
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(client.dob_violations("3001234"))


class TestLookupBin:
    def test_falls_back_to_permits(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith(f"{DOB_VIOLATIONS}.json"):
                return httpx.Response(200, json=[])
            return httpx.Response(200, json=[{"bin__": "3001234"}])

        result = asyncio.run(_client(handler).lookup_bin("123 Atlantic Avenue"))

        assert result == "3001234"
        assert len(seen) == 2
        assert "123 ATLANTIC AVENUE" in seen[0].url.params["$where"]
        assert seen[1].url.params["$select"] == "bin__"

    def test_quotes_are_escaped(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        assert asyncio.run(_client(handler).lookup_bin("1 O'BRIEN PL")) is None
        assert "O''BRIEN" in seen[0].url.params["$where"]

    def test_blank_address(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert asyncio.run(_client(handler).lookup_bin("   ")) is None
