"""Test configuration and fixtures."""

from datetime import date, datetime, timedelta, timezone

import pytest
from tenacity import wait_none

from compliance_report.clients.base_client import BaseAPIClient
from compliance_report.models.saved_report import SavedReport
from compliance_report.schemas.property import (
    DOBPermit,
    DOBViolation,
    ECBViolation,
    HPDViolation,
    PropertyData,
)
from compliance_report.services.auth_service import AuthSession

# Fixed "today" so recency-based penalties are reproducible
AS_OF = date(2026, 6, 1)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def make_property():
    """Factory for PropertyData with sensible identifying fields."""

    def _make(
        dob=(),
        ecb=(),
        hpd=(),
        permits=(),
        bin="3001234",
        borough="3",
    ) -> PropertyData:
        return PropertyData(
            bin=bin,
            address="123 ATLANTIC AVENUE",
            borough=borough,
            block="00123",
            lot="0045",
            dob_violations=tuple(dob),
            ecb_violations=tuple(ecb),
            hpd_violations=tuple(hpd),
            permits=tuple(permits),
        )

    return _make


@pytest.fixture
def class_c_recent() -> HPDViolation:
    return HPDViolation(
        violationid="12345678",
        violation_class="C",
        novissueddate="2026-05-15T00:00:00.000",
        currentstatus="NOV SENT OUT",
        violationstatus="Open",
    )


@pytest.fixture
def dob_active() -> DOBViolation:
    return DOBViolation(
        violation_number="V052026LL1234",
        violation_date="20260501",
        severity="Hazardous",
        status="Active",
    )


@pytest.fixture
def ecb_open_with_balance() -> ECBViolation:
    return ECBViolation(
        ecb_violation_number="35512345X",
        ecb_violation_status="ACTIVE",
        penalty_balance_due="5000",
        amount_baldue="5000",
        violation_date="2026-04-01T00:00:00.000",
        status="ACTIVE",
    )


@pytest.fixture
def issued_permit() -> DOBPermit:
    return DOBPermit(job__="321000001", permit_status="ISSUED", filing_date="01/15/2026")


class FakeAuthService:
    """AuthService double: known tokens map to sessions, roles are a set."""

    def __init__(self, sessions: dict[str, AuthSession] | None = None, roles: set | None = None):
        self.sessions = sessions or {}
        self.roles = roles or set()

    async def get_session(self, access_token):
        return self.sessions.get(access_token)

    async def has_role(self, user_id, role, access_token):
        return (user_id, role) in self.roles


class InMemoryReportStore:
    """ReportStore double assigning ids and timestamps like the database would."""

    def __init__(self):
        self.reports: list[SavedReport] = []
        self._seq = 0

    async def save(self, record):
        self._seq += 1
        report = SavedReport(
            id=f"report-{self._seq}",
            created_at=datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc) + timedelta(minutes=self._seq),
            **record,
        )
        self.reports.append(report)
        return report

    async def list_for_user(self, user_id):
        mine = [r for r in self.reports if r.user_id == user_id]
        return sorted(mine, key=lambda r: r.created_at, reverse=True)

    async def get(self, report_id, user_id):
        for r in self.reports:
            if r.id == report_id and r.user_id == user_id:
                return r
        return None

    async def delete(self, report_id, user_id):
        report = await self.get(report_id, user_id)
        if report is None:
            return False
        self.reports.remove(report)
        return True

    async def list_all(self, limit=200):
        return sorted(self.reports, key=lambda r: r.created_at, reverse=True)[:limit]


@pytest.fixture
def alice() -> AuthSession:
    return AuthSession(user_id="user-alice", email="alice@example.com", access_token="token-alice")


@pytest.fixture
def admin() -> AuthSession:
    return AuthSession(user_id="user-admin", email="admin@example.com", access_token="token-admin")


@pytest.fixture
def fake_auth(alice, admin) -> FakeAuthService:
    return FakeAuthService(
        sessions={alice.access_token: alice, admin.access_token: admin},
        roles={(admin.user_id, "admin")},
    )


@pytest.fixture
def report_store() -> InMemoryReportStore:
    return InMemoryReportStore()


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Keep the client's retries but skip the exponential backoff between them."""
    monkeypatch.setattr(BaseAPIClient._request.retry, "wait", wait_none())
