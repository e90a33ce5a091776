"""Tests for the system diagnostic report."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from doctor.config import Settings
from doctor.diagnostics.system import CheckStatus, SystemCheck, SystemDiagnostic, overall_status
from doctor.provider.models import AuthProviderError, ProfileStoreError


@pytest.fixture
def auth_api():
    fake = MagicMock()
    fake.health = AsyncMock(return_value={"name": "GoTrue"})
    return fake


@pytest.fixture
def table():
    fake = MagicMock()
    fake.probe = AsyncMock(return_value=None)
    return fake


def _configured(**overrides) -> Settings:
    fields = {
        "supabase_url": "https://abcd.supabase.co",
        "supabase_anon_key": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.anon",
        "app_origin": "http://localhost:5173",
    }
    fields.update(overrides)
    return Settings(**fields)


def _statuses(report) -> dict[str, CheckStatus]:
    return {c.name: c.status for c in report.checks}


async def test_everything_healthy(provider, auth_api, table):
    report = await SystemDiagnostic(provider, auth_api, table, _configured()).run()

    assert report.status == CheckStatus.SUCCESS
    assert [c.name for c in report.checks] == [
        "Environment",
        "Provider Connection",
        "Auth Operations",
        "Database",
        "CORS",
    ]
    assert report.checks[1].details == "User authenticated"


async def test_missing_configuration(provider, auth_api, table):
    report = await SystemDiagnostic(provider, auth_api, table, _configured(supabase_anon_key="")).run()

    env = report.checks[0]
    assert env.status == CheckStatus.ERROR
    assert "DOCTOR_SUPABASE_ANON_KEY: missing" in env.details
    assert report.status == CheckStatus.ERROR


async def test_configuration_details_are_masked(provider, auth_api, table):
    settings = _configured()
    report = await SystemDiagnostic(provider, auth_api, table, settings).run()
    assert settings.supabase_anon_key not in report.checks[0].details


async def test_no_user_is_still_a_working_connection(provider, auth_api, table):
    provider.get_session.return_value = None
    report = await SystemDiagnostic(provider, auth_api, table, _configured()).run()
    assert report.checks[1].status == CheckStatus.SUCCESS
    assert report.checks[1].details == "No user authenticated"


async def test_failures_are_reported_not_raised(provider, auth_api, table):
    provider.get_session.side_effect = AuthProviderError("Failed to reach identity provider")
    auth_api.health.side_effect = AuthProviderError("HTTP 503", 503)
    table.probe.side_effect = ProfileStoreError("relation does not exist", 404)

    report = await SystemDiagnostic(provider, auth_api, table, _configured()).run()

    statuses = _statuses(report)
    assert statuses["Provider Connection"] == CheckStatus.ERROR
    assert statuses["Auth Operations"] == CheckStatus.ERROR
    assert statuses["Database"] == CheckStatus.ERROR
    assert report.checks[3].details == "relation does not exist"
    assert report.status == CheckStatus.ERROR


async def test_production_origin_is_a_warning(provider, auth_api, table):
    settings = _configured(app_origin="https://app.example.com")
    report = await SystemDiagnostic(provider, auth_api, table, settings).run()

    assert _statuses(report)["CORS"] == CheckStatus.WARNING
    assert report.status == CheckStatus.WARNING


def test_overall_status_precedence():
    def check(status):
        return SystemCheck(name="x", status=status, message="m")

    assert overall_status([check(CheckStatus.SUCCESS)]) == CheckStatus.SUCCESS
    assert overall_status([check(CheckStatus.SUCCESS), check(CheckStatus.WARNING)]) == CheckStatus.WARNING
    assert overall_status([check(CheckStatus.WARNING), check(CheckStatus.ERROR)]) == CheckStatus.ERROR
