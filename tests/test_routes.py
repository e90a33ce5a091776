"""Tests for the HTTP surface, with the engine wired to fake collaborators."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routers.auth import get_email_provider, get_engine, get_system_diagnostic
from doctor.diagnostics.system import SystemDiagnostic
from doctor.provider.models import AuthProviderError


@pytest.fixture
def client(engine, provider, profiles, local_settings):
    auth_api = MagicMock()
    auth_api.health = AsyncMock(return_value={"name": "GoTrue"})
    profiles.probe = AsyncMock(return_value=None)
    email_provider = MagicMock()
    email_provider.resend = AsyncMock(return_value=None)
    email_provider.sign_in_with_password = AsyncMock(side_effect=AuthProviderError("Invalid login credentials", 400))

    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_system_diagnostic] = lambda: SystemDiagnostic(
        provider, auth_api, profiles, local_settings
    )
    app.dependency_overrides[get_email_provider] = lambda: email_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_login(client):
    resp = client.post("/auth/login", json={"email": "ana@example.com", "password": "wrong"})
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "message": "Invalid email or password"}

    assert client.post("/auth/login", json={"email": "ana@example.com"}).status_code == 422


def test_diagnose(client, provider):
    provider.get_session.return_value = None

    resp = client.get("/auth/diagnose")

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["problems"]) == 5
    first = body["problems"][0]
    assert first["problem"]["id"] == "session_expired"
    assert first["problem"]["severity"] == "medium"
    assert first["has_problem"] is True
    assert body["summary"]["total"] == 1


def test_apply_fixes(client, provider):
    provider.get_session.return_value = None

    body = client.post("/auth/fixes").json()

    assert body["summary"] == {"total": 1, "successful": 1, "failed": 0}
    assert body["applied"][0]["problem"]["id"] == "session_expired"


def test_session_endpoints(client, provider):
    assert client.get("/auth/session/reauth").json() == {"needs_reauthentication": False}

    provider.refresh_session.return_value = None
    body = client.post("/auth/session/refresh").json()
    assert body["success"] is False


def test_clear(client, provider):
    body = client.post("/auth/clear").json()
    assert body["success"] is True
    provider.sign_out.assert_awaited_once()


def test_system_report(client):
    body = client.get("/auth/system").json()
    assert body["status"] in {"success", "warning", "error"}
    assert len(body["checks"]) == 5


def test_resend_confirmation(client):
    resp = client.post("/auth/confirmation/resend", json={"email": "ana@example.com"})
    assert resp.json()["success"] is True


def test_metrics_exposition(client):
    client.get("/auth/diagnose")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "auth_problem_checks_total" in resp.text
