"""Shared fixtures: fake identity provider, fake profile store, local storages."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from doctor.config import Settings
from doctor.engine.engine import AuthHealthEngine
from doctor.problems.definitions import build_registry
from doctor.problems.models import ProblemContext
from doctor.provider.models import Profile, Session, User
from doctor.provider.storage import MemoryStorage

USER_ID = "5f0c7a2e-user"


def make_user(**overrides) -> User:
    fields = {"id": USER_ID, "email": "ana@example.com", "user_metadata": {"name": "Ana"}}
    fields.update(overrides)
    return User(**fields)


def make_session(expires_in: int = 3600, now: float | None = None) -> Session:
    now = time.time() if now is None else now
    return Session(
        access_token="access-token",
        refresh_token="refresh-token",
        expires_in=expires_in,
        expires_at=int(now) + expires_in,
        user=make_user(),
    )


@pytest.fixture
def provider():
    fake = MagicMock()
    fake.get_session = AsyncMock(return_value=make_session())
    fake.get_user = AsyncMock(return_value=make_user())
    fake.refresh_session = AsyncMock(return_value=make_session())
    fake.sign_out = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def profiles():
    fake = MagicMock()
    fake.find_profile_by_id = AsyncMock(
        return_value=Profile(id=USER_ID, email="ana@example.com", name="Ana")
    )
    fake.insert_profile = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def local_settings() -> Settings:
    return Settings(app_origin="http://localhost:5173", supabase_url="", supabase_anon_key="")


@pytest.fixture
def production_settings() -> Settings:
    return Settings(app_origin="https://app.example.com")


@pytest.fixture
def ctx(provider, profiles, local_settings) -> ProblemContext:
    return ProblemContext(provider=provider, profiles=profiles, settings=local_settings)


@pytest.fixture
def session_storage() -> MemoryStorage:
    return MemoryStorage({"auth-redirect": "/dashboard", "draft": "{}"})


@pytest.fixture
def persistent_storage() -> MemoryStorage:
    return MemoryStorage(
        {
            "sb-abcd-auth-token": '{"access_token": "x"}',
            "supabase.auth.token": "legacy",
            "theme": "dark",
            "cart": "[]",
        }
    )


@pytest.fixture
def engine(ctx, provider, session_storage, persistent_storage, local_settings) -> AuthHealthEngine:
    return AuthHealthEngine(
        build_registry(ctx),
        provider,
        (session_storage, persistent_storage),
        local_settings,
    )
