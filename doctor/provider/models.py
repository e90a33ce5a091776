"""Data models and errors shared by the provider clients."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel


class DoctorError(Exception):
    """Base error for calls against external collaborators."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class AuthProviderError(DoctorError):
    """Error reported by the identity provider (or failure to reach it)."""


class ProfileStoreError(DoctorError):
    """Error reported by the profile store."""


class User(BaseModel):
    id: str
    email: str | None = None
    user_metadata: dict = {}
    email_confirmed_at: str | None = None


class Session(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: User | None = None


class Profile(BaseModel):
    id: str
    email: str = ""
    name: str = ""
    role: str = "user"


class IdentityProvider(Protocol):
    """Capabilities the health engine consumes from the identity provider."""

    async def get_session(self) -> Session | None: ...

    async def get_user(self) -> User | None: ...

    async def refresh_session(self) -> Session | None: ...

    async def sign_out(self, session: Session | None = None) -> None: ...


class ProfileRepository(Protocol):
    async def find_profile_by_id(self, user_id: str) -> Profile | None: ...

    async def insert_profile(self, profile: Profile) -> None: ...
