"""Identity provider client — talks to the GoTrue auth HTTP API.

The current session is persisted in a key/value storage under the same key
name browser clients use (``sb-<project-ref>-auth-token``).
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx
from pydantic import ValidationError

from doctor.config import settings
from doctor.provider.models import AuthProviderError, Session, User
from doctor.provider.storage import KeyValueStorage

logger = logging.getLogger("doctor.provider")

# Logout failures that still mean the remote session is gone.
_SIGN_OUT_IGNORED_STATUSES = {401, 403, 404}


def is_local_origin(origin: str) -> bool:
    return "localhost" in origin or "127.0.0.1" in origin


def session_storage_key(supabase_url: str) -> str:
    host = httpx.URL(supabase_url).host if supabase_url else ""
    project_ref = host.split(".")[0] if host else "local"
    return f"sb-{project_ref}-auth-token"


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for field in ("msg", "error_description", "message", "error"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {resp.status_code}"


class GoTrueClient:
    def __init__(
        self,
        storage: KeyValueStorage,
        http: httpx.AsyncClient | None = None,
        origin: str | None = None,
    ) -> None:
        self._storage = storage
        self._http = http or httpx.AsyncClient(
            base_url=settings.supabase_url,
            timeout=settings.http_timeout_seconds,
        )
        self._origin = origin if origin is not None else settings.app_origin
        self._check_origin = bool(self._origin) and not is_local_origin(self._origin)
        self.storage_key = session_storage_key(settings.supabase_url)
        # Serializes refreshes so one refresh token is never spent twice.
        self._refresh_lock = asyncio.Lock()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
        access_token: str | None = None,
    ) -> dict:
        headers = {
            "apikey": settings.supabase_anon_key,
            "Authorization": f"Bearer {access_token or settings.supabase_anon_key}",
        }
        if self._check_origin:
            headers["Origin"] = self._origin

        try:
            resp = await self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise AuthProviderError(f"Failed to reach identity provider: {exc}") from exc

        if self._check_origin:
            allowed = resp.headers.get("access-control-allow-origin")
            if allowed not in ("*", self._origin):
                raise AuthProviderError(
                    f"CORS policy rejected origin {self._origin}", resp.status_code
                )

        if resp.status_code >= 400:
            raise AuthProviderError(_error_message(resp), resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise AuthProviderError(
                f"Unreadable response from identity provider: HTTP {resp.status_code}",
                resp.status_code,
            ) from exc

    # ── Session persistence ───────────────────────────────────────

    async def _load_session(self) -> Session | None:
        raw = await self._storage.get(self.storage_key)
        if not raw:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable stored session under %s", self.storage_key)
            await self._storage.delete(self.storage_key)
            return None

    async def _save_session(self, session: Session) -> None:
        await self._storage.set(self.storage_key, session.model_dump_json())

    async def _remove_session(self) -> None:
        await self._storage.delete(self.storage_key)

    @staticmethod
    def _parse_session(data: dict) -> Session | None:
        try:
            if not data.get("access_token"):
                return None
            if data.get("expires_at") is None and data.get("expires_in") is not None:
                data = {**data, "expires_at": int(time.time()) + int(data["expires_in"])}
            return Session.model_validate(data)
        except (AttributeError, TypeError, ValueError) as exc:
            raise AuthProviderError(f"Malformed session from identity provider: {exc}") from exc

    @staticmethod
    def _expiring(session: Session) -> bool:
        if session.expires_at is None:
            return False
        return session.expires_at - time.time() <= settings.session_refresh_margin_seconds

    async def _refresh(self, refresh_token: str) -> Session | None:
        data = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        session = self._parse_session(data)
        if session is not None:
            await self._save_session(session)
            logger.info("Session refreshed, expires_at=%s", session.expires_at)
        return session

    # ── Provider operations ───────────────────────────────────────

    async def get_session(self) -> Session | None:
        """Return the stored session, refreshing it first if it is about to expire."""
        session = await self._load_session()
        if session is None or not self._expiring(session):
            return session

        async with self._refresh_lock:
            # A concurrent caller may have refreshed while we waited.
            session = await self._load_session()
            if session is None or not self._expiring(session):
                return session
            return await self._refresh(session.refresh_token)

    async def get_user(self) -> User | None:
        session = await self.get_session()
        if session is None:
            return None
        data = await self._request("GET", "/auth/v1/user", access_token=session.access_token)
        try:
            return User.model_validate(data)
        except ValueError as exc:
            raise AuthProviderError(f"Malformed user from identity provider: {exc}") from exc

    async def refresh_session(self) -> Session | None:
        async with self._refresh_lock:
            session = await self._load_session()
            if session is None:
                raise AuthProviderError("Auth session missing!")
            return await self._refresh(session.refresh_token)

    async def sign_out(self, session: Session | None = None) -> None:
        """Revoke the session remotely, then drop the stored copy.

        ``session`` lets a caller that already wiped storage still revoke the
        tokens it read beforehand.
        """
        if session is None:
            session = await self._load_session()
        if session is not None:
            try:
                await self._request("POST", "/auth/v1/logout", access_token=session.access_token)
            except AuthProviderError as exc:
                if exc.status not in _SIGN_OUT_IGNORED_STATUSES:
                    raise
                logger.info("Remote session already gone (%s)", exc.status)
        await self._remove_session()

    async def sign_in_with_password(
        self, email: str, password: str, persist: bool = True
    ) -> Session | None:
        data = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._parse_session(data)
        if session is not None and persist:
            await self._save_session(session)
            logger.info("Signed in, expires_at=%s", session.expires_at)
        return session

    async def resend(self, email: str, type: str = "signup") -> None:
        await self._request("POST", "/auth/v1/resend", json={"type": type, "email": email})

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request("POST", "/auth/v1/recover", json={"email": email}, params=params)

    async def health(self) -> dict:
        return await self._request("GET", "/auth/v1/health")

    async def current_access_token(self) -> str | None:
        session = await self.get_session()
        return session.access_token if session else None
