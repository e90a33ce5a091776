"""Profile store client — reads and writes profile rows through PostgREST."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx

from doctor.config import settings
from doctor.provider.models import Profile, ProfileStoreError

logger = logging.getLogger("doctor.provider")

TokenSource = Callable[[], Awaitable[str | None]]


class ProfileStore:
    def __init__(
        self,
        token_source: TokenSource | None = None,
        http: httpx.AsyncClient | None = None,
        table: str | None = None,
    ) -> None:
        self._token_source = token_source
        self._table = table or settings.profile_table
        self._http = http or httpx.AsyncClient(
            base_url=settings.supabase_url,
            timeout=settings.http_timeout_seconds,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def _headers(self) -> dict:
        token = await self._token_source() if self._token_source else None
        return {
            "apikey": settings.supabase_anon_key,
            "Authorization": f"Bearer {token or settings.supabase_anon_key}",
        }

    async def _request(
        self,
        method: str,
        params: dict | None = None,
        json: dict | None = None,
        extra_headers: dict | None = None,
    ) -> httpx.Response:
        headers = await self._headers()
        if extra_headers:
            headers.update(extra_headers)
        try:
            resp = await self._http.request(
                method, f"/rest/v1/{self._table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            raise ProfileStoreError(f"Failed to reach profile store: {exc}") from exc

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            message = message or resp.text
            raise ProfileStoreError(message or f"HTTP {resp.status_code}", resp.status_code)
        return resp

    async def find_profile_by_id(self, user_id: str) -> Profile | None:
        resp = await self._request(
            "GET", params={"id": f"eq.{user_id}", "select": "*", "limit": 1}
        )
        rows = resp.json()
        if not rows:
            return None
        return Profile.model_validate(rows[0])

    async def insert_profile(self, profile: Profile) -> None:
        await self._request(
            "POST",
            json=profile.model_dump(),
            extra_headers={"Prefer": "return=minimal"},
        )
        logger.info("Inserted profile row for user=%s", profile.id)

    async def probe(self) -> None:
        """Cheap read proving the table is reachable with the current credentials."""
        await self._request("GET", params={"select": "id", "limit": 1})
