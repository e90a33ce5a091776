"""System diagnostic — configuration, connectivity, auth API, database and CORS.

Unlike the problem registry this has no fixes: it reports a status per area
and an overall status for the whole auth setup.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from doctor.config import Settings
from doctor.provider.gotrue import is_local_origin
from doctor.provider.models import IdentityProvider

logger = logging.getLogger("doctor.diagnostics")


class CheckStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class SystemCheck(BaseModel):
    name: str
    status: CheckStatus
    message: str
    details: str | None = None


class SystemReport(BaseModel):
    status: CheckStatus
    checks: list[SystemCheck]


class HealthProbe(Protocol):
    async def health(self) -> dict: ...


class TableProbe(Protocol):
    async def probe(self) -> None: ...


def overall_status(checks: list[SystemCheck]) -> CheckStatus:
    statuses = {c.status for c in checks}
    if CheckStatus.ERROR in statuses:
        return CheckStatus.ERROR
    if CheckStatus.WARNING in statuses:
        return CheckStatus.WARNING
    return CheckStatus.SUCCESS


class SystemDiagnostic:
    def __init__(
        self,
        provider: IdentityProvider,
        auth_api: HealthProbe,
        profiles: TableProbe,
        settings: Settings,
    ) -> None:
        self._provider = provider
        self._auth_api = auth_api
        self._profiles = profiles
        self._settings = settings

    def check_environment(self) -> SystemCheck:
        url = self._settings.supabase_url
        key = self._settings.supabase_anon_key
        name = "Environment"
        if not url or not key:
            return SystemCheck(
                name=name,
                status=CheckStatus.ERROR,
                message="Environment variables not configured",
                details=(
                    f"DOCTOR_SUPABASE_URL: {'set' if url else 'missing'}\n"
                    f"DOCTOR_SUPABASE_ANON_KEY: {'set' if key else 'missing'}"
                ),
            )
        return SystemCheck(
            name=name,
            status=CheckStatus.SUCCESS,
            message="Environment variables configured",
            details=f"URL: {url[:30]}...\nKey: {key[:20]}...",
        )

    async def check_connection(self) -> SystemCheck:
        name = "Provider Connection"
        try:
            session = await self._provider.get_session()
        except Exception as exc:
            return SystemCheck(
                name=name,
                status=CheckStatus.ERROR,
                message="Failed to connect to the identity provider",
                details=str(exc),
            )
        return SystemCheck(
            name=name,
            status=CheckStatus.SUCCESS,
            message="Connection to the identity provider established",
            details="User authenticated" if session else "No user authenticated",
        )

    async def check_auth_operations(self) -> SystemCheck:
        name = "Auth Operations"
        try:
            await self._auth_api.health()
        except Exception as exc:
            return SystemCheck(
                name=name,
                status=CheckStatus.ERROR,
                message="Authentication API is not responding",
                details=str(exc),
            )
        return SystemCheck(
            name=name,
            status=CheckStatus.SUCCESS,
            message="Authentication operations working",
            details="Health endpoint answered",
        )

    async def check_database(self) -> SystemCheck:
        name = "Database"
        try:
            await self._profiles.probe()
        except Exception as exc:
            return SystemCheck(
                name=name,
                status=CheckStatus.ERROR,
                message="Database access failed",
                details=str(exc),
            )
        return SystemCheck(
            name=name,
            status=CheckStatus.SUCCESS,
            message="Database access working",
            details="Query executed successfully",
        )

    def check_cors(self) -> SystemCheck:
        origin = self._settings.app_origin
        if is_local_origin(origin):
            return SystemCheck(
                name="CORS",
                status=CheckStatus.SUCCESS,
                message="CORS configured for development",
                details=f"Origin: {origin}",
            )
        return SystemCheck(
            name="CORS",
            status=CheckStatus.WARNING,
            message="Verify the CORS configuration for production",
            details=f"Origin: {origin}",
        )

    async def run(self) -> SystemReport:
        checks = [
            self.check_environment(),
            await self.check_connection(),
            await self.check_auth_operations(),
            await self.check_database(),
            self.check_cors(),
        ]
        status = overall_status(checks)
        logger.info("System diagnostic finished with status=%s", status.value)
        return SystemReport(status=status, checks=checks)
