"""The known authentication problems, each with its check and its fix."""

from __future__ import annotations

import logging

from doctor.provider.gotrue import is_local_origin
from doctor.provider.models import AuthProviderError, Profile, ProfileStoreError, User
from doctor.problems.guards import fix_guard, probe_guard
from doctor.problems.models import (
    AuthProblem,
    CheckResult,
    FixResult,
    ProblemContext,
    Severity,
)

logger = logging.getLogger("doctor.problems")


class SessionExpiredProblem(AuthProblem):
    id = "session_expired"
    name = "Session Expired"
    description = "The user's session has expired or become invalid"
    severity = Severity.MEDIUM

    @probe_guard("Error checking session")
    async def check(self) -> CheckResult:
        try:
            session = await self.ctx.provider.get_session()
        except AuthProviderError as exc:
            return CheckResult(has_problem=True, details=exc.message)
        if session is None:
            return CheckResult(has_problem=True, details="No active session found")
        return CheckResult(has_problem=False)

    @fix_guard("Error refreshing session")
    async def fix(self) -> FixResult:
        try:
            session = await self.ctx.provider.refresh_session()
        except AuthProviderError as exc:
            return FixResult(success=False, message="Failed to refresh session", details=exc.message)
        if session is None:
            return FixResult(
                success=False, message="Session could not be refreshed - log in again"
            )
        return FixResult(success=True, message="Session refreshed successfully")


class InvalidTokenProblem(AuthProblem):
    id = "invalid_token"
    name = "Invalid Access Token"
    description = "The access token is invalid or corrupted"
    severity = Severity.HIGH

    @probe_guard("Error checking token")
    async def check(self) -> CheckResult:
        try:
            await self.ctx.provider.get_user()
        except AuthProviderError as exc:
            if "JWT" in exc.message:
                return CheckResult(has_problem=True, details="Invalid JWT token")
        return CheckResult(has_problem=False)

    @fix_guard("Error clearing tokens")
    async def fix(self) -> FixResult:
        await self.ctx.provider.sign_out()
        return FixResult(success=True, message="Tokens cleared - log in again")


class ConnectivityProblem(AuthProblem):
    id = "connectivity"
    name = "Connectivity Problems"
    description = "Problems connecting to the identity provider"
    severity = Severity.HIGH

    @probe_guard("Failed to connect to the identity provider")
    async def check(self) -> CheckResult:
        started = self.ctx.timer()
        try:
            await self.ctx.provider.get_session()
        except AuthProviderError as exc:
            return CheckResult(has_problem=True, details=f"Connection error: {exc.message}")
        elapsed_ms = round((self.ctx.timer() - started) * 1000)

        if elapsed_ms > self.ctx.settings.slow_response_ms:
            return CheckResult(has_problem=True, details=f"Slow response: {elapsed_ms}ms")
        return CheckResult(has_problem=False)

    @fix_guard("Error reconnecting", "Check your internet connection")
    async def fix(self) -> FixResult:
        try:
            await self.ctx.provider.get_session()
        except AuthProviderError as exc:
            return FixResult(success=False, message="Reconnection failed", details=exc.message)
        return FixResult(success=True, message="Connection restored")


class MissingProfileProblem(AuthProblem):
    id = "missing_profile"
    name = "User Profile Not Found"
    description = "The user's profile does not exist in the database"
    severity = Severity.MEDIUM

    async def _current_user(self) -> User | None:
        try:
            return await self.ctx.provider.get_user()
        except AuthProviderError:
            return None

    @probe_guard("Error checking profile")
    async def check(self) -> CheckResult:
        user = await self._current_user()
        if user is None:
            return CheckResult(has_problem=True, details="User not authenticated")

        try:
            profile = await self.ctx.profiles.find_profile_by_id(user.id)
        except ProfileStoreError as exc:
            logger.warning("Profile lookup failed for user=%s: %s", user.id, exc.message)
            profile = None
        if profile is None:
            return CheckResult(has_problem=True, details="Profile not found in database")
        return CheckResult(has_problem=False)

    @fix_guard("Error creating profile")
    async def fix(self) -> FixResult:
        user = await self._current_user()
        if user is None:
            return FixResult(success=False, message="User not authenticated")

        profile = Profile(
            id=user.id,
            email=user.email or "",
            name=user.user_metadata.get("name") or self.ctx.settings.default_display_name,
            role=self.ctx.settings.default_role,
        )
        try:
            await self.ctx.profiles.insert_profile(profile)
        except ProfileStoreError as exc:
            return FixResult(success=False, message="Error creating profile", details=exc.message)
        return FixResult(success=True, message="Profile created successfully")


class CorsProblem(AuthProblem):
    id = "cors"
    name = "CORS Problem"
    description = "Incorrect CORS configuration"
    severity = Severity.MEDIUM

    @probe_guard("Error checking CORS")
    async def check(self) -> CheckResult:
        if is_local_origin(self.ctx.settings.app_origin):
            return CheckResult(has_problem=False)

        try:
            await self.ctx.provider.get_session()
        except AuthProviderError as exc:
            if "CORS" in exc.message:
                return CheckResult(has_problem=True, details="CORS error detected")
        return CheckResult(has_problem=False)

    @fix_guard("CORS must be configured on the server")
    async def fix(self) -> FixResult:
        return FixResult(
            success=False,
            message="CORS must be configured on the server",
            details=(
                f"Add {self.ctx.settings.app_origin} to the allowed origins "
                "of the identity provider"
            ),
        )


PROBLEM_TYPES: tuple[type[AuthProblem], ...] = (
    SessionExpiredProblem,
    InvalidTokenProblem,
    ConnectivityProblem,
    MissingProfileProblem,
    CorsProblem,
)


def build_registry(ctx: ProblemContext) -> tuple[AuthProblem, ...]:
    """Instantiate every known problem, in reporting order."""
    return tuple(problem_type(ctx) for problem_type in PROBLEM_TYPES)
