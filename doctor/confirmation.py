"""Sign-in, email confirmation and password recovery helpers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from doctor.engine.models import ActionResult
from doctor.provider.models import AuthProviderError, Session

logger = logging.getLogger("doctor.confirmation")

# Sign-in with this password can only fail; the error tells us whether the email is confirmed.
_PROBE_PASSWORD = "temp-check-password"


class EmailAuthProvider(Protocol):
    async def resend(self, email: str, type: str = "signup") -> None: ...

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None: ...

    async def sign_in_with_password(
        self, email: str, password: str, persist: bool = True
    ) -> Session | None: ...


class ConfirmationState(str, Enum):
    CONFIRMED = "confirmed"
    UNCONFIRMED = "unconfirmed"
    UNKNOWN = "unknown"


class ConfirmationStatus(BaseModel):
    state: ConfirmationState
    message: str


async def resend_confirmation(provider: EmailAuthProvider, email: str) -> ActionResult:
    email = email.strip()
    if not email:
        return ActionResult(success=False, message="Enter a valid email")

    try:
        await provider.resend(email, type="signup")
    except AuthProviderError as exc:
        logger.warning("Resending confirmation to %s failed: %s", email, exc.message)
        if "already confirmed" in exc.message:
            return ActionResult(success=True, message="This email is already confirmed - you can log in")
        if "not found" in exc.message:
            return ActionResult(success=False, message="Email not found - check that it is correct")
        return ActionResult(success=False, message="Error resending email - try again")
    return ActionResult(success=True, message="Confirmation email sent - check your inbox")


async def check_confirmation(provider: EmailAuthProvider, email: str) -> ConfirmationStatus:
    email = email.strip()
    if not email:
        return ConfirmationStatus(state=ConfirmationState.UNKNOWN, message="Enter a valid email")

    try:
        await provider.sign_in_with_password(email, _PROBE_PASSWORD, persist=False)
    except AuthProviderError as exc:
        if "Email not confirmed" in exc.message:
            return ConfirmationStatus(
                state=ConfirmationState.UNCONFIRMED,
                message="Email not confirmed yet - check your inbox",
            )
        if "Invalid login credentials" in exc.message:
            return ConfirmationStatus(
                state=ConfirmationState.CONFIRMED,
                message="Email confirmed - you can log in now",
            )
        return ConfirmationStatus(
            state=ConfirmationState.UNKNOWN,
            message=f"Error checking confirmation: {exc.message}",
        )
    return ConfirmationStatus(state=ConfirmationState.CONFIRMED, message="Email confirmed")


async def send_password_reset(
    provider: EmailAuthProvider, email: str, redirect_to: str | None = None
) -> ActionResult:
    email = email.strip()
    if not email:
        return ActionResult(success=False, message="Enter a valid email")

    try:
        await provider.reset_password_for_email(email, redirect_to=redirect_to)
    except AuthProviderError as exc:
        logger.warning("Password reset for %s failed: %s", email, exc.message)
        return ActionResult(success=False, message="Error sending password reset email")
    return ActionResult(success=True, message="Password reset email sent")


async def sign_in(provider: EmailAuthProvider, email: str, password: str) -> ActionResult:
    """Password sign-in that stores the new session for the engine to work on."""
    email = email.strip()
    if not email or not password.strip():
        return ActionResult(success=False, message="Fill in email and password")

    try:
        session = await provider.sign_in_with_password(email, password)
    except AuthProviderError as exc:
        logger.warning("Sign-in for %s failed: %s", email, exc.message)
        if "Email not confirmed" in exc.message:
            return ActionResult(
                success=False,
                message="Email not confirmed - resend the confirmation or check your inbox",
            )
        if "Invalid login credentials" in exc.message:
            return ActionResult(success=False, message="Invalid email or password")
        if "Too many requests" in exc.message:
            return ActionResult(success=False, message="Too many attempts - wait and try again")
        return ActionResult(success=False, message=f"Sign-in failed: {exc.message}")

    if session is None:
        return ActionResult(success=False, message="Sign-in returned no session")
    logger.info("Signed in %s", email)
    return ActionResult(success=True, message="Signed in successfully")
