"""Standalone session helpers — reauthentication heuristic, forced refresh, credential wipe."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from doctor.engine.models import ActionResult
from doctor.provider.models import AuthProviderError, IdentityProvider
from doctor.provider.storage import KeyValueStorage

logger = logging.getLogger("doctor.engine.session")


async def needs_reauthentication(
    provider: IdentityProvider,
    window_seconds: int,
    clock: Callable[[], float] = time.time,
) -> bool:
    """True when there is no usable session or it expires within ``window_seconds``."""
    try:
        session = await provider.get_session()
    except Exception:
        logger.warning("Session fetch failed while checking reauthentication", exc_info=True)
        return True

    if session is None:
        return True
    if session.expires_at is not None:
        time_until_expiry = session.expires_at - int(clock())
        if time_until_expiry < window_seconds:
            return True
    return False


async def force_session_refresh(provider: IdentityProvider) -> ActionResult:
    try:
        session = await provider.refresh_session()
    except AuthProviderError as exc:
        logger.warning("Forced session refresh rejected: %s", exc.message)
        return ActionResult(success=False, message="Failed to refresh session")
    except Exception:
        logger.exception("Forced session refresh raised")
        return ActionResult(success=False, message="Error refreshing session")

    if session is None:
        return ActionResult(success=False, message="Session could not be refreshed")
    return ActionResult(success=True, message="Session refreshed successfully")


def _is_credential_key(key: str, markers: Iterable[str]) -> bool:
    return any(marker in key for marker in markers)


async def clear_auth_data(
    provider: IdentityProvider,
    storages: Iterable[KeyValueStorage],
    markers: Iterable[str],
) -> ActionResult:
    """Delete every stored credential key, then sign out remotely.

    The local wipe and the remote sign-out are independent: sign-out is
    attempted even when no key matched or the wipe failed. Any failure fails
    the whole operation without rolling back what was already removed.
    The session is read before the wipe, since the wipe deletes the
    provider's own stored copy and sign-out needs its tokens.
    """
    markers = tuple(markers)
    try:
        session = await provider.get_session()
    except Exception:
        logger.warning("Could not read the session before clearing auth data", exc_info=True)
        session = None

    wiped = True
    removed = 0
    try:
        for storage in storages:
            matching = [key for key in await storage.keys() if _is_credential_key(key, markers)]
            for key in matching:
                await storage.delete(key)
            removed += len(matching)
    except Exception:
        logger.exception("Clearing stored credentials failed after %d keys", removed)
        wiped = False

    try:
        await provider.sign_out(session)
    except Exception:
        logger.exception("Sign-out failed while clearing auth data")
        return ActionResult(success=False, message="Error clearing authentication data")

    if not wiped:
        return ActionResult(success=False, message="Error clearing authentication data")

    logger.info("Cleared %d stored credential keys and signed out", removed)
    return ActionResult(success=True, message="Authentication data cleared successfully")
