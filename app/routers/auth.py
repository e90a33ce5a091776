"""Auth health endpoints — sign-in, diagnose, fix, session helpers and confirmation helpers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from doctor import confirmation
from doctor.confirmation import ConfirmationStatus, EmailAuthProvider
from doctor.diagnostics.system import SystemDiagnostic, SystemReport
from doctor.engine.engine import AuthHealthEngine
from doctor.engine.models import ActionResult, DiagnosticReport, FixReport

logger = logging.getLogger("app.routers.auth")
router = APIRouter(prefix="/auth", tags=["auth-health"])


class EmailRequest(BaseModel):
    email: str
    redirect_to: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


def get_engine(request: Request) -> AuthHealthEngine:
    return request.app.state.engine


def get_system_diagnostic(request: Request) -> SystemDiagnostic:
    return request.app.state.system_diagnostic


def get_email_provider(request: Request) -> EmailAuthProvider:
    return request.app.state.identity


@router.post("/login", response_model=ActionResult)
async def login(body: LoginRequest, provider: EmailAuthProvider = Depends(get_email_provider)):
    return await confirmation.sign_in(provider, body.email, body.password)


@router.get("/diagnose", response_model=DiagnosticReport)
async def diagnose(engine: AuthHealthEngine = Depends(get_engine)):
    return await engine.diagnose()


@router.post("/fixes", response_model=FixReport)
async def apply_fixes(engine: AuthHealthEngine = Depends(get_engine)):
    report = await engine.apply_fixes()
    if report.summary.failed:
        logger.warning("%d of %d fixes failed", report.summary.failed, report.summary.total)
    return report


@router.get("/session/reauth")
async def needs_reauthentication(engine: AuthHealthEngine = Depends(get_engine)):
    return {"needs_reauthentication": await engine.needs_reauthentication()}


@router.post("/session/refresh", response_model=ActionResult)
async def force_session_refresh(engine: AuthHealthEngine = Depends(get_engine)):
    return await engine.force_session_refresh()


@router.post("/clear", response_model=ActionResult)
async def clear_auth_data(engine: AuthHealthEngine = Depends(get_engine)):
    return await engine.clear_auth_data()


@router.get("/system", response_model=SystemReport)
async def system_report(diagnostic: SystemDiagnostic = Depends(get_system_diagnostic)):
    return await diagnostic.run()


@router.post("/confirmation/resend", response_model=ActionResult)
async def resend_confirmation(
    body: EmailRequest, provider: EmailAuthProvider = Depends(get_email_provider)
):
    return await confirmation.resend_confirmation(provider, body.email)


@router.post("/confirmation/status", response_model=ConfirmationStatus)
async def confirmation_status(
    body: EmailRequest, provider: EmailAuthProvider = Depends(get_email_provider)
):
    return await confirmation.check_confirmation(provider, body.email)


@router.post("/password/reset", response_model=ActionResult)
async def password_reset(
    body: EmailRequest, provider: EmailAuthProvider = Depends(get_email_provider)
):
    return await confirmation.send_password_reset(provider, body.email, body.redirect_to)
