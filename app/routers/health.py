"""Liveness endpoint for the doctor service itself."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.telemetry.tracing import SERVICE_VERSION

router = APIRouter()

_start_time = datetime.now(timezone.utc)


@router.get("/health")
async def health(request: Request):
    uptime = (datetime.now(timezone.utc) - _start_time).total_seconds()
    return {
        "status": "healthy",
        "uptime_seconds": round(uptime, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": SERVICE_VERSION,
        "engine_ready": getattr(request.app.state, "engine", None) is not None,
    }
