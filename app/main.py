"""Auth Doctor — FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from app.middleware import MetricsMiddleware
from app.routers import auth, health, metrics
from app.telemetry.logging import setup_logging
from app.telemetry.tracing import SERVICE_VERSION, setup_tracing
from doctor.config import settings
from doctor.diagnostics.system import SystemDiagnostic
from doctor.engine.engine import AuthHealthEngine
from doctor.problems.definitions import build_registry
from doctor.problems.models import ProblemContext
from doctor.provider.gotrue import GoTrueClient
from doctor.provider.profiles import ProfileStore
from doctor.provider.redis_client import close_redis, get_redis
from doctor.provider.storage import KeyValueStorage, MemoryStorage, RedisStorage

setup_tracing(otlp_endpoint=settings.otlp_endpoint)
logger = setup_logging(otlp_endpoint=settings.otlp_endpoint, level=settings.log_level)


async def _build_persistent_storage() -> KeyValueStorage:
    if not settings.use_redis_storage:
        logger.warning("Redis storage disabled, persisted credentials live in memory only")
        return MemoryStorage()

    r = await get_redis()
    await r.ping()
    logger.info("Redis connected: %s", settings.redis_url)
    return RedisStorage(r, settings.storage_namespace)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing Auth Doctor...")

    session_storage = MemoryStorage()
    persistent_storage = await _build_persistent_storage()

    identity = GoTrueClient(persistent_storage)
    profiles = ProfileStore(token_source=identity.current_access_token)

    ctx = ProblemContext(provider=identity, profiles=profiles, settings=settings)
    problems = build_registry(ctx)

    app.state.identity = identity
    app.state.engine = AuthHealthEngine(
        problems, identity, (session_storage, persistent_storage), settings
    )
    app.state.system_diagnostic = SystemDiagnostic(identity, identity, profiles, settings)

    logger.info(
        "Auth Doctor ready on %s:%d: %d problems registered, origin=%s",
        settings.host, settings.port, len(problems), settings.app_origin,
    )

    yield

    await identity.close()
    await profiles.close()
    if settings.use_redis_storage:
        await close_redis()
    logger.info("Auth Doctor shut down")


app = FastAPI(
    title="Auth Doctor",
    description="Diagnoses and repairs authentication problems against the identity provider",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(metrics.router)

FastAPIInstrumentor.instrument_app(app)
