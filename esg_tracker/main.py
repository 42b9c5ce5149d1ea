from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

import esg_tracker.models  # noqa: F401
from esg_tracker.core.config import settings
from esg_tracker.core.database import async_session_factory, engine
from esg_tracker.core.errors import global_exception_handler, http_exception_handler
from esg_tracker.core.sentry import init_sentry
from esg_tracker.modules.responses.router import router as responses_router

# ── Sentry: initialise before the FastAPI app is created ─────────────────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    logger.info("Starting ESG tracker API", env=settings.APP_ENV)
    yield
    await engine.dispose()
    logger.info("Shutting down ESG tracker API")


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="ESG Tracker API",
    description="Yearly ESG metric responses with derived sustainability ratios.",
    version="0.1.0",
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


# ── Health check (root-level, not under /v1) ─────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Probe the database."""
    try:
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        database = {"status": "healthy"}
    except Exception as exc:  # noqa: BLE001
        logger.warning("health_check_database_failed", error=str(exc))
        database = {"status": "unhealthy", "error": type(exc).__name__}

    overall = "healthy" if database["status"] == "healthy" else "degraded"
    return {"status": overall, "service": "esg-tracker", "checks": {"database": database}}


# ── /v1 versioned router ──────────────────────────────────────────────────────

api_v1 = APIRouter(prefix="/v1")
api_v1.include_router(responses_router)

app.include_router(api_v1)
