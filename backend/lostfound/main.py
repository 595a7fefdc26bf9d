from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from lostfound import config_store
from lostfound.db import init_db, ping, seed_retention_policies
from lostfound.errors import AdjudicationError
from lostfound.models import ClaimStatus, DataRetentionPolicy
from lostfound.routers import admin as admin_router
from lostfound.routers import claims as claims_router
from lostfound.routers import items as items_router
from lostfound.routers import users as users_router
from lostfound.schemas import AppStatus
from lostfound.settings import settings
from lostfound.sweeper import run_sweeper

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Abort requests that run longer than ``settings.request_timeout_s``."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(
                call_next(request),
                timeout=settings.request_timeout_s,
            )
        except asyncio.TimeoutError:
            return JSONResponse(
                status_code=504,
                content={"detail": f"Request timed out after {settings.request_timeout_s} seconds"},
            )


def _seed_policies() -> int:
    entries = config_store.load_retention_policies(settings.retention_policies_path)
    policies: list[DataRetentionPolicy] = []
    for entry in entries:
        try:
            policies.append(DataRetentionPolicy.model_validate(entry))
        except pydantic.ValidationError as e:
            logger.warning("Skipping invalid retention policy %r: %s", entry, e)
    return seed_retention_policies(settings.db_path, policies)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise storage, seed retention policies and start the sweeper."""
    try:
        logging.getLogger("lostfound").setLevel(settings.log_level.upper())
        logger.info("Starting lost-and-found claims API...")
        (settings.resolved_data_dir / "index").mkdir(parents=True, exist_ok=True)
        init_db(settings.db_path)
        seeded = _seed_policies()
        if seeded:
            logger.info("Seeded %d retention policies from %s", seeded, settings.retention_policies_path)

        app.state.sweeper_task = None
        app.state.sweeper_stop_event = None
        if settings.archival_start_on_startup:
            stop_event = asyncio.Event()
            app.state.sweeper_stop_event = stop_event
            app.state.sweeper_task = asyncio.create_task(
                run_sweeper(settings=settings, stop_event=stop_event)
            )
            logger.info("Archival sweeper started")
    except Exception as e:
        logger.error(f"FATAL: Startup failed: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down lost-and-found claims API...")
    try:
        stop_event = getattr(app.state, "sweeper_stop_event", None)
        task = getattr(app.state, "sweeper_task", None)
        if stop_event is not None:
            stop_event.set()
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Archival sweeper stopped")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


app = FastAPI(title="Lost and found claims", version="0.1.0", lifespan=lifespan)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later."},
    )


@app.exception_handler(AdjudicationError)
async def adjudication_error_handler(request: Request, exc: AdjudicationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Adjudication failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TimeoutMiddleware)

app.include_router(items_router.router)
app.include_router(claims_router.router)
app.include_router(users_router.router)
app.include_router(admin_router.router)


@app.get("/health")
@limiter.limit("60/minute")
def health_check(request: Request):
    """Liveness plus DB connectivity. Returns 503 when the database is unreachable."""
    if not ping(settings.db_path):
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "db": "unavailable"},
        )
    return {"status": "healthy", "db": "ok"}


@app.get("/api/status", response_model=AppStatus)
@limiter.limit("60/minute")
def api_status(request: Request) -> AppStatus:
    task = getattr(app.state, "sweeper_task", None)
    return AppStatus(
        version=str(app.version),
        db_ok=ping(settings.db_path),
        archival_sweeper_running=task is not None and not task.done(),
        archival_sweep_interval_s=settings.archival_sweep_interval_s,
        claim_statuses=list(ClaimStatus),
    )
