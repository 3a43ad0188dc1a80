"""
Wing Finder API — FastAPI application entry point.
Lifespan: create DB tables → verify connectivity → warm the items snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wingfinder.config import settings
from wingfinder.database import engine
from wingfinder.models import Base
from wingfinder.routers import admin, favorites, health, locations, ratings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.
    1. Create all tables (idempotent — IF NOT EXISTS).
    2. Verify DB connectivity.
    3. Load the static items snapshot into its cache.
    """
    logger.info("Starting Wing Finder API (env=%s)", settings.app_env)

    # Step 1: create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified.")

    # Step 2: connectivity check
    from wingfinder.database import check_db_connectivity
    ok = await check_db_connectivity()
    if not ok:
        logger.error("Database connectivity check FAILED at startup.")
    else:
        logger.info("Database connectivity verified.")

    # Step 3: warm snapshot
    from wingfinder.services.snapshot import load_snapshot
    records = await asyncio.to_thread(load_snapshot)
    logger.info("Items snapshot ready (%d records).", len(records))

    yield

    logger.info("Shutting down Wing Finder API.")
    await engine.dispose()


app = FastAPI(
    title="Wing Finder API",
    description="Locations, wings, hours, ratings and favorites for the wing finder map.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(locations.router)
app.include_router(ratings.router)
app.include_router(favorites.router)
app.include_router(admin.router)


# ── Global exception handler ─────────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a machine-readable error for any unhandled exception."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "WINGFINDER_UNAVAILABLE"},
    )
