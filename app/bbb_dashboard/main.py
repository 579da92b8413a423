"""
BBB Dashboard -- FastAPI application.

Provides REST endpoints that aggregate booking, billing and backlog records
into headline KPIs, a 12-month trend, region / product distributions and a
region -> customer drill-down, filtered by date range, region, product and
customer.

Records are read either from a workbook loaded at startup or from a
Databricks SQL warehouse (``DATA_BACKEND``).  For local development against
the warehouse, set DATABRICKS_HOST and DATABRICKS_TOKEN.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bbb_dashboard.dependencies import get_record_source
from bbb_dashboard.errors import DashboardError
from bbb_dashboard.models import HealthResponse
from bbb_dashboard.routers import dashboard
from bbb_dashboard.services.record_source import RecordSource
from bbb_dashboard.utils.config import APP_TITLE, APP_VERSION, DATA_BACKEND, LOG_LEVEL

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown hooks."""
    logger.info("Starting %s v%s (backend=%s)", APP_TITLE, APP_VERSION, DATA_BACKEND)
    yield
    logger.info("Shutting down %s", APP_TITLE)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS -- the dashboard frontend is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard.router)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Map record-source failures raised outside a route body to HTTP 500."""
    logger.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": {"message": "Failed to retrieve data", "error": str(exc)}},
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    source: RecordSource = Depends(get_record_source),
) -> HealthResponse:
    """Report whether the record source is reachable."""
    connected = source.ping()
    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=APP_VERSION,
        backend=source.name,
        connected=connected,
    )
