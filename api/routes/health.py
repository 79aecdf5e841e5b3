"""Health check and metrics endpoints."""

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from api.dependencies import ServiceContainer, get_services
from core import __version__
from core.observability.metrics import get_metrics
from storage.db import connect


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


def _storage_status(services: ServiceContainer) -> str:
    try:
        with connect(services.settings.db_path) as conn:
            conn.execute("SELECT 1").fetchone()
        return "up"
    except sqlite3.Error:
        return "down"


@router.get("/health", response_model=HealthResponse)
async def health_check(services: ServiceContainer = Depends(get_services)) -> HealthResponse:
    """Health check endpoint."""
    storage = _storage_status(services)
    return HealthResponse(
        status="healthy" if storage == "up" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        services={
            "api": "up",
            "storage": storage,
            "erp": services.connector.get_connector_name(),
        }
    )


@router.get("/ready")
async def readiness_check(
    response: Response,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, str]:
    """Readiness probe: the database must be reachable."""
    if _storage_status(services) != "up":
        response.status_code = 503
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}


@router.get("/metrics")
async def metrics_summary() -> Dict[str, Any]:
    """In-process counters and timings."""
    return get_metrics().get_summary()


@router.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    """Send browsers to the interactive docs."""
    return RedirectResponse(url="/docs")
