"""FastAPI server for the Order Integration Service.

Main entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import build_services
from api.errors import register_exception_handlers
from api.middleware import ApiKeyMiddleware, CorrelationIdMiddleware
from api.routes import (
    health,
    orders,
    webhooks,
    audit,
)
from connectors import ERPConnector
from core import __version__
from core.config import Settings
from core.observability.logging import configure_logging, get_logger
from storage.db import init_db
from storage.seed import seed_sample_orders


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    services = app.state.services

    # Startup
    init_db(services.settings.db_path)
    if services.settings.seed_data:
        seed_sample_orders(services.orders, services.order_service)
    await services.connector.connect()
    logger.info(
        "Order Integration API starting up",
        extra_fields={"erp_connector": services.connector.get_connector_name()},
    )

    yield

    # Shutdown
    await services.connector.disconnect()
    logger.info("Order Integration API shutting down")


def create_app(
    settings: Optional[Settings] = None,
    connector: Optional[ERPConnector] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted
        connector: Override the configured ERP connector
    """
    settings = settings or Settings.from_env()
    configure_logging(
        level=getattr(logging, settings.log_level, logging.INFO),
        json_format=settings.log_json,
    )

    app = FastAPI(
        title="Order Integration API",
        description="Order management with a validated status workflow, ERP hand-off and audit trail",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.services = build_services(settings, connector)

    register_exception_handlers(app, debug=settings.debug)

    # Last added runs first: CORS -> correlation id -> API key
    if settings.require_api_key:
        app.add_middleware(ApiKeyMiddleware, api_key=settings.api_key)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
    app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
    app.include_router(audit.router, prefix="/api/audit", tags=["Audit"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:create_app", factory=True, host="0.0.0.0", port=Settings.from_env().port)
