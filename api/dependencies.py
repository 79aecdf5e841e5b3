"""Service wiring for the API.

One ServiceContainer is built per app and stored on ``app.state``. Route
handlers get it through ``Depends(get_services)``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from connectors import ERPConnector, create_connector, erp_config_from_settings
from core.audit.events import AuditRecorder
from core.config import Settings
from core.integration.tracker import IntegrationTracker
from core.orders.service import OrderService
from storage.attempts import SQLiteIntegrationAttemptStore
from storage.audit import SQLiteAuditBackend
from storage.orders import SQLiteOrderStore


@dataclass
class ServiceContainer:
    """Everything a request handler needs."""
    settings: Settings
    orders: SQLiteOrderStore
    attempts: SQLiteIntegrationAttemptStore
    audit: AuditRecorder
    order_service: OrderService
    tracker: IntegrationTracker
    connector: ERPConnector


def build_services(settings: Settings, connector: Optional[ERPConnector] = None) -> ServiceContainer:
    """Create stores, services and the ERP connector for ``settings``.

    Args:
        settings: Service settings
        connector: Override the configured ERP connector (tests)
    """
    orders = SQLiteOrderStore(settings.db_path)
    attempts = SQLiteIntegrationAttemptStore(settings.db_path)
    audit = AuditRecorder(SQLiteAuditBackend(settings.db_path))
    connector = connector or create_connector(erp_config_from_settings(settings))

    return ServiceContainer(
        settings=settings,
        orders=orders,
        attempts=attempts,
        audit=audit,
        order_service=OrderService(orders, audit),
        tracker=IntegrationTracker(orders, attempts, audit, connector),
        connector=connector,
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_request_correlation_id(request: Request) -> Optional[str]:
    """Correlation id assigned by CorrelationIdMiddleware."""
    return getattr(request.state, "correlation_id", None)
