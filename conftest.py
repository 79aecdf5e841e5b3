"""Pytest fixtures shared by the test modules."""

from decimal import Decimal
from typing import List

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from connectors.erp_base import ERPConfig, ERPConnector, ERPSendResult
from core.audit.events import AuditRecorder
from core.config import Settings
from core.errors import IntegrationTransportError
from core.observability.metrics import get_metrics
from core.orders.service import OrderService
from storage.attempts import SQLiteIntegrationAttemptStore
from storage.audit import SQLiteAuditBackend
from storage.db import init_db
from storage.orders import SQLiteOrderStore


TEST_API_KEY = "test-api-key"


class ScriptedERPConnector(ERPConnector):
    """ERP stand-in whose answer depends on the order number.

    - contains "DOWN": raises IntegrationTransportError
    - contains "FAIL": business rejection
    - otherwise: accepted with reference ERP-TEST-00001
    """

    def __init__(self):
        super().__init__(ERPConfig(connector_type="scripted"))
        self.sent: List[str] = []

    async def send_order(self, order_number: str, payload: str) -> ERPSendResult:
        self.sent.append(order_number)
        if "DOWN" in order_number:
            raise IntegrationTransportError("ERP unreachable", order_number=order_number)
        if "FAIL" in order_number:
            return ERPSendResult(success=False, message="Rejected by ERP validation")
        return ERPSendResult(success=True, message="Order received by ERP.", erp_reference="ERP-TEST-00001")


def item(sku: str = "SKU-1", quantity: int = 1, unit_price: str = "10.00", description: str = None) -> dict:
    return {
        "sku": sku,
        "description": description,
        "quantity": quantity,
        "unit_price": Decimal(unit_price),
    }


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "orders.db"
    init_db(path)
    return path


@pytest.fixture
def order_store(db_path) -> SQLiteOrderStore:
    return SQLiteOrderStore(db_path)


@pytest.fixture
def attempt_store(db_path) -> SQLiteIntegrationAttemptStore:
    return SQLiteIntegrationAttemptStore(db_path)


@pytest.fixture
def audit(db_path) -> AuditRecorder:
    return AuditRecorder(SQLiteAuditBackend(db_path))


@pytest.fixture
def order_service(order_store, audit) -> OrderService:
    return OrderService(order_store, audit)


@pytest.fixture(autouse=True)
def reset_metrics():
    get_metrics().reset()
    yield
    get_metrics().reset()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        db_path=tmp_path / "api.db",
        api_key=TEST_API_KEY,
        require_api_key=True,
    )


@pytest.fixture
def erp_connector() -> ScriptedERPConnector:
    return ScriptedERPConnector()


@pytest.fixture
def client(settings, erp_connector):
    app = create_app(settings, connector=erp_connector)
    with TestClient(app, headers={"X-API-KEY": TEST_API_KEY}) as test_client:
        yield test_client
