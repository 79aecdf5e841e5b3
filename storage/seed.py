"""Sample data for development databases.

Orders are created through OrderService and walked through the state machine,
so the audit trail of a seeded database looks like real traffic.
"""

from decimal import Decimal
from typing import List

from core.orders.service import OrderService
from core.orders.status import OrderStatus
from core.observability.logging import get_logger
from storage.orders import SQLiteOrderStore


logger = get_logger(__name__)


SAMPLE_ORDERS = [
    {
        "order_number": "ORD-2026-0001",
        "customer_code": "CUST-001",
        "path": [],
        "items": [
            {"sku": "SKU-LAPTOP-001", "description": 'Laptop HP 15.6"', "quantity": 2, "unit_price": Decimal("899.99")},
            {"sku": "SKU-MOUSE-001", "description": "Wireless mouse", "quantity": 2, "unit_price": Decimal("29.99")},
        ],
    },
    {
        "order_number": "ORD-2026-0002",
        "customer_code": "CUST-002",
        "path": [OrderStatus.PREPARED],
        "items": [
            {"sku": "SKU-MONITOR-001", "description": 'Monitor 27" 4K', "quantity": 1, "unit_price": Decimal("449.99")},
            {"sku": "SKU-KEYBOARD-001", "description": "Mechanical keyboard", "quantity": 1, "unit_price": Decimal("149.99")},
            {"sku": "SKU-CABLE-HDMI", "description": "HDMI cable 2m", "quantity": 2, "unit_price": Decimal("15.99")},
        ],
    },
    {
        "order_number": "ORD-2026-0003",
        "customer_code": "CUST-001",
        "path": [OrderStatus.PREPARED, OrderStatus.DISPATCHED],
        "items": [
            {"sku": "SKU-PHONE-001", "description": "Android smartphone", "quantity": 1, "unit_price": Decimal("699.99")},
        ],
    },
]


def seed_sample_orders(store: SQLiteOrderStore, service: OrderService) -> List[str]:
    """Insert the sample orders when the orders table is empty.

    Returns:
        Order numbers that were created (empty if the database had data)
    """
    if store.count() > 0:
        logger.info("Database already contains orders; skipping seed")
        return []

    created = []
    for sample in SAMPLE_ORDERS:
        order = service.create_order(
            sample["order_number"],
            sample["customer_code"],
            sample["items"],
            correlation_id="seed",
        )
        for status in sample["path"]:
            service.update_status(order.id, status.value, correlation_id="seed")
        created.append(order.order_number)

    logger.info(f"Seeded {len(created)} sample orders")
    return created
