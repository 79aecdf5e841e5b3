"""Order lifecycle: state machine, aggregate and application service."""

from core.orders.order import Order, OrderItem
from core.orders.service import OrderService
from core.orders.status import (
    ORDER_STATUS_TRANSITIONS,
    OrderStatus,
    allowed_transitions,
    is_terminal,
    is_valid_transition,
    validate_transition,
)

__all__ = [
    "Order",
    "OrderItem",
    "OrderService",
    "ORDER_STATUS_TRANSITIONS",
    "OrderStatus",
    "allowed_transitions",
    "is_terminal",
    "is_valid_transition",
    "validate_transition",
]
