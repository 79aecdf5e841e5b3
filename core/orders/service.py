"""Order application service.

Connects the aggregate to the order store and the audit trail: uniqueness
check before creation, status changes through the state machine, and an
audit event for each.
"""

from datetime import date
from typing import Iterable, Optional

from core.audit.events import AuditEventType, AuditRecorder
from core.errors import DuplicateOrderNumber
from core.integration.models import money_text
from core.orders.order import ItemInput, Order
from core.orders.status import OrderStatus
from core.stores import DEFAULT_PAGE_SIZE, OrderQuery, OrderStore, Page


class OrderService:
    """Create, read, list and transition orders."""

    def __init__(self, orders: OrderStore, audit: AuditRecorder):
        self._orders = orders
        self._audit = audit

    def create_order(
        self,
        order_number: str,
        customer_code: str,
        items: Iterable[ItemInput],
        correlation_id: Optional[str] = None,
    ) -> Order:
        """Create and persist a new order.

        Raises:
            DuplicateOrderNumber: The number is already taken.
            DomainValidationError: The aggregate rejected the input.
        """
        if self._orders.exists_by_order_number(order_number):
            raise DuplicateOrderNumber(order_number)

        order = self._orders.save(Order.create(order_number, customer_code, items))
        self._audit.record_order_event(
            order.id,
            AuditEventType.ORDER_CREATED,
            data={
                "order_number": order.order_number,
                "customer_code": order.customer_code,
                "total_amount": money_text(order.total_amount),
                "item_count": len(order.items),
            },
            correlation_id=correlation_id,
        )
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        return self._orders.get_by_id(order_id)

    def list_orders(
        self,
        status: Optional[str] = None,
        customer_code: Optional[str] = None,
        order_number: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Order]:
        """Filtered, newest-first page of orders.

        ``status`` is parsed case-insensitively; an unknown name raises
        UnknownEnumValue.
        """
        query = OrderQuery(
            status=OrderStatus.parse(status) if status else None,
            customer_code=customer_code or None,
            order_number=order_number or None,
            from_date=from_date,
            to_date=to_date,
            page=page,
            page_size=page_size,
        )
        return self._orders.query(query.normalized())

    def update_status(
        self,
        order_id: int,
        new_status: str,
        correlation_id: Optional[str] = None,
    ) -> Optional[Order]:
        """Apply a status change; None when the order does not exist.

        Raises:
            UnknownEnumValue: ``new_status`` is not a status name.
            InvalidTransition: The state machine rejects the move.
        """
        target = OrderStatus.parse(new_status)
        order = self._orders.get_by_id(order_id)
        if order is None:
            return None

        previous = order.status
        order.change_status(target)
        order = self._orders.save(order)
        self._audit.record_order_event(
            order.id,
            AuditEventType.STATUS_CHANGED,
            data={"from": previous.value, "to": target.value},
            correlation_id=correlation_id,
        )
        return order
