"""Order aggregate.

Enforces creation and status-change invariants independently of storage:
an order has at least one item, every item has a positive quantity and unit
price, the total is always the sum of line totals, and the status only moves
through the state machine.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from core.errors import DomainValidationError
from core.orders.status import OrderStatus, allowed_transitions, validate_transition
from core.timeutil import utc_now


def _parse_decimal(value):
    """Accept Decimal, int, float or numeric strings for money fields."""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        return Decimal(value.strip())
    return value


Money = Annotated[Decimal, BeforeValidator(_parse_decimal)]


class OrderItem(BaseModel):
    """A line of an order. Owned by its order."""
    id: Optional[int] = Field(default=None, description="Store-assigned id")
    sku: str = Field(..., description="Product SKU")
    description: Optional[str] = Field(default=None)
    quantity: int = Field(..., description="Units ordered (> 0)")
    unit_price: Money = Field(..., description="Price per unit (> 0)")

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


ItemInput = Union[OrderItem, Mapping[str, Any]]


class Order(BaseModel):
    """Order aggregate root."""
    id: Optional[int] = Field(default=None, description="Store-assigned numeric id")
    order_number: str = Field(..., description="Unique human-readable order number")
    customer_code: str
    status: OrderStatus = OrderStatus.CREATED
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    total_amount: Money = Decimal("0")
    items: List[OrderItem] = Field(default_factory=list)

    # =========================================================================
    # Factory
    # =========================================================================

    @classmethod
    def create(
        cls,
        order_number: str,
        customer_code: str,
        items: Optional[Iterable[ItemInput]],
    ) -> "Order":
        """Build a new order in status Created.

        Order number uniqueness is checked by the caller against the store
        before calling this.

        Raises:
            DomainValidationError: Blank identifiers, no items, or an item
                with a non-positive quantity or unit price.
        """
        if not order_number or not order_number.strip():
            raise DomainValidationError("Order number is required")
        if not customer_code or not customer_code.strip():
            raise DomainValidationError("Customer code is required")

        parsed = [
            item if isinstance(item, OrderItem) else OrderItem.model_validate(item)
            for item in (items or [])
        ]
        if not parsed:
            raise DomainValidationError("An order requires at least one item")
        for item in parsed:
            if item.quantity <= 0:
                raise DomainValidationError(
                    f"Quantity for SKU '{item.sku}' must be greater than zero"
                )
            if item.unit_price <= 0:
                raise DomainValidationError(
                    f"Unit price for SKU '{item.sku}' must be greater than zero"
                )

        order = cls(
            order_number=order_number.strip(),
            customer_code=customer_code.strip(),
            status=OrderStatus.CREATED,
            created_at=utc_now(),
            items=parsed,
        )
        order.recalculate_total()
        return order

    # =========================================================================
    # Behaviour
    # =========================================================================

    def change_status(self, new_status: OrderStatus) -> None:
        """Move to ``new_status`` if the state machine allows it.

        Leaves the order untouched and raises InvalidTransition otherwise.
        """
        validate_transition(self.status, new_status)
        now = utc_now()
        # Keep updated_at strictly increasing even within one clock tick.
        if self.updated_at is not None and now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.status = new_status
        self.updated_at = now

    def recalculate_total(self) -> Decimal:
        """Recompute the total from the items; no items means zero."""
        self.total_amount = sum(
            (item.line_total for item in (self.items or [])),
            Decimal("0"),
        )
        return self.total_amount

    def allowed_transitions(self) -> List[OrderStatus]:
        return list(allowed_transitions(self.status))
