"""Order status state machine.

The transition table is the single place that decides how an order moves
through its lifecycle. Terminal states are present with an empty allowed
set, so "terminal" and "unknown" remain distinguishable.

    Created    -> Prepared, Cancelled
    Prepared   -> Dispatched, Cancelled
    Dispatched -> Delivered, Cancelled
    Delivered  -> (terminal)
    Cancelled  -> (terminal)
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from core.enums import ParseableEnum
from core.errors import InvalidTransition


class OrderStatus(ParseableEnum):
    """Lifecycle states of an order."""
    CREATED = "Created"
    PREPARED = "Prepared"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


ORDER_STATUS_TRANSITIONS: Mapping[OrderStatus, Tuple[OrderStatus, ...]] = MappingProxyType({
    OrderStatus.CREATED: (OrderStatus.PREPARED, OrderStatus.CANCELLED),
    OrderStatus.PREPARED: (OrderStatus.DISPATCHED, OrderStatus.CANCELLED),
    OrderStatus.DISPATCHED: (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
})


def is_valid_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Check whether ``current -> target`` is a legal move.

    Self-transitions are never legal.
    """
    if current == target:
        return False
    allowed = ORDER_STATUS_TRANSITIONS.get(current)
    if allowed is None:
        return False
    return target in allowed


def allowed_transitions(current: OrderStatus) -> Tuple[OrderStatus, ...]:
    """States reachable from ``current``, in table order.

    Empty for terminal states and for states missing from the table.
    """
    return ORDER_STATUS_TRANSITIONS.get(current, ())


def is_terminal(status: OrderStatus) -> bool:
    """True when ``status`` is in the table with no outgoing transitions."""
    return status in ORDER_STATUS_TRANSITIONS and not ORDER_STATUS_TRANSITIONS[status]


def validate_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise if ``current -> target`` is not allowed.

    Raises:
        InvalidTransition: Carries current, target and the allowed set.
    """
    if not is_valid_transition(current, target):
        raise InvalidTransition(current, target, allowed_transitions(current))
