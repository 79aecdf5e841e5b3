"""Typed errors raised by the order core.

The HTTP layer maps these to status codes (see api/errors.py). ERP business
failures are not errors; they come back as a Failed integration attempt.
"""

from typing import Any, Iterable, Optional, Sequence


class OrderError(Exception):
    """Base class for all order-domain errors."""


class DomainValidationError(OrderError, ValueError):
    """Input violates an aggregate invariant (e.g. no items, zero quantity)."""


class UnknownEnumValue(OrderError, ValueError):
    """A status or event name from outside could not be parsed."""

    def __init__(self, enum_name: str, value: Any, valid: Iterable[str]):
        self.enum_name = enum_name
        self.value = value
        self.valid = list(valid)
        super().__init__(
            f"Unknown {enum_name} '{value}'. Valid values: {', '.join(self.valid)}"
        )


class InvalidTransition(OrderError):
    """Attempted status change that the state machine does not allow."""

    def __init__(self, current: Any, target: Any, allowed: Sequence[Any]):
        self.current = current
        self.target = target
        self.allowed = tuple(allowed)
        allowed_text = (
            ", ".join(_enum_text(s) for s in self.allowed)
            if self.allowed else "none (terminal)"
        )
        super().__init__(
            f"Invalid status transition from '{_enum_text(current)}' to "
            f"'{_enum_text(target)}'. Allowed transitions: {allowed_text}"
        )


class DuplicateOrderNumber(OrderError):
    """An order with the same order number already exists."""

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"An order with number '{order_number}' already exists")


class OrderNotFound(OrderError):
    """No order matches the given id or order number."""

    def __init__(self, order_id: Optional[int] = None, order_number: Optional[str] = None):
        self.order_id = order_id
        self.order_number = order_number
        key = f"'{order_number}'" if order_number is not None else f"with id {order_id}"
        super().__init__(f"Order {key} not found")


class IntegrationTransportError(OrderError):
    """The ERP sender could not be reached or did not answer in time."""

    def __init__(self, message: str, order_number: Optional[str] = None):
        self.order_number = order_number
        super().__init__(message)


def _enum_text(value: Any) -> str:
    return getattr(value, "value", str(value))
