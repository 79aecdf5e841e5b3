"""
API Request and Response Models for the Order Integration Service.

These Pydantic models define the HTTP data contracts. Shape validation
(required fields, lengths, ranges) happens here, before any request reaches
the order core.

Hierarchy:
- CreateOrderRequest / UpdateStatusRequest / ErpWebhookRequest: inbound bodies
- OrderResponse (+ OrderItemResponse): order detail with allowed transitions
- PaginatedResponse[T]: paging envelope for lists
- SendToErpResponse / WebhookResponse / IntegrationAttemptResponse
- AuditEventResponse
- ProblemDetails: error body for every non-2xx response (problem_responses
  documents it on the routes)
"""

from datetime import datetime
from decimal import Decimal
from http import HTTPStatus
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic.functional_serializers import PlainSerializer
from typing_extensions import Annotated

from core.audit.events import AuditEvent
from core.integration.models import IntegrationAttempt, SendToErpResult, WebhookResult
from core.orders.order import Order, OrderItem
from core.stores import Page


T = TypeVar("T")

# Money leaves the API as a JSON number
MoneyOut = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# =============================================================================
# REQUEST MODELS
# =============================================================================

class OrderItemRequest(BaseModel):
    """One line of a new order."""
    sku: str = Field(..., min_length=1, max_length=50, description="Product SKU")
    description: Optional[str] = Field(default=None, max_length=200)
    quantity: int = Field(..., ge=1, description="Units ordered")
    unit_price: Decimal = Field(..., ge=Decimal("0.01"), description="Price per unit")


class CreateOrderRequest(BaseModel):
    """Body of POST /api/orders."""
    order_number: str = Field(..., min_length=1, max_length=50, description="Unique order number")
    customer_code: str = Field(..., min_length=1, max_length=50, description="Customer code")
    items: List[OrderItemRequest] = Field(..., min_length=1, description="At least one item")


class UpdateStatusRequest(BaseModel):
    """Body of POST /api/orders/{id}/status."""
    new_status: str = Field(..., min_length=1, description="Target status name, e.g. 'Prepared'")


class ErpWebhookRequest(BaseModel):
    """Body of POST /api/webhooks/erp/order-ack."""
    order_number: str = Field(..., min_length=1, description="Order the ERP is answering for")
    success: bool = Field(..., description="Whether the ERP accepted the order")
    message: Optional[str] = None
    erp_reference: Optional[str] = None
    correlation_id: Optional[str] = None


# =============================================================================
# ORDER MODELS
# =============================================================================

class OrderItemResponse(BaseModel):
    """Order line with its derived line total."""
    id: Optional[int]
    sku: str
    description: Optional[str]
    quantity: int
    unit_price: MoneyOut
    line_total: MoneyOut

    @classmethod
    def from_item(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,
            sku=item.sku,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )


class OrderResponse(BaseModel):
    """Order detail."""
    id: int
    order_number: str
    customer_code: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime]
    total_amount: MoneyOut
    items: List[OrderItemResponse]
    allowed_transitions: List[str] = Field(
        default_factory=list, description="Statuses reachable from the current one"
    )

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_code=order.customer_code,
            status=order.status.value,
            created_at=order.created_at,
            updated_at=order.updated_at,
            total_amount=order.total_amount,
            items=[OrderItemResponse.from_item(item) for item in order.items],
            allowed_transitions=[s.value for s in order.allowed_transitions()],
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Paging envelope."""
    items: List[T]
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool


def paginate_orders(page: Page[Order]) -> PaginatedResponse[OrderResponse]:
    """Wrap a page of orders in the HTTP envelope."""
    return PaginatedResponse[OrderResponse](
        items=[OrderResponse.from_order(order) for order in page.items],
        page=page.page,
        page_size=page.page_size,
        total_count=page.total_count,
        total_pages=page.total_pages,
        has_previous_page=page.has_previous_page,
        has_next_page=page.has_next_page,
    )


# =============================================================================
# INTEGRATION MODELS
# =============================================================================

class SendToErpResponse(BaseModel):
    """Result of POST /api/orders/{id}/send-to-erp."""
    integration_attempt_id: int
    order_id: int
    order_number: str
    success: bool
    status: str
    message: Optional[str]
    erp_reference: Optional[str]
    sent_at: datetime

    @classmethod
    def from_result(cls, result: SendToErpResult) -> "SendToErpResponse":
        return cls(**result.model_dump(exclude={"status"}), status=result.status.value)


class WebhookResponse(BaseModel):
    """Result of a webhook delivery; always returned with 200."""
    processed: bool
    message: str
    integration_attempt_id: Optional[int] = None
    order_number: Optional[str] = None

    @classmethod
    def from_result(cls, result: WebhookResult) -> "WebhookResponse":
        return cls(**result.model_dump())


class IntegrationAttemptResponse(BaseModel):
    """One ERP delivery attempt."""
    id: int
    order_id: int
    target_system: str
    status: str
    attempts: int
    last_attempt_at: datetime
    is_open: bool = Field(..., description="Pending or Sent; a webhook can still resolve it")
    error_message: Optional[str]
    correlation_id: Optional[str]
    request_payload: Optional[str]
    response_payload: Optional[str]

    @classmethod
    def from_attempt(cls, attempt: IntegrationAttempt) -> "IntegrationAttemptResponse":
        return cls(
            id=attempt.id,
            order_id=attempt.order_id,
            target_system=attempt.target_system.value,
            status=attempt.status.value,
            attempts=attempt.attempts,
            last_attempt_at=attempt.last_attempt_at,
            is_open=attempt.is_open,
            error_message=attempt.error_message,
            correlation_id=attempt.correlation_id,
            request_payload=attempt.request_payload,
            response_payload=attempt.response_payload,
        )


# =============================================================================
# AUDIT MODELS
# =============================================================================

class AuditEventResponse(BaseModel):
    """One audit trail entry."""
    id: int
    entity_type: str
    entity_id: str
    event_type: str
    timestamp: datetime
    actor: Optional[str]
    data: Optional[str] = Field(default=None, description="Compact JSON payload")
    correlation_id: Optional[str]

    @classmethod
    def from_event(cls, event: AuditEvent) -> "AuditEventResponse":
        return cls(
            id=event.id,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            event_type=event.event_type.value,
            timestamp=event.timestamp,
            actor=event.actor,
            data=event.data,
            correlation_id=event.correlation_id,
        )


# =============================================================================
# ERROR MODEL
# =============================================================================

class ProblemDetails(BaseModel):
    """Error body (application/problem+json)."""
    type: str = "about:blank"
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    trace_id: Optional[str] = None


def problem_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI ``responses=`` entries for problem-details error bodies."""
    return {
        code: {"model": ProblemDetails, "description": HTTPStatus(code).phrase}
        for code in status_codes
    }
