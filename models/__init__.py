"""Models Package.

HTTP request/response contracts for the Order Integration Service.
"""

from models.api_responses import (
    AuditEventResponse,
    CreateOrderRequest,
    ErpWebhookRequest,
    IntegrationAttemptResponse,
    OrderItemRequest,
    OrderItemResponse,
    OrderResponse,
    PaginatedResponse,
    ProblemDetails,
    SendToErpResponse,
    UpdateStatusRequest,
    WebhookResponse,
    paginate_orders,
    problem_responses,
)

__all__ = [
    "AuditEventResponse",
    "CreateOrderRequest",
    "ErpWebhookRequest",
    "IntegrationAttemptResponse",
    "OrderItemRequest",
    "OrderItemResponse",
    "OrderResponse",
    "PaginatedResponse",
    "ProblemDetails",
    "SendToErpResponse",
    "UpdateStatusRequest",
    "WebhookResponse",
    "paginate_orders",
    "problem_responses",
]
