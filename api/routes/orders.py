"""Order endpoints.

CRUD-ish access to orders, status changes through the state machine, and the
synchronous ERP send.
"""

import time
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import ServiceContainer, get_request_correlation_id, get_services
from core.errors import IntegrationTransportError, OrderNotFound, UnknownEnumValue
from core.observability import metrics
from core.observability.logging import get_logger, log_integration_event, with_correlation
from models.api_responses import (
    CreateOrderRequest,
    IntegrationAttemptResponse,
    OrderResponse,
    PaginatedResponse,
    SendToErpResponse,
    UpdateStatusRequest,
    paginate_orders,
    problem_responses,
)


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=PaginatedResponse[OrderResponse], responses=problem_responses(400))
async def list_orders(
    status: Optional[str] = Query(None, description="Status name, case-insensitive"),
    customer_code: Optional[str] = Query(None),
    order_number: Optional[str] = Query(None, description="Substring of the order number"),
    from_date: Optional[date] = Query(None, description="Created on or after (UTC date)"),
    to_date: Optional[date] = Query(None, description="Created on or before (UTC date)"),
    page: int = Query(1),
    page_size: int = Query(10, description="Clamped to 1..100"),
    services: ServiceContainer = Depends(get_services),
) -> PaginatedResponse[OrderResponse]:
    """List orders, newest first. An unknown status filter answers 400."""
    try:
        result = services.order_service.list_orders(
            status=status,
            customer_code=customer_code,
            order_number=order_number,
            from_date=from_date,
            to_date=to_date,
            page=page,
            page_size=page_size,
        )
    except UnknownEnumValue as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return paginate_orders(result)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    responses=problem_responses(400, 409),
)
async def create_order(
    request: CreateOrderRequest,
    services: ServiceContainer = Depends(get_services),
    correlation_id: Optional[str] = Depends(get_request_correlation_id),
) -> OrderResponse:
    """Create a new order in status Created."""
    order = services.order_service.create_order(
        request.order_number,
        request.customer_code,
        [item.model_dump() for item in request.items],
        correlation_id=correlation_id,
    )
    metrics.increment(metrics.ORDERS_CREATED)
    with with_correlation(order_id=order.id, order_number=order.order_number):
        logger.info(
            "Order created",
            extra_fields={"total_amount": str(order.total_amount), "items": len(order.items)},
        )
    return OrderResponse.from_order(order)


@router.get("/{order_id}", response_model=OrderResponse, responses=problem_responses(404))
async def get_order(
    order_id: int,
    services: ServiceContainer = Depends(get_services),
) -> OrderResponse:
    """Get one order with its items and allowed transitions."""
    order = services.order_service.get_order(order_id)
    if order is None:
        raise OrderNotFound(order_id=order_id)
    return OrderResponse.from_order(order)


@router.post("/{order_id}/status", response_model=OrderResponse, responses=problem_responses(404, 409))
async def update_order_status(
    order_id: int,
    request: UpdateStatusRequest,
    services: ServiceContainer = Depends(get_services),
    correlation_id: Optional[str] = Depends(get_request_correlation_id),
) -> OrderResponse:
    """Move an order to a new status.

    Unknown status names and illegal transitions answer 409.
    """
    order = services.order_service.update_status(
        order_id, request.new_status, correlation_id=correlation_id
    )
    if order is None:
        raise OrderNotFound(order_id=order_id)

    metrics.increment(metrics.ORDERS_STATUS_CHANGED)
    with with_correlation(order_id=order.id, order_number=order.order_number):
        logger.info(f"Order status changed to {order.status.value}")
    return OrderResponse.from_order(order)


@router.get(
    "/{order_id}/integrations",
    response_model=List[IntegrationAttemptResponse],
    responses=problem_responses(404),
)
async def list_order_integrations(
    order_id: int,
    services: ServiceContainer = Depends(get_services),
) -> List[IntegrationAttemptResponse]:
    """All ERP delivery attempts of an order, most recent first."""
    if services.orders.get_by_id(order_id) is None:
        raise OrderNotFound(order_id=order_id)
    return [
        IntegrationAttemptResponse.from_attempt(attempt)
        for attempt in services.attempts.list_for_order(order_id)
    ]


@router.post(
    "/{order_id}/send-to-erp",
    response_model=SendToErpResponse,
    responses=problem_responses(404, 502),
)
async def send_order_to_erp(
    order_id: int,
    services: ServiceContainer = Depends(get_services),
    correlation_id: Optional[str] = Depends(get_request_correlation_id),
) -> SendToErpResponse:
    """Send an order to the ERP and record the attempt.

    An ERP business rejection is a normal 200 with ``success: false``;
    only an unreachable ERP answers 502.
    """
    started = time.perf_counter()
    with with_correlation(order_id=order_id):
        try:
            result = await services.tracker.send_order_to_erp(order_id, correlation_id)
        except IntegrationTransportError as exc:
            metrics.increment(metrics.ERP_TRANSPORT_ERROR)
            log_integration_event("ERP send failed in transport", error=str(exc))
            raise
        finally:
            metrics.record_processing_time(
                metrics.STAGE_ERP_SEND, (time.perf_counter() - started) * 1000
            )

        if result is None:
            raise OrderNotFound(order_id=order_id)

        metrics.increment(metrics.ERP_SENT)
        metrics.increment(metrics.ERP_ACKED if result.success else metrics.ERP_FAILED)
        log_integration_event(
            "ERP send completed",
            order_number=result.order_number,
            attempt_id=result.integration_attempt_id,
            status=result.status.value,
            erp_reference=result.erp_reference,
        )
    return SendToErpResponse.from_result(result)
