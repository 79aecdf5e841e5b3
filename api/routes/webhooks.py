"""Inbound ERP webhooks.

The ERP cannot react sensibly to an error, so every well-formed delivery is
answered with 200 and a ``processed`` flag.
"""

from fastapi import APIRouter, Depends

from api.dependencies import ServiceContainer, get_services
from core.observability import metrics
from core.observability.logging import log_integration_event, with_correlation
from models.api_responses import ErpWebhookRequest, WebhookResponse, problem_responses


router = APIRouter()


@router.post("/erp/order-ack", response_model=WebhookResponse, responses=problem_responses(400))
async def erp_order_ack(
    request: ErpWebhookRequest,
    services: ServiceContainer = Depends(get_services),
) -> WebhookResponse:
    """Reconcile an ERP confirmation or rejection with the open attempt.

    Only a correlation id sent in the body replaces the attempt's own. The
    X-Correlation-Id of the webhook request is bound to the logs by the
    middleware and never written to the attempt.
    """
    with with_correlation(order_number=request.order_number):
        result = services.tracker.process_erp_webhook(
            request.order_number,
            request.success,
            message=request.message,
            erp_reference=request.erp_reference,
            correlation_id=request.correlation_id,
        )

        if result.processed:
            metrics.increment(metrics.WEBHOOKS_PROCESSED)
            metrics.increment(metrics.ERP_ACKED if request.success else metrics.ERP_FAILED)
            log_integration_event(
                "ERP webhook processed",
                attempt_id=result.integration_attempt_id,
                success=request.success,
                erp_correlation_id=request.correlation_id,
            )
        else:
            metrics.increment(metrics.WEBHOOKS_IGNORED)
            log_integration_event("ERP webhook not processed", reason=result.message)

    return WebhookResponse.from_result(result)
