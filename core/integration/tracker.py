"""Integration attempt tracker.

Drives the hand-off of an order to the ERP and reconciles asynchronous ERP
webhooks against the attempts that are still open.

Send flow:
    1. load the order (absent -> None, no attempt written)
    2. snapshot it as the request payload
    3. persist a Sent attempt and an ErpSent audit event
    4. call the ERP sender
    5. Acked + ErpAck, or Failed + ErpFail
    6. persist the attempt and return a summary

Webhook flow picks the most recently attempted Pending/Sent attempt of the
order. Webhooks carry no attempt id, so a late webhook for an attempt that a
newer attempt has superseded resolves the newer one, and a webhook arriving
after every attempt is resolved is ignored.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Protocol

from core.audit.events import AuditEventType, AuditRecorder
from core.errors import IntegrationTransportError
from core.integration.models import (
    ErpSendOutcome,
    IntegrationAttempt,
    IntegrationStatus,
    SendToErpResult,
    TargetSystem,
    WebhookResult,
    money_text,
)
from core.orders.order import Order
from core.stores import IntegrationAttemptStore, OrderStore
from core.timeutil import to_iso, utc_now


WEBHOOK_SOURCE = "Webhook"

MESSAGE_WEBHOOK_ACKED = "ERP confirmation processed"
MESSAGE_WEBHOOK_FAILED = "ERP rejection recorded"
DEFAULT_FAILURE_MESSAGE = "ERP reported a failure without a message"


class ErpSender(Protocol):
    """Anything that can deliver an order payload to the ERP.

    Business failures come back as ``success=False``; only transport
    problems raise.
    """

    async def send_order(self, order_number: str, payload: str) -> Any:
        ...


def build_order_payload(order: Order) -> str:
    """Serialize the order snapshot sent to the ERP."""
    snapshot = {
        "order_number": order.order_number,
        "customer_code": order.customer_code,
        "status": order.status.value,
        "total_amount": money_text(order.total_amount),
        "created_at": to_iso(order.created_at),
        "items": [
            {
                "sku": item.sku,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": money_text(item.unit_price),
                "line_total": money_text(item.line_total),
            }
            for item in order.items
        ],
    }
    return json.dumps(snapshot, indent=2)


class IntegrationTracker:
    """Records ERP send attempts and reconciles their confirmations."""

    def __init__(
        self,
        orders: OrderStore,
        attempts: IntegrationAttemptStore,
        audit: AuditRecorder,
        sender: ErpSender,
    ):
        self._orders = orders
        self._attempts = attempts
        self._audit = audit
        self._sender = sender

    # =========================================================================
    # Send
    # =========================================================================

    async def send_order_to_erp(
        self,
        order_id: int,
        correlation_id: Optional[str] = None,
    ) -> Optional[SendToErpResult]:
        """Send an order to the ERP and record the attempt.

        Returns:
            Summary of the attempt, or None when the order does not exist.

        Raises:
            IntegrationTransportError: The sender could not be reached. The
                attempt stays in Sent.
        """
        order = self._orders.get_by_id(order_id)
        if order is None:
            return None

        payload = build_order_payload(order)
        attempt = self._attempts.save(IntegrationAttempt(
            order_id=order.id,
            target_system=TargetSystem.ERP,
            status=IntegrationStatus.SENT,
            request_payload=payload,
            attempts=1,
            last_attempt_at=utc_now(),
            correlation_id=correlation_id,
        ))
        self._audit.record_order_event(
            order.id,
            AuditEventType.ERP_SENT,
            data={"attempt_id": attempt.id, "order_number": order.order_number},
            correlation_id=correlation_id,
        )

        outcome = await self._call_sender(order.order_number, payload)

        self._resolve(attempt, order, outcome, correlation_id=correlation_id)
        attempt = self._attempts.save(attempt)

        return SendToErpResult(
            integration_attempt_id=attempt.id,
            order_id=order.id,
            order_number=order.order_number,
            success=outcome.success,
            status=attempt.status,
            message=outcome.message,
            erp_reference=outcome.erp_reference if outcome.success else None,
            sent_at=attempt.last_attempt_at,
        )

    async def _call_sender(self, order_number: str, payload: str) -> ErpSendOutcome:
        try:
            result = await self._sender.send_order(order_number, payload)
        except IntegrationTransportError:
            raise
        except (OSError, asyncio.TimeoutError) as exc:
            raise IntegrationTransportError(
                f"ERP transport failure for order '{order_number}': {exc}",
                order_number=order_number,
            ) from exc
        return ErpSendOutcome(
            success=bool(getattr(result, "success", False)),
            message=getattr(result, "message", None),
            erp_reference=getattr(result, "erp_reference", None),
        )

    # =========================================================================
    # Webhook reconciliation
    # =========================================================================

    def process_erp_webhook(
        self,
        order_number: str,
        success: bool,
        message: Optional[str] = None,
        erp_reference: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> WebhookResult:
        """Apply an asynchronous ERP confirmation to the latest open attempt.

        Unknown orders and orders without an open attempt yield a
        not-processed result; nothing is written in that case.
        """
        order = self._orders.get_by_order_number(order_number)
        if order is None:
            return WebhookResult.not_processed(
                f"Order '{order_number}' not found", order_number=order_number
            )

        open_attempts = self._attempts.find_open_attempts_for_order(order.id, TargetSystem.ERP)
        if not open_attempts:
            return WebhookResult.not_processed(
                f"No pending integration attempt found for order '{order_number}'",
                order_number=order_number,
            )

        attempt = open_attempts[0]
        attempt.last_attempt_at = utc_now()
        attempt.correlation_id = correlation_id or attempt.correlation_id

        outcome = ErpSendOutcome(success=success, message=message, erp_reference=erp_reference)
        self._resolve(
            attempt,
            order,
            outcome,
            correlation_id=attempt.correlation_id,
            source=WEBHOOK_SOURCE,
        )
        attempt = self._attempts.save(attempt)

        return WebhookResult(
            processed=True,
            message=MESSAGE_WEBHOOK_ACKED if success else MESSAGE_WEBHOOK_FAILED,
            integration_attempt_id=attempt.id,
            order_number=order.order_number,
        )

    # =========================================================================
    # Shared outcome handling
    # =========================================================================

    def _resolve(
        self,
        attempt: IntegrationAttempt,
        order: Order,
        outcome: ErpSendOutcome,
        correlation_id: Optional[str],
        source: Optional[str] = None,
    ) -> None:
        """Mark the attempt Acked or Failed and append the matching audit event."""
        now = to_iso(utc_now())
        response: Dict[str, Any] = {"success": outcome.success, "message": outcome.message}
        audit_data: Dict[str, Any] = {"attempt_id": attempt.id, "message": outcome.message}

        if outcome.success:
            attempt.status = IntegrationStatus.ACKED
            attempt.error_message = None
            response["erp_reference"] = outcome.erp_reference
            response["acked_at"] = now
            audit_data["erp_reference"] = outcome.erp_reference
            event_type = AuditEventType.ERP_ACK
        else:
            attempt.status = IntegrationStatus.FAILED
            attempt.error_message = outcome.message or DEFAULT_FAILURE_MESSAGE
            response["failed_at"] = now
            event_type = AuditEventType.ERP_FAIL

        if source:
            response["source"] = source
            audit_data["source"] = source

        attempt.response_payload = json.dumps(response, indent=2)
        self._audit.record_order_event(
            order.id,
            event_type,
            data=audit_data,
            correlation_id=correlation_id,
        )
