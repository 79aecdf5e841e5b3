"""Integration attempt models and tracker results."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from core.enums import ParseableEnum
from core.timeutil import utc_now


class IntegrationStatus(ParseableEnum):
    """Lifecycle of an attempt: Pending -> Sent -> Acked | Failed.

    Pending is not produced by the current send flow but counts as open.
    """
    PENDING = "Pending"
    SENT = "Sent"
    ACKED = "Acked"
    FAILED = "Failed"


OPEN_STATUSES = (IntegrationStatus.PENDING, IntegrationStatus.SENT)


class TargetSystem(ParseableEnum):
    """External systems an order can be delivered to."""
    ERP = "ERP"


class IntegrationAttempt(BaseModel):
    """One try at delivering an order to an external system."""
    id: Optional[int] = Field(default=None, description="Store-assigned id")
    order_id: int
    target_system: TargetSystem = TargetSystem.ERP
    status: IntegrationStatus = IntegrationStatus.PENDING
    request_payload: Optional[str] = Field(default=None, description="Order snapshot sent")
    response_payload: Optional[str] = Field(default=None, description="Send result or webhook body")
    attempts: int = 0
    last_attempt_at: datetime = Field(default_factory=utc_now)
    error_message: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


class SendToErpResult(BaseModel):
    """Outcome of a synchronous send."""
    integration_attempt_id: int
    order_id: int
    order_number: str
    success: bool
    status: IntegrationStatus
    message: Optional[str] = None
    erp_reference: Optional[str] = None
    sent_at: datetime


class WebhookResult(BaseModel):
    """Outcome of reconciling an ERP webhook. Never an error for the caller."""
    processed: bool
    message: str
    integration_attempt_id: Optional[int] = None
    order_number: Optional[str] = None

    @classmethod
    def not_processed(cls, message: str, order_number: Optional[str] = None) -> "WebhookResult":
        return cls(processed=False, message=message, order_number=order_number)


class ErpSendOutcome(BaseModel):
    """What an ERP sender reports back for one order."""
    success: bool
    message: Optional[str] = None
    erp_reference: Optional[str] = None


def money_text(value: Decimal) -> str:
    """Stable decimal rendering for payloads."""
    return format(value, "f")
