"""ERP integration: attempt models and the attempt tracker.

The tracker lives in core.integration.tracker and is imported from there.
"""

from core.integration.models import (
    ErpSendOutcome,
    IntegrationAttempt,
    IntegrationStatus,
    OPEN_STATUSES,
    SendToErpResult,
    TargetSystem,
    WebhookResult,
)

__all__ = [
    "ErpSendOutcome",
    "IntegrationAttempt",
    "IntegrationStatus",
    "OPEN_STATUSES",
    "SendToErpResult",
    "TargetSystem",
    "WebhookResult",
]
