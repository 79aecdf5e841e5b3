"""Audit trail endpoints (read-only)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import ServiceContainer, get_services
from core.audit.events import AuditEventType
from core.errors import UnknownEnumValue
from models.api_responses import AuditEventResponse, problem_responses


router = APIRouter()

MAX_LIMIT = 500


def clamp_limit(limit: int) -> int:
    return min(max(limit, 1), MAX_LIMIT)


@router.get("", response_model=List[AuditEventResponse], responses=problem_responses(400))
async def query_audit_events(
    entity_type: Optional[str] = Query(None, description="e.g. 'Order'"),
    entity_id: Optional[str] = Query(None),
    event_type: Optional[str] = Query(None, description="e.g. 'ErpAck', case-insensitive"),
    correlation_id: Optional[str] = Query(None),
    limit: int = Query(50, description="Clamped to 1..500"),
    services: ServiceContainer = Depends(get_services),
) -> List[AuditEventResponse]:
    """Filtered audit events, newest first."""
    parsed_type = None
    if event_type:
        try:
            parsed_type = AuditEventType.parse(event_type)
        except UnknownEnumValue as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    events = services.audit.query(
        entity_type=entity_type or None,
        entity_id=entity_id or None,
        event_type=parsed_type,
        correlation_id=correlation_id or None,
        limit=clamp_limit(limit),
    )
    return [AuditEventResponse.from_event(event) for event in events]


@router.get("/recent", response_model=List[AuditEventResponse])
async def recent_audit_events(
    limit: int = Query(100, description="Clamped to 1..500"),
    services: ServiceContainer = Depends(get_services),
) -> List[AuditEventResponse]:
    """Latest audit events across all entities."""
    events = services.audit.recent_events(limit=clamp_limit(limit))
    return [AuditEventResponse.from_event(event) for event in events]
