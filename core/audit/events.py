"""Audit trail recording.

Append-only log of domain events tied to entities by (type, id). Events are
never updated or deleted once written. Persistence is delegated to an
AuditBackend; the SQLite backend lives in storage/audit.py.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from core.enums import ParseableEnum
from core.timeutil import utc_now


ORDER_ENTITY = "Order"


class AuditEventType(ParseableEnum):
    """Kinds of domain events recorded in the audit trail."""
    ORDER_CREATED = "OrderCreated"
    STATUS_CHANGED = "StatusChanged"
    ERP_SENT = "ErpSent"
    ERP_ACK = "ErpAck"
    ERP_FAIL = "ErpFail"


class AuditEvent(BaseModel):
    """A single immutable audit record."""
    id: Optional[int] = Field(default=None, description="Backend-assigned id")
    entity_type: str = Field(..., description="Kind of entity affected (e.g. 'Order')")
    entity_id: str = Field(..., description="Identifier of the affected entity")
    event_type: AuditEventType
    timestamp: datetime = Field(default_factory=utc_now)
    actor: Optional[str] = None
    data: Optional[str] = Field(default=None, description="Compact JSON payload")
    correlation_id: Optional[str] = None

    def data_as_dict(self) -> Optional[Any]:
        """Decode the stored payload, or None when absent."""
        return json.loads(self.data) if self.data else None


def serialize_event_data(data: Any) -> Optional[str]:
    """Compact, key-sorted JSON so equal payloads produce equal text."""
    if data is None:
        return None
    if isinstance(data, str):
        return data
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def create_audit_event(
    entity_type: str,
    entity_id: Any,
    event_type: AuditEventType,
    data: Any = None,
    actor: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> AuditEvent:
    """Create a new audit event stamped with the current UTC time.

    Args:
        entity_type: Kind of entity affected
        entity_id: Identifier of the entity (stored as text)
        event_type: Kind of event
        data: Optional payload, serialized to compact JSON
        actor: Who performed the action
        correlation_id: Trace id of the originating request

    Returns:
        AuditEvent ready to append
    """
    return AuditEvent(
        entity_type=entity_type,
        entity_id=str(entity_id),
        event_type=event_type,
        timestamp=utc_now(),
        actor=actor,
        data=serialize_event_data(data),
        correlation_id=correlation_id,
    )


# =============================================================================
# Backends
# =============================================================================

class AuditBackend(ABC):
    """Abstract base class for audit persistence backends."""

    @abstractmethod
    def append(self, event: AuditEvent) -> AuditEvent:
        """Persist an event and return it with its id assigned."""
        pass

    @abstractmethod
    def query(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        correlation_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditEvent]:
        """Matching events, newest first, at most ``limit``."""
        pass


class InMemoryAuditBackend(AuditBackend):
    """In-memory audit backend for testing."""

    def __init__(self):
        self._events: List[AuditEvent] = []

    def append(self, event: AuditEvent) -> AuditEvent:
        stored = event.model_copy(update={"id": len(self._events) + 1})
        self._events.append(stored)
        return stored

    def query(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        correlation_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditEvent]:
        results = []
        for event in sorted(self._events, key=lambda e: (e.timestamp, e.id), reverse=True):
            if entity_type and event.entity_type != entity_type:
                continue
            if entity_id and event.entity_id != entity_id:
                continue
            if event_type and event.event_type != event_type:
                continue
            if correlation_id and event.correlation_id != correlation_id:
                continue
            results.append(event)
            if len(results) >= limit:
                break
        return results

    def clear(self) -> None:
        """Clear all events (for testing)."""
        self._events.clear()


# =============================================================================
# Recorder
# =============================================================================

class AuditRecorder:
    """Records and queries audit events through a backend.

    Usage:
        recorder = AuditRecorder(SQLiteAuditBackend(db_path))
        recorder.record_order_event(
            order.id, AuditEventType.ERP_ACK,
            data={"erp_reference": "ERP-20250101-00042"},
            correlation_id="a1b2c3d4e5f6",
        )

    The recorder does not clamp ``limit``; callers bound it.
    """

    def __init__(self, backend: AuditBackend):
        self._backend = backend

    @property
    def backend(self) -> AuditBackend:
        return self._backend

    def record_event(
        self,
        entity_type: str,
        entity_id: Any,
        event_type: AuditEventType,
        data: Any = None,
        actor: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> AuditEvent:
        """Append a new event. Storage failures propagate."""
        event = create_audit_event(
            entity_type,
            entity_id,
            event_type,
            data=data,
            actor=actor,
            correlation_id=correlation_id,
        )
        return self._backend.append(event)

    def record_order_event(
        self,
        order_id: Any,
        event_type: AuditEventType,
        data: Any = None,
        correlation_id: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        """Append an event for the Order entity."""
        return self.record_event(
            ORDER_ENTITY,
            order_id,
            event_type,
            data=data,
            actor=actor,
            correlation_id=correlation_id,
        )

    def query(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        event_type: Optional[AuditEventType] = None,
        correlation_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditEvent]:
        """Matching events, newest first, capped at ``limit``."""
        return self._backend.query(
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            event_type=event_type,
            correlation_id=correlation_id,
            limit=limit,
        )

    def recent_events(self, limit: int = 100) -> List[AuditEvent]:
        """Latest events across all entities."""
        return self.query(limit=limit)
