"""Core audit module - audit event recording and querying."""

from core.audit.events import (
    AuditBackend,
    AuditEvent,
    AuditEventType,
    AuditRecorder,
    InMemoryAuditBackend,
    ORDER_ENTITY,
    create_audit_event,
)

__all__ = [
    "AuditBackend",
    "AuditEvent",
    "AuditEventType",
    "AuditRecorder",
    "InMemoryAuditBackend",
    "ORDER_ENTITY",
    "create_audit_event",
]
