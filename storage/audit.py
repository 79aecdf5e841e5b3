"""SQLite audit backend. Insert-only; there is no update or delete path."""

import sqlite3
from typing import List, Optional

from core.audit.events import AuditBackend, AuditEvent, AuditEventType
from core.timeutil import from_iso, to_iso
from storage.db import DbPath, connect


def _row_to_event(row: sqlite3.Row) -> AuditEvent:
    return AuditEvent(
        id=row["id"],
        entity_type=row["entity_type"],
        entity_id=row["entity_id"],
        event_type=AuditEventType(row["event_type"]),
        timestamp=from_iso(row["timestamp"]),
        actor=row["actor"],
        data=row["data"],
        correlation_id=row["correlation_id"],
    )


class SQLiteAuditBackend(AuditBackend):
    """Audit events stored in the audit_events table."""

    def __init__(self, db_path: DbPath):
        self.db_path = db_path

    def append(self, event: AuditEvent) -> AuditEvent:
        with connect(self.db_path) as conn:
            cursor = conn.execute("""
                INSERT INTO audit_events
                (entity_type, entity_id, event_type, timestamp, actor, data, correlation_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                event.entity_type,
                event.entity_id,
                event.event_type.value,
                to_iso(event.timestamp),
                event.actor,
                event.data,
                event.correlation_id,
            ))
            event_id = cursor.lastrowid
        return event.model_copy(update={"id": event_id})

    def query(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        correlation_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditEvent]:
        """Matching events, newest first."""
        clauses = []
        params: list = []
        if entity_type:
            clauses.append("entity_type = ?")
            params.append(entity_type)
        if entity_id:
            clauses.append("entity_id = ?")
            params.append(entity_id)
        if event_type:
            clauses.append("event_type = ?")
            params.append(event_type.value)
        if correlation_id:
            clauses.append("correlation_id = ?")
            params.append(correlation_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with connect(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT * FROM audit_events {where} ORDER BY timestamp DESC, id DESC LIMIT ?",
                params + [limit],
            ).fetchall()
        return [_row_to_event(row) for row in rows]
