"""SQLite integration attempt store."""

import sqlite3
from typing import List, Optional

from core.integration.models import (
    IntegrationAttempt,
    IntegrationStatus,
    OPEN_STATUSES,
    TargetSystem,
)
from core.stores import IntegrationAttemptStore
from core.timeutil import from_iso, to_iso
from storage.db import DbPath, connect


def _row_to_attempt(row: sqlite3.Row) -> IntegrationAttempt:
    return IntegrationAttempt(
        id=row["id"],
        order_id=row["order_id"],
        target_system=TargetSystem(row["target_system"]),
        status=IntegrationStatus(row["status"]),
        request_payload=row["request_payload"],
        response_payload=row["response_payload"],
        attempts=row["attempts"],
        last_attempt_at=from_iso(row["last_attempt_at"]),
        error_message=row["error_message"],
        correlation_id=row["correlation_id"],
    )


class SQLiteIntegrationAttemptStore(IntegrationAttemptStore):
    """Attempt persistence backed by the integration_attempts table."""

    def __init__(self, db_path: DbPath):
        self.db_path = db_path

    def save(self, attempt: IntegrationAttempt) -> IntegrationAttempt:
        """Insert a new attempt or update an existing one."""
        values = (
            attempt.order_id,
            attempt.target_system.value,
            attempt.status.value,
            attempt.request_payload,
            attempt.response_payload,
            attempt.attempts,
            to_iso(attempt.last_attempt_at),
            attempt.error_message,
            attempt.correlation_id,
        )
        with connect(self.db_path) as conn:
            if attempt.id is None:
                cursor = conn.execute("""
                    INSERT INTO integration_attempts
                    (order_id, target_system, status, request_payload, response_payload,
                     attempts, last_attempt_at, error_message, correlation_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, values)
                attempt.id = cursor.lastrowid
            else:
                conn.execute("""
                    UPDATE integration_attempts
                    SET order_id = ?, target_system = ?, status = ?, request_payload = ?,
                        response_payload = ?, attempts = ?, last_attempt_at = ?,
                        error_message = ?, correlation_id = ?
                    WHERE id = ?
                """, values + (attempt.id,))
        return attempt

    def get_by_id(self, attempt_id: int) -> Optional[IntegrationAttempt]:
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM integration_attempts WHERE id = ?", (attempt_id,)
            ).fetchone()
        return _row_to_attempt(row) if row else None

    def find_open_attempts_for_order(
        self,
        order_id: int,
        target_system: TargetSystem = TargetSystem.ERP,
    ) -> List[IntegrationAttempt]:
        """Pending or Sent attempts for the order, most recently attempted first."""
        statuses = [s.value for s in OPEN_STATUSES]
        with connect(self.db_path) as conn:
            rows = conn.execute(f"""
                SELECT * FROM integration_attempts
                WHERE order_id = ? AND target_system = ?
                  AND status IN ({",".join("?" for _ in statuses)})
                ORDER BY last_attempt_at DESC, id DESC
            """, [order_id, target_system.value] + statuses).fetchall()
        return [_row_to_attempt(row) for row in rows]

    def list_for_order(self, order_id: int) -> List[IntegrationAttempt]:
        """All attempts for the order, most recent first."""
        with connect(self.db_path) as conn:
            rows = conn.execute("""
                SELECT * FROM integration_attempts
                WHERE order_id = ?
                ORDER BY last_attempt_at DESC, id DESC
            """, (order_id,)).fetchall()
        return [_row_to_attempt(row) for row in rows]
