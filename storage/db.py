"""Database schema and connection handling.

One short-lived connection per operation. Foreign keys are enabled on every
connection so deleting an order cascades to its items and attempts. Audit
events reference entities by (type, id) only and have no foreign keys.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from core.config import DEFAULT_DB_PATH
from core.observability.logging import get_logger


logger = get_logger(__name__)

DbPath = Union[str, Path]


@contextmanager
def connect(db_path: DbPath = DEFAULT_DB_PATH) -> Iterator[sqlite3.Connection]:
    """Open a connection, commit on success, roll back on error, always close."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: DbPath = DEFAULT_DB_PATH) -> None:
    """Create all tables and indexes if they do not exist.

    Creates:
    - orders: one row per order, unique order_number
    - order_items: lines of an order (cascade delete)
    - integration_attempts: ERP delivery attempts (cascade delete)
    - audit_events: append-only event log

    Args:
        db_path: Path to SQLite database file
    """
    with connect(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS orders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_number TEXT NOT NULL UNIQUE,
                customer_code TEXT NOT NULL,
                status TEXT NOT NULL,
                total_amount TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS order_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id INTEGER NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                sku TEXT NOT NULL,
                description TEXT,
                quantity INTEGER NOT NULL,
                unit_price TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS integration_attempts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id INTEGER NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
                target_system TEXT NOT NULL,
                status TEXT NOT NULL,
                request_payload TEXT,
                response_payload TEXT,
                attempts INTEGER NOT NULL DEFAULT 0,
                last_attempt_at TEXT NOT NULL,
                error_message TEXT,
                correlation_id TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS audit_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                event_type TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                actor TEXT,
                data TEXT,
                correlation_id TEXT
            )
        """)

        # Indexes for the common lookups
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_code)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_at)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_order_items_order ON order_items(order_id)")
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_attempts_order_status
            ON integration_attempts(order_id, status, last_attempt_at)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_audit_entity
            ON audit_events(entity_type, entity_id)
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_events(timestamp)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_correlation ON audit_events(correlation_id)")

    logger.info("Database schema initialized", extra_fields={"db_path": str(db_path)})
