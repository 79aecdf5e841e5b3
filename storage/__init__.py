"""SQLite persistence for orders, integration attempts and audit events."""

from storage.attempts import SQLiteIntegrationAttemptStore
from storage.audit import SQLiteAuditBackend
from storage.db import connect, init_db
from storage.orders import SQLiteOrderStore

__all__ = [
    "SQLiteAuditBackend",
    "SQLiteIntegrationAttemptStore",
    "SQLiteOrderStore",
    "connect",
    "init_db",
]
