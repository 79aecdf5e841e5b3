"""API Routes Package."""

from api.routes import health, orders, webhooks, audit

__all__ = [
    "health",
    "orders",
    "webhooks",
    "audit",
]
