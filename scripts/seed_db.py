"""
Initialise the order database and load sample orders.

Creates the schema if needed and, when the orders table is empty, inserts
three sample orders (Created, Prepared, Dispatched) through OrderService so
their audit events are recorded too.

Usage:
    python scripts/seed_db.py                     # Uses ORDER_DB_PATH / default
    python scripts/seed_db.py --db ./dev.db       # Explicit database file
    python scripts/seed_db.py --schema-only       # Create tables, no data
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.audit.events import AuditRecorder
from core.config import Settings
from core.observability.logging import configure_logging, get_logger
from core.orders.service import OrderService
from storage.audit import SQLiteAuditBackend
from storage.db import init_db
from storage.orders import SQLiteOrderStore
from storage.seed import seed_sample_orders


logger = get_logger("scripts.seed_db")


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialise and seed the order database")
    parser.add_argument("--db", help="SQLite database file (default: ORDER_DB_PATH)")
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Create tables without inserting sample orders",
    )
    args = parser.parse_args()

    settings = Settings.from_env()
    configure_logging(json_format=settings.log_json)
    db_path = Path(args.db) if args.db else settings.db_path

    init_db(db_path)
    if args.schema_only:
        return 0

    store = SQLiteOrderStore(db_path)
    service = OrderService(store, AuditRecorder(SQLiteAuditBackend(db_path)))
    created = seed_sample_orders(store, service)
    for order_number in created:
        logger.info(f"Created sample order {order_number}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
