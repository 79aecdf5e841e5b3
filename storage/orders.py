"""SQLite order store.

Orders and their items are written together. Items are rewritten on every
update, which keeps them owned by the order and renumbers their ids.
"""

import sqlite3
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from core.errors import DuplicateOrderNumber
from core.orders.order import Order, OrderItem
from core.orders.status import OrderStatus
from core.stores import OrderQuery, OrderStore, Page
from core.timeutil import from_iso, to_iso
from storage.db import DbPath, connect


def _row_to_item(row: sqlite3.Row) -> OrderItem:
    return OrderItem(
        id=row["id"],
        sku=row["sku"],
        description=row["description"],
        quantity=row["quantity"],
        unit_price=Decimal(row["unit_price"]),
    )


def _row_to_order(row: sqlite3.Row, items: List[OrderItem]) -> Order:
    return Order(
        id=row["id"],
        order_number=row["order_number"],
        customer_code=row["customer_code"],
        status=OrderStatus(row["status"]),
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
        total_amount=Decimal(row["total_amount"]),
        items=items,
    )


def _day_start(day) -> str:
    return to_iso(datetime.combine(day, time.min, tzinfo=timezone.utc))


class SQLiteOrderStore(OrderStore):
    """Order persistence backed by the orders and order_items tables."""

    def __init__(self, db_path: DbPath):
        self.db_path = db_path

    # =========================================================================
    # Reads
    # =========================================================================

    def exists_by_order_number(self, order_number: str) -> bool:
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM orders WHERE order_number = ? LIMIT 1",
                (order_number,),
            ).fetchone()
        return row is not None

    def get_by_id(self, order_id: int) -> Optional[Order]:
        return self._get_one("id = ?", (order_id,))

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return self._get_one("order_number = ?", (order_number,))

    def _get_one(self, where: str, params: tuple) -> Optional[Order]:
        with connect(self.db_path) as conn:
            row = conn.execute(f"SELECT * FROM orders WHERE {where}", params).fetchone()
            if row is None:
                return None
            items = self._load_items(conn, [row["id"]])
        return _row_to_order(row, items.get(row["id"], []))

    def _load_items(self, conn: sqlite3.Connection, order_ids: List[int]) -> Dict[int, List[OrderItem]]:
        if not order_ids:
            return {}
        placeholders = ",".join("?" for _ in order_ids)
        rows = conn.execute(
            f"SELECT * FROM order_items WHERE order_id IN ({placeholders}) "
            "ORDER BY order_id, position",
            order_ids,
        ).fetchall()
        grouped: Dict[int, List[OrderItem]] = {}
        for row in rows:
            grouped.setdefault(row["order_id"], []).append(_row_to_item(row))
        return grouped

    def query(self, query: OrderQuery) -> Page[Order]:
        """Filtered page, newest first.

        ``order_number`` matches as a substring; ``to_date`` covers the
        whole day.
        """
        query = query.normalized()
        clauses = []
        params: list = []

        if query.status is not None:
            clauses.append("status = ?")
            params.append(query.status.value)
        if query.customer_code:
            clauses.append("customer_code = ?")
            params.append(query.customer_code)
        if query.order_number:
            clauses.append("order_number LIKE ? ESCAPE '\\'")
            escaped = (
                query.order_number.replace("\\", "\\\\")
                .replace("%", "\\%")
                .replace("_", "\\_")
            )
            params.append(f"%{escaped}%")
        if query.from_date:
            clauses.append("created_at >= ?")
            params.append(_day_start(query.from_date))
        if query.to_date:
            clauses.append("created_at < ?")
            params.append(_day_start(query.to_date + timedelta(days=1)))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        offset = (query.page - 1) * query.page_size

        with connect(self.db_path) as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM orders {where}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM orders {where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                params + [query.page_size, offset],
            ).fetchall()
            items = self._load_items(conn, [row["id"] for row in rows])

        return Page(
            items=[_row_to_order(row, items.get(row["id"], [])) for row in rows],
            page=query.page,
            page_size=query.page_size,
            total_count=total,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, order: Order) -> Order:
        """Insert a new order or update an existing one with its items.

        Raises:
            DuplicateOrderNumber: Insert hit the unique order_number index.
        """
        values = (
            order.order_number,
            order.customer_code,
            order.status.value,
            str(order.total_amount),
            to_iso(order.created_at),
            to_iso(order.updated_at),
        )
        with connect(self.db_path) as conn:
            cursor = conn.cursor()
            if order.id is None:
                try:
                    cursor.execute("""
                        INSERT INTO orders
                        (order_number, customer_code, status, total_amount, created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                    """, values)
                except sqlite3.IntegrityError as exc:
                    raise DuplicateOrderNumber(order.order_number) from exc
                order.id = cursor.lastrowid
            else:
                cursor.execute("""
                    UPDATE orders
                    SET order_number = ?, customer_code = ?, status = ?,
                        total_amount = ?, created_at = ?, updated_at = ?
                    WHERE id = ?
                """, values + (order.id,))
                cursor.execute("DELETE FROM order_items WHERE order_id = ?", (order.id,))

            for position, item in enumerate(order.items or []):
                cursor.execute("""
                    INSERT INTO order_items
                    (order_id, position, sku, description, quantity, unit_price)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    order.id,
                    position,
                    item.sku,
                    item.description,
                    item.quantity,
                    str(item.unit_price),
                ))
                item.id = cursor.lastrowid
        return order

    def delete(self, order_id: int) -> bool:
        """Delete an order; items and integration attempts cascade."""
        with connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))
            return cursor.rowcount > 0

    def count(self) -> int:
        with connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]
