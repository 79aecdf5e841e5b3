"""Order aggregate, order service and order store tests."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import item
from core.audit.events import AuditEventType
from core.errors import DomainValidationError, DuplicateOrderNumber, InvalidTransition, UnknownEnumValue
from core.integration.models import IntegrationAttempt, IntegrationStatus
from core.orders.order import Order, OrderItem
from core.orders.status import OrderStatus
from core.stores import OrderQuery
from core.timeutil import utc_now
from storage.db import connect


# =============================================================================
# Aggregate
# =============================================================================

class TestOrderCreate:
    """Creation invariants."""

    def test_total_is_sum_of_line_totals(self):
        order = Order.create("ORD-1", "CUST-1", [item(quantity=2, unit_price="10.50")])
        assert order.total_amount == Decimal("21.00")
        assert order.status == OrderStatus.CREATED
        assert order.updated_at is None

    def test_multiple_items(self):
        order = Order.create("ORD-1", "CUST-1", [
            item("A", 2, "899.99"),
            item("B", 2, "29.99"),
        ])
        assert order.total_amount == Decimal("1859.96")
        assert order.items[0].line_total == Decimal("1799.98")

    def test_accepts_item_models(self):
        order = Order.create("ORD-1", "CUST-1", [OrderItem(sku="A", quantity=3, unit_price="1.10")])
        assert order.total_amount == Decimal("3.30")

    @pytest.mark.parametrize("items", [[], None])
    def test_requires_items(self, items):
        with pytest.raises(DomainValidationError):
            Order.create("ORD-1", "CUST-1", items)

    def test_rejects_zero_quantity(self):
        with pytest.raises(DomainValidationError, match="Quantity"):
            Order.create("ORD-1", "CUST-1", [item(quantity=0)])

    def test_rejects_non_positive_price(self):
        with pytest.raises(DomainValidationError, match="Unit price"):
            Order.create("ORD-1", "CUST-1", [item(unit_price="0")])

    def test_requires_order_number(self):
        with pytest.raises(DomainValidationError):
            Order.create("  ", "CUST-1", [item()])


class TestOrderChangeStatus:
    """Status changes through the state machine."""

    def test_valid_change_bumps_updated_at(self):
        order = Order.create("ORD-1", "CUST-1", [item()])
        order.change_status(OrderStatus.PREPARED)
        first = order.updated_at
        assert order.status == OrderStatus.PREPARED
        assert first is not None

        order.change_status(OrderStatus.DISPATCHED)
        assert order.updated_at > first

    def test_invalid_change_leaves_order_untouched(self):
        order = Order.create("ORD-1", "CUST-1", [item()])
        order.change_status(OrderStatus.PREPARED)
        before = order.model_copy(deep=True)

        with pytest.raises(InvalidTransition):
            order.change_status(OrderStatus.DELIVERED)

        assert order.status == before.status
        assert order.updated_at == before.updated_at

    def test_full_lifecycle_scenario(self):
        order = Order.create("ORD-1", "CUST-1", [item(quantity=1, unit_price="10.00")])
        assert order.total_amount == Decimal("10.00")
        assert order.status == OrderStatus.CREATED

        order.change_status(OrderStatus.PREPARED)
        with pytest.raises(InvalidTransition):
            order.change_status(OrderStatus.DELIVERED)

        order.change_status(OrderStatus.DISPATCHED)
        order.change_status(OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED

        for target in OrderStatus:
            with pytest.raises(InvalidTransition):
                order.change_status(target)
        assert order.allowed_transitions() == []


class TestRecalculateTotal:
    """Total recomputation."""

    def test_empty_items_total_zero(self):
        order = Order.create("ORD-1", "CUST-1", [item()])
        order.items = []
        assert order.recalculate_total() == Decimal("0")

    def test_null_items_total_zero(self):
        order = Order.create("ORD-1", "CUST-1", [item()])
        order.items = None
        assert order.recalculate_total() == Decimal("0")
        assert order.total_amount == Decimal("0")


# =============================================================================
# Service
# =============================================================================

class TestOrderService:
    """Application service over SQLite."""

    def test_create_persists_and_audits(self, order_service, order_store, audit):
        order = order_service.create_order("ORD-1", "CUST-1", [item(quantity=2, unit_price="10.50")], correlation_id="corr-1")

        assert order.id is not None
        assert all(i.id is not None for i in order.items)
        stored = order_store.get_by_id(order.id)
        assert stored.order_number == "ORD-1"
        assert stored.total_amount == Decimal("21.00")
        assert stored.items[0].unit_price == Decimal("10.50")

        events = audit.query(entity_id=order.id)
        assert [e.event_type for e in events] == [AuditEventType.ORDER_CREATED]
        assert events[0].correlation_id == "corr-1"
        assert events[0].data_as_dict()["total_amount"] == "21.00"

    def test_duplicate_order_number(self, order_service):
        order_service.create_order("ORD-1", "CUST-1", [item()])
        with pytest.raises(DuplicateOrderNumber):
            order_service.create_order("ORD-1", "CUST-2", [item()])

    def test_store_rejects_duplicate_insert(self, order_store):
        order_store.save(Order.create("ORD-1", "CUST-1", [item()]))
        with pytest.raises(DuplicateOrderNumber):
            order_store.save(Order.create("ORD-1", "CUST-1", [item()]))

    def test_update_status_persists_and_audits(self, order_service, order_store, audit):
        order = order_service.create_order("ORD-1", "CUST-1", [item()])
        updated = order_service.update_status(order.id, "prepared")

        assert updated.status == OrderStatus.PREPARED
        assert order_store.get_by_id(order.id).status == OrderStatus.PREPARED

        latest = audit.query(entity_id=order.id, event_type=AuditEventType.STATUS_CHANGED)
        assert latest[0].data_as_dict() == {"from": "Created", "to": "Prepared"}

    def test_update_status_missing_order(self, order_service):
        assert order_service.update_status(999, "Prepared") is None

    def test_update_status_unknown_name(self, order_service):
        order = order_service.create_order("ORD-1", "CUST-1", [item()])
        with pytest.raises(UnknownEnumValue):
            order_service.update_status(order.id, "Shipped")

    def test_invalid_transition_is_not_persisted(self, order_service, order_store, audit):
        order = order_service.create_order("ORD-1", "CUST-1", [item()])
        with pytest.raises(InvalidTransition):
            order_service.update_status(order.id, "Delivered")

        assert order_store.get_by_id(order.id).status == OrderStatus.CREATED
        assert audit.query(event_type=AuditEventType.STATUS_CHANGED) == []


class TestOrderListing:
    """Filtering and paging."""

    @pytest.fixture
    def seeded(self, order_service):
        order_service.create_order("ORD-2026-0001", "CUST-001", [item()])
        order_service.create_order("ORD-2026-0002", "CUST-002", [item()])
        third = order_service.create_order("WEB-0003", "CUST-001", [item()])
        order_service.update_status(third.id, "Prepared")
        return order_service

    def test_newest_first(self, seeded):
        page = seeded.list_orders()
        assert [o.order_number for o in page.items] == ["WEB-0003", "ORD-2026-0002", "ORD-2026-0001"]
        assert page.total_count == 3

    def test_filters(self, seeded):
        assert seeded.list_orders(customer_code="CUST-001").total_count == 2
        assert seeded.list_orders(status="PREPARED").items[0].order_number == "WEB-0003"
        assert seeded.list_orders(order_number="2026").total_count == 2
        assert seeded.list_orders(order_number="%").total_count == 0

    def test_unknown_status_filter(self, seeded):
        with pytest.raises(UnknownEnumValue):
            seeded.list_orders(status="Lost")

    def test_date_range_is_inclusive(self, seeded):
        today = utc_now().date()
        assert seeded.list_orders(from_date=today, to_date=today).total_count == 3
        assert seeded.list_orders(to_date=today - timedelta(days=1)).total_count == 0
        assert seeded.list_orders(from_date=today + timedelta(days=1)).total_count == 0

    def test_paging(self, seeded):
        page = seeded.list_orders(page=2, page_size=2)
        assert len(page.items) == 1
        assert page.total_pages == 2
        assert page.has_previous_page
        assert not page.has_next_page

    def test_page_size_is_clamped(self):
        query = OrderQuery(page=0, page_size=1000).normalized()
        assert query.page == 1
        assert query.page_size == 100
        assert OrderQuery(page_size=0).normalized().page_size == 1


class TestOrderStoreCascade:
    """Deleting an order removes what it owns."""

    def test_delete_cascades(self, order_service, order_store, attempt_store, db_path):
        order = order_service.create_order("ORD-1", "CUST-1", [item(), item("SKU-2")])
        attempt_store.save(IntegrationAttempt(order_id=order.id, status=IntegrationStatus.SENT, attempts=1))

        assert order_store.delete(order.id) is True

        with connect(db_path) as conn:
            items = conn.execute("SELECT COUNT(*) FROM order_items").fetchone()[0]
            attempts = conn.execute("SELECT COUNT(*) FROM integration_attempts").fetchone()[0]
            audit_rows = conn.execute("SELECT COUNT(*) FROM audit_events").fetchone()[0]
        assert items == 0
        assert attempts == 0
        assert audit_rows == 1

    def test_update_rewrites_items(self, order_service, order_store):
        order = order_service.create_order("ORD-1", "CUST-1", [item("A"), item("B")])
        order.items = order.items[:1]
        order.recalculate_total()
        order_store.save(order)

        stored = order_store.get_by_id(order.id)
        assert [i.sku for i in stored.items] == ["A"]
        assert stored.total_amount == Decimal("10.00")


class TestSeedSampleOrders:
    """Development seed data."""

    def test_seeds_empty_database(self, order_store, order_service, audit):
        from storage.seed import SAMPLE_ORDERS, seed_sample_orders

        created = seed_sample_orders(order_store, order_service)

        assert created == [sample["order_number"] for sample in SAMPLE_ORDERS]
        assert order_store.get_by_order_number("ORD-2026-0002").status == OrderStatus.PREPARED
        assert order_store.get_by_order_number("ORD-2026-0003").status == OrderStatus.DISPATCHED
        assert len(audit.query(correlation_id="seed", limit=500)) == 6

    def test_skips_populated_database(self, order_store, order_service):
        from storage.seed import seed_sample_orders

        order_service.create_order("ORD-EXISTING", "CUST-1", [item()])
        assert seed_sample_orders(order_store, order_service) == []
        assert order_store.count() == 1
