"""Audit trail recorder tests against both backends."""

import json
from datetime import timedelta

import pytest

from core.audit.events import (
    ORDER_ENTITY,
    AuditEventType,
    AuditRecorder,
    InMemoryAuditBackend,
    create_audit_event,
    serialize_event_data,
)
from core.errors import UnknownEnumValue
from core.timeutil import utc_now
from storage.audit import SQLiteAuditBackend


@pytest.fixture(params=["memory", "sqlite"])
def recorder(request, db_path) -> AuditRecorder:
    if request.param == "memory":
        return AuditRecorder(InMemoryAuditBackend())
    return AuditRecorder(SQLiteAuditBackend(db_path))


class TestSerializeEventData:
    """Compact, stable payload text."""

    def test_keys_sorted_without_whitespace(self):
        assert serialize_event_data({"to": "Prepared", "from": "Created"}) == '{"from":"Created","to":"Prepared"}'

    def test_equal_payloads_serialize_identically(self):
        assert serialize_event_data({"a": 1, "b": 2}) == serialize_event_data({"b": 2, "a": 1})

    def test_none_and_text(self):
        assert serialize_event_data(None) is None
        assert serialize_event_data('{"raw":true}') == '{"raw":true}'

    def test_non_json_values_fall_back_to_text(self):
        from decimal import Decimal
        assert json.loads(serialize_event_data({"total": Decimal("21.00")})) == {"total": "21.00"}


class TestCreateAuditEvent:

    def test_entity_id_is_text(self):
        event = create_audit_event(ORDER_ENTITY, 42, AuditEventType.ORDER_CREATED)
        assert event.entity_id == "42"
        assert event.id is None
        assert event.data is None
        assert event.timestamp.tzinfo is not None


class TestEventTypeParsing:

    def test_case_insensitive(self):
        assert AuditEventType.parse("erpack") is AuditEventType.ERP_ACK
        assert AuditEventType.parse("StatusChanged") is AuditEventType.STATUS_CHANGED

    def test_unknown_value(self):
        with pytest.raises(UnknownEnumValue) as exc_info:
            AuditEventType.parse("Deleted")
        assert "OrderCreated" in str(exc_info.value)


class TestAuditRecorder:
    """Append and query behaviour shared by every backend."""

    def test_record_order_event(self, recorder):
        event = recorder.record_order_event(
            7, AuditEventType.STATUS_CHANGED,
            data={"from": "Created", "to": "Prepared"},
            correlation_id="abc123",
        )
        assert event.id is not None
        assert event.entity_type == "Order"
        assert event.entity_id == "7"
        assert event.data == '{"from":"Created","to":"Prepared"}'
        assert event.correlation_id == "abc123"

    def test_record_event_with_actor(self, recorder):
        recorder.record_event("Customer", "CUST-1", AuditEventType.ORDER_CREATED, actor="importer")
        [event] = recorder.query(entity_type="Customer")
        assert event.actor == "importer"
        assert event.entity_id == "CUST-1"

    def test_newest_first(self, recorder):
        for event_type in (AuditEventType.ORDER_CREATED, AuditEventType.ERP_SENT, AuditEventType.ERP_ACK):
            recorder.record_order_event(1, event_type)

        events = recorder.query(entity_id=1)
        assert [e.event_type for e in events] == [
            AuditEventType.ERP_ACK,
            AuditEventType.ERP_SENT,
            AuditEventType.ORDER_CREATED,
        ]

    def test_filters_combine(self, recorder):
        recorder.record_order_event(1, AuditEventType.ORDER_CREATED, correlation_id="c1")
        recorder.record_order_event(1, AuditEventType.ERP_SENT, correlation_id="c2")
        recorder.record_order_event(2, AuditEventType.ORDER_CREATED, correlation_id="c1")

        assert len(recorder.query(entity_type=ORDER_ENTITY)) == 3
        assert len(recorder.query(entity_id=1)) == 2
        assert len(recorder.query(event_type=AuditEventType.ORDER_CREATED)) == 2
        assert len(recorder.query(correlation_id="c1")) == 2
        assert len(recorder.query(entity_id=1, correlation_id="c1")) == 1
        assert recorder.query(entity_id=3) == []

    def test_limit(self, recorder):
        for _ in range(5):
            recorder.record_order_event(1, AuditEventType.STATUS_CHANGED)
        assert len(recorder.query(limit=2)) == 2
        assert len(recorder.recent_events(limit=3)) == 3
        assert len(recorder.recent_events()) == 5

    def test_recent_events_span_entities(self, recorder):
        recorder.record_order_event(1, AuditEventType.ORDER_CREATED)
        recorder.record_event("Customer", "C", AuditEventType.ORDER_CREATED)

        events = recorder.recent_events()
        assert [e.entity_type for e in events] == ["Customer", "Order"]

    def test_events_round_trip_payload(self, recorder):
        recorder.record_order_event(1, AuditEventType.ERP_ACK, data={"attempt_id": 3, "erp_reference": "ERP-1"})
        [event] = recorder.query(event_type=AuditEventType.ERP_ACK)
        assert event.data_as_dict() == {"attempt_id": 3, "erp_reference": "ERP-1"}


class TestInMemoryAuditBackend:

    def test_orders_by_timestamp(self):
        backend = InMemoryAuditBackend()
        now = utc_now()
        late = create_audit_event(ORDER_ENTITY, 1, AuditEventType.ERP_ACK)
        early = create_audit_event(ORDER_ENTITY, 1, AuditEventType.ORDER_CREATED)
        backend.append(late.model_copy(update={"timestamp": now}))
        backend.append(early.model_copy(update={"timestamp": now - timedelta(seconds=5)}))

        assert [e.event_type for e in backend.query()] == [AuditEventType.ERP_ACK, AuditEventType.ORDER_CREATED]

    def test_clear(self):
        backend = InMemoryAuditBackend()
        backend.append(create_audit_event(ORDER_ENTITY, 1, AuditEventType.ORDER_CREATED))
        backend.clear()
        assert backend.query() == []
