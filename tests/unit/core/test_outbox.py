"""Unit tests for the outbox model and its relay task.

Covers:
- ``OutboxEvent.record()`` from a domain event.
- mark_as_published() / mark_as_failed(error) transitions.
- ``publish_outbox_events`` delivering rows to the in-process bus,
  retrying failures and giving up after the retry limit.
"""

from __future__ import annotations

import uuid

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import OUTBOX_MAX_RETRIES, publish_outbox_events
from modules.orders.events import OrderCancelled
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_event(**overrides) -> OutboxEvent:
    """Create and persist an OutboxEvent with sensible defaults."""
    defaults = {
        "event_type": "OrderPlaced",
        "payload": {"aggregate_id": "abc-123", "total": "99000"},
        "aggregate_id": "abc-123",
        "topic": "orders",
    }
    defaults.update(overrides)
    return OutboxEvent.objects.create(**defaults)


class Recorder:
    def __init__(self, fail=False):
        self.fail = fail
        self.received = []

    def handle(self, event_name, payload):
        if self.fail:
            raise RuntimeError("handler crashed")
        self.received.append((event_name, payload))


@pytest.fixture()
def recorder():
    handler = Recorder()
    event_bus.subscribe("TestEvent", handler)
    yield handler
    event_bus._handlers.pop("TestEvent", None)


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class TestOutboxEventModel:
    def test_record_from_domain_event(self):
        order_id = uuid.uuid4()
        event = OrderCancelled(aggregate_id=order_id, refund_due=True)

        row = OutboxEvent.record(event, topic="orders")
        row.refresh_from_db()

        assert row.event_type == "OrderCancelled"
        assert row.aggregate_id == str(order_id)
        assert row.payload["refund_due"] is True
        assert row.payload["aggregate_id"] == str(order_id)
        assert row.status == EventStatus.PENDING
        assert row.id.version == 7

    def test_mark_as_published(self):
        row = _make_event()

        row.mark_as_published()
        row.refresh_from_db()

        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None

    def test_mark_as_failed_increments_retry(self):
        row = _make_event()
        row.mark_as_failed("Error 1")
        row.mark_as_failed("Error 2")
        row.refresh_from_db()

        assert row.status == EventStatus.FAILED
        assert row.retry_count == 2
        assert row.error_message == "Error 2"

    def test_str_representation(self):
        result = str(_make_event(event_type="OrderPaid", aggregate_id="order-456"))

        assert "OrderPaid" in result
        assert "PENDING" in result
        assert "order-456" in result


# ---------------------------------------------------------------------------
# Relay
# ---------------------------------------------------------------------------


class TestPublishOutboxEvents:
    def test_pending_rows_are_delivered_in_order(self, recorder):
        first = _make_event(event_type="TestEvent", payload={"n": 1})
        second = _make_event(event_type="TestEvent", payload={"n": 2})

        result = publish_outbox_events()

        assert result == {"published": 2, "failed": 0}
        assert [p["n"] for _, p in recorder.received] == [1, 2]
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.status == second.status == EventStatus.PUBLISHED

    def test_unsubscribed_events_are_still_published(self):
        row = _make_event(event_type="NobodyListens")

        publish_outbox_events()

        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED

    def test_handler_failure_marks_row_failed(self, recorder):
        recorder.fail = True
        row = _make_event(event_type="TestEvent")

        result = publish_outbox_events()

        row.refresh_from_db()
        assert result == {"published": 0, "failed": 1}
        assert row.status == EventStatus.FAILED
        assert row.error_message == "handler crashed"

    def test_failed_rows_are_retried(self, recorder):
        row = _make_event(event_type="TestEvent", status=EventStatus.FAILED, retry_count=1)

        publish_outbox_events()

        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED

    def test_rows_past_retry_limit_are_skipped(self, recorder):
        row = _make_event(
            event_type="TestEvent", status=EventStatus.FAILED, retry_count=OUTBOX_MAX_RETRIES
        )

        publish_outbox_events()

        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert recorder.received == []

    def test_batch_size_limits_work(self, recorder):
        for n in range(3):
            _make_event(event_type="TestEvent", payload={"n": n})

        result = publish_outbox_events(batch_size=2)

        assert result["published"] == 2
        assert OutboxEvent.objects.filter(status=EventStatus.PENDING).count() == 1
