"""Integration tests for email notifications (Celery eager + locmem backend)."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from asgiref.sync import async_to_sync
from django.core import mail

from modules.notifications.interfaces import OrderNotice
from modules.notifications.services import EmailNotificationService
from modules.notifications.tasks import send_order_email

pytestmark = pytest.mark.integration


def notice(**overrides):
    values = {
        "order_id": uuid4(),
        "order_number": "BCDEF1",
        "email": "lan@example.com",
        "name": "Lan Nguyen",
        "total": Decimal("280000"),
        "payment_method": "GATEWAY",
        "checkout_url": "https://pay.example.test/web/1",
    }
    values.update(overrides)
    return OrderNotice(**values)


@pytest.fixture()
def notifier():
    return EmailNotificationService()


class TestEmailNotificationService:
    def test_confirmation(self, notifier, settings):
        async_to_sync(notifier.send_order_confirmation)(notice())

        (message,) = mail.outbox
        assert message.to == ["lan@example.com"]
        assert message.subject == "Order BCDEF1 confirmed"
        assert "280,000" in message.body
        assert message.from_email == settings.DEFAULT_FROM_EMAIL

    def test_received_includes_payment_link(self, notifier):
        async_to_sync(notifier.send_order_received)(notice())

        (message,) = mail.outbox
        assert "awaiting payment" in message.subject
        assert "https://pay.example.test/web/1" in message.body

    def test_cancellation(self, notifier):
        async_to_sync(notifier.send_order_cancellation)(notice())

        assert mail.outbox[0].subject == "Order BCDEF1 cancelled"

    def test_blank_email_is_skipped(self, notifier):
        async_to_sync(notifier.send_order_confirmation)(notice(email="  "))

        assert mail.outbox == []


class TestSendOrderEmailTask:
    def test_direct_call_returns_sent_count(self):
        sent = send_order_email(
            "confirmation",
            "minh@example.com",
            {"order_id": "x", "order_number": "ABC123", "name": "Minh", "total": "1"},
        )

        assert sent == 1
        assert mail.outbox[0].to == ["minh@example.com"]
