"""Celery tasks that deliver order emails."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = structlog.get_logger(__name__)

SUBJECTS = {
    "confirmation": "Order {order_number} confirmed",
    "received": "Order {order_number} received - awaiting payment",
    "cancellation": "Order {order_number} cancelled",
}

BODIES = {
    "confirmation": "Hi {name}, your order {order_number} ({total}) is confirmed.",
    "received": (
        "Hi {name}, we received order {order_number} ({total}). "
        "Complete your payment here: {checkout_url}"
    ),
    "cancellation": "Hi {name}, your order {order_number} has been cancelled.",
}


@shared_task(
    name="notifications.send_order_email",
    autoretry_for=(OSError,),
    retry_backoff=True,
    max_retries=3,
)
def send_order_email(kind: str, recipient: str, context: dict) -> int:
    """Send one plain-text order email; returns the number of messages sent."""
    subject = SUBJECTS[kind].format(**context)
    body = BODIES[kind].format(**context)
    sent = send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [recipient],
        fail_silently=False,
    )
    logger.info(
        "notification.email_sent",
        kind=kind,
        order_id=context.get("order_id"),
    )
    return sent
