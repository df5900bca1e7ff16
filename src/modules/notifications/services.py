"""Email notification service.

Each message is handed to Celery (``send_order_email``) so SMTP latency
and retries stay off the order request path.  Enqueueing is the only
thing awaited here.
"""

from __future__ import annotations

import structlog
from asgiref.sync import sync_to_async

from modules.notifications.interfaces import INotificationService, OrderNotice
from modules.notifications.tasks import send_order_email

logger = structlog.get_logger(__name__)


class EmailNotificationService(INotificationService):
    """``INotificationService`` that enqueues plain-text emails."""

    async def send_order_confirmation(self, notice: OrderNotice) -> None:
        await self._enqueue("confirmation", notice)

    async def send_order_received(self, notice: OrderNotice) -> None:
        await self._enqueue("received", notice)

    async def send_order_cancellation(self, notice: OrderNotice) -> None:
        await self._enqueue("cancellation", notice)

    async def _enqueue(self, kind: str, notice: OrderNotice) -> None:
        if not notice.email.strip():
            logger.info("notification.skipped_no_email", kind=kind, order_id=str(notice.order_id))
            return
        context = {
            "order_id": str(notice.order_id),
            "order_number": notice.order_number,
            "name": notice.name or "there",
            "total": f"{notice.total:,.0f}",
            "checkout_url": notice.checkout_url,
        }
        await sync_to_async(send_order_email.delay)(kind, notice.email, context)
        logger.info("notification.enqueued", kind=kind, order_id=str(notice.order_id))
