"""Webhook reconciliation service (Use Case).

Applies hosted-payment callbacks to order state.  The handler is
idempotent: only the delivery that actually changes the payment status
triggers loyalty accrual and the confirmation email, so re-deliveries
are harmless.  The gateway always gets an acknowledgement; only an
error while looking up or writing the order yields the failure ack.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog
from pydantic import ValidationError

from modules.orders.constants import MAX_WRITE_ATTEMPTS, OrderStatus
from modules.orders.domain import OrderRecord
from modules.orders.dtos import WebhookAck, WebhookPayloadDTO
from modules.orders.exceptions import ConcurrentOrderUpdate
from modules.orders.services.support import best_effort, build_notice

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.customers.services import LoyaltyService
    from modules.notifications.interfaces import INotificationService
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import PaymentGateway

logger = structlog.get_logger(__name__)


class WebhookReconciler:
    """Application service for gateway webhooks."""

    def __init__(
        self,
        orders: IOrderRepository,
        customers: ICustomerRepository,
        loyalty: LoyaltyService,
        notifications: INotificationService,
        gateway: PaymentGateway,
        verify_signatures: bool = False,
    ) -> None:
        self._orders = orders
        self._customers = customers
        self._loyalty = loyalty
        self._notifications = notifications
        self._gateway = gateway
        self._verify_signatures = verify_signatures

    async def receive_webhook(
        self,
        payload: Mapping[str, Any],
        signature: Optional[str] = None,
    ) -> WebhookAck:
        """Apply *payload* and return the acknowledgement for the gateway.

        Never raises.
        """
        try:
            return await self._reconcile(payload, signature)
        except Exception as exc:
            logger.exception("webhook.processing_failed")
            return WebhookAck.failure(str(exc) or "Webhook processing failed")

    async def _reconcile(
        self,
        payload: Mapping[str, Any],
        signature: Optional[str],
    ) -> WebhookAck:
        try:
            webhook = WebhookPayloadDTO.model_validate(payload)
        except ValidationError as exc:
            logger.warning("webhook.malformed_payload", errors=exc.error_count())
            return WebhookAck.neutral()
        code = webhook.correlation_code
        if not code:
            logger.info("webhook.test_ping")
            return WebhookAck.neutral()

        log = logger.bind(correlation_code=code)
        if self._verify_signatures and not self._signature_valid(payload, signature or webhook.signature):
            log.warning("webhook.signature_invalid")
            return WebhookAck.neutral()

        for _ in range(MAX_WRITE_ATTEMPTS):
            order = await self._orders.get_by_correlation_code(code)
            if order is None:
                log.info("webhook.unknown_order")
                return WebhookAck.neutral()

            log = log.bind(order_id=str(order.id))
            if webhook.is_success:
                applied = order.mark_paid()
                if not applied and order.status == OrderStatus.CANCELLED:
                    log.warning(
                        "webhook.payment_for_cancelled_order",
                        payment_status=str(order.payment_status),
                    )
            else:
                applied = order.mark_payment_failed()

            if not applied:
                log.info(
                    "webhook.already_applied",
                    success=webhook.is_success,
                    payment_status=str(order.payment_status),
                )
                return WebhookAck.success()

            try:
                order = await self._orders.save(order)
            except ConcurrentOrderUpdate:
                log.info("webhook.retry_after_conflict")
                continue
            break
        else:
            raise ConcurrentOrderUpdate()

        log.info(
            "webhook.applied",
            payment_status=str(order.payment_status),
            status=str(order.status),
        )
        if webhook.is_success:
            await self._after_payment(order)
        return WebhookAck.success()

    def _signature_valid(self, payload: Mapping[str, Any], signature: Optional[str]) -> bool:
        data = payload.get("data")
        if not signature or not isinstance(data, Mapping):
            return False
        return self._gateway.verify_webhook_signature(dict(data), signature)

    async def _after_payment(self, order: OrderRecord) -> None:
        customer = None
        if order.owner_id:
            await best_effort(
                "webhook.loyalty",
                self._loyalty.earn_points(
                    user_id=order.owner_id,
                    order_id=order.id,
                    revenue=order.totals.subtotal - order.totals.discount,
                    reason="Order payment completed",
                ),
                order_id=str(order.id),
            )
            customer = await best_effort(
                "webhook.customer_lookup",
                self._customers.get_by_id(order.owner_id),
                order_id=str(order.id),
            )
        await best_effort(
            "webhook.notification",
            self._notifications.send_order_confirmation(build_notice(order, customer)),
            order_id=str(order.id),
        )
