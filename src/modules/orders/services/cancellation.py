"""Cancellation service (Use Case).

The state transition is committed first, guarded by the order version,
so only one caller ever wins a cancellation; the winner then restores
stock for every line, cancels the gateway session (best effort) and
notifies the customer (best effort).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.orders.constants import MAX_WRITE_ATTEMPTS
from modules.orders.domain import OrderRecord
from modules.orders.exceptions import ConcurrentOrderUpdate, OrderNotFound
from modules.orders.services.support import best_effort, build_notice

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IInventoryRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.notifications.interfaces import INotificationService
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import PaymentGateway

logger = structlog.get_logger(__name__)


class CancellationService:
    """Application service for order cancellation."""

    def __init__(
        self,
        orders: IOrderRepository,
        inventory: IInventoryRepository,
        customers: ICustomerRepository,
        notifications: INotificationService,
        gateway: PaymentGateway,
    ) -> None:
        self._orders = orders
        self._inventory = inventory
        self._customers = customers
        self._notifications = notifications
        self._gateway = gateway

    async def cancel(self, order_id: UUID, caller_id: Optional[UUID] = None) -> OrderRecord:
        """Cancel *order_id* on behalf of *caller_id* (``None`` for a guest).

        Raises:
            OrderNotFound: The order does not exist or is not the caller's.
            NotCancellable: The order is past ``PROCESSING`` or cancelled.
        """
        log = logger.bind(order_id=str(order_id))
        order = await self._commit_cancellation(order_id, caller_id)
        log.info("order.cancelled", payment_status=str(order.payment_status))

        await self._restore_stock(order)

        if order.uses_gateway and order.correlation_code:
            await best_effort(
                "cancellation.gateway_cancel",
                self._gateway.cancel_session(order.correlation_code),
                order_id=str(order.id),
                correlation_code=order.correlation_code,
            )

        refreshed = await self._orders.get_by_id(order.id) or order

        customer = None
        if refreshed.owner_id:
            customer = await best_effort(
                "cancellation.customer_lookup",
                self._customers.get_by_id(refreshed.owner_id),
                order_id=str(order.id),
            )
        await best_effort(
            "cancellation.notification",
            self._notifications.send_order_cancellation(build_notice(refreshed, customer)),
            order_id=str(order.id),
        )
        return refreshed

    async def _commit_cancellation(
        self,
        order_id: UUID,
        caller_id: Optional[UUID],
    ) -> OrderRecord:
        for _ in range(MAX_WRITE_ATTEMPTS):
            order = await self._orders.get_by_id(order_id)
            if order is None or not order.is_owned_by(caller_id):
                raise OrderNotFound()
            order.cancel()
            try:
                return await self._orders.save(order)
            except ConcurrentOrderUpdate:
                logger.info("order.cancel_retry_after_conflict", order_id=str(order_id))
        raise ConcurrentOrderUpdate()

    async def _restore_stock(self, order: OrderRecord) -> None:
        results = await asyncio.gather(
            *(
                self._inventory.increment_stock(item.variant_id, item.quantity)
                for item in order.items
            ),
            return_exceptions=True,
        )
        for item, result in zip(order.items, results):
            if isinstance(result, Exception):
                logger.error(
                    "cancellation.stock_restore.failed",
                    order_id=str(order.id),
                    variant_id=str(item.variant_id),
                    quantity=item.quantity,
                    error=str(result),
                )
