"""Order query and administration service.

Read paths for customers and guests, plus the administrative status
updates.  Cancellation is not offered here: it must go through
``CancellationService`` so stock is restored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog

from modules.orders.constants import MAX_WRITE_ATTEMPTS, ORDER_NUMBER_LENGTH, OrderStatus
from modules.orders.domain import OrderRecord
from modules.orders.exceptions import (
    ConcurrentOrderUpdate,
    InvalidOrderStatus,
    OrderNotFound,
    OrderRequiresAuthentication,
)

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for order look-ups and admin updates."""

    def __init__(self, repository: IOrderRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_for_owner(self, owner_id: UUID) -> List[OrderRecord]:
        return await self._repo.list(owner_id=owner_id)

    async def list_all(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> List[OrderRecord]:
        return await self._repo.list(status=status, payment_status=payment_status)

    async def get_order(self, order_id: UUID | str, owner_id: Optional[UUID] = None) -> OrderRecord:
        """Fetch an order; with *owner_id* it must belong to that owner."""
        order = await self._repo.get_by_id(order_id)
        if order is None or (owner_id is not None and order.owner_id != owner_id):
            raise OrderNotFound()
        return order

    async def get_guest_order(self, order_id: UUID | str) -> OrderRecord:
        order = await self._repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound()
        if order.owner_id is not None:
            raise OrderRequiresAuthentication()
        return order

    async def find_guest_order(self, email: str, identifier: str) -> Optional[OrderRecord]:
        """Find a guest order by contact email and order id or short code.

        *identifier* may be the full order id or the short order number
        (last characters of the id, case-insensitive, optional ``#``).
        Only ownerless orders whose stored email equals *email* exactly
        match.  Returns ``None`` when nothing matches.
        """
        code = (identifier or "").strip().lstrip("#").strip()
        email = (email or "").strip()
        if not code or not email:
            return None

        try:
            order_id = UUID(code)
        except ValueError:
            order_id = None

        if order_id is not None:
            order = await self._repo.get_by_id(order_id)
            if order and order.is_guest and order.guest_info and order.guest_info.email == email:
                return order
            return None

        if len(code) != ORDER_NUMBER_LENGTH:
            return None
        suffix = code.lower()
        for order in await self._repo.list_guest_orders(email):
            if order.guest_info and order.guest_info.email != email:
                continue
            if order.id.hex.endswith(suffix):
                return order
        return None

    # ------------------------------------------------------------------
    # Administrative updates
    # ------------------------------------------------------------------

    async def update_status(self, order_id: UUID | str, new_status: str) -> OrderRecord:
        """Move fulfillment along the state machine.

        Raises:
            OrderNotFound: No such order.
            InvalidOrderStatus: Transition not allowed, or ``CANCELLED``.
        """
        if new_status == OrderStatus.CANCELLED:
            raise InvalidOrderStatus("Use order cancellation to cancel an order.")
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown status {new_status}.")

        for _ in range(MAX_WRITE_ATTEMPTS):
            order = await self.get_order(order_id)
            order.transition_to(new_status)
            try:
                order = await self._repo.save(order)
            except ConcurrentOrderUpdate:
                continue
            logger.info("order.status_updated", order_id=str(order.id), status=new_status)
            return order
        raise ConcurrentOrderUpdate()

    async def update_payment_status(self, order_id: UUID | str, new_status: str) -> OrderRecord:
        """Set payment status by hand; only a ``PENDING`` payment can change."""
        for _ in range(MAX_WRITE_ATTEMPTS):
            order = await self.get_order(order_id)
            if order.payment_status == new_status:
                return order
            order.set_payment_status(new_status)
            try:
                order = await self._repo.save(order)
            except ConcurrentOrderUpdate:
                continue
            logger.info(
                "order.payment_status_updated", order_id=str(order.id), payment_status=new_status
            )
            return order
        raise ConcurrentOrderUpdate()
