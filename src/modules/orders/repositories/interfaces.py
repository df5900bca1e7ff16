"""Order repository interface.

Extends ``IRepository[OrderRecord]`` with the methods the order services
need: atomic creation with items, version-checked saves, and the look-ups
used by webhooks, guest tracking and reporting.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository
from modules.orders.domain import OrderRecord


class IOrderRepository(IRepository[OrderRecord]):
    """Repository contract for the Order aggregate root.

    The aggregate includes its line items; items are written once on
    creation and never updated.
    """

    @abstractmethod
    async def create(self, order: OrderRecord) -> OrderRecord:
        """Persist a new order with its items atomically.

        Returns the stored record (timestamps and ``version`` filled in).
        Queued domain events are written to the outbox in the same
        transaction.
        """

    @abstractmethod
    async def save(self, order: OrderRecord) -> OrderRecord:
        """Persist status, payment status and gateway info.

        Succeeds only when the stored ``version`` still equals
        ``order.version``; otherwise raises ``ConcurrentOrderUpdate``.
        Raises ``OrderNotFound`` when the order does not exist.
        """

    @abstractmethod
    async def get_by_correlation_code(self, code: str) -> Optional[OrderRecord]:
        """Retrieve the order whose gateway session has *code*."""

    @abstractmethod
    async def list(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        exclude_cancelled: bool = False,
        created_since: Optional[datetime] = None,
    ) -> List[OrderRecord]:
        """List orders newest first, optionally filtered."""

    @abstractmethod
    async def list_guest_orders(self, email: str) -> List[OrderRecord]:
        """Ownerless orders whose guest email equals *email* (case-insensitive)."""
