"""Notification service interface.

Implementations decide *how* a message reaches the customer; the order
services only decide *which* message is due.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class OrderNotice:
    """Minimal order facts a notification needs."""

    order_id: UUID
    order_number: str
    email: str
    name: str
    total: Decimal
    payment_method: str
    checkout_url: str = ""


class INotificationService(ABC):
    @abstractmethod
    async def send_order_confirmation(self, notice: OrderNotice) -> None:
        """Order confirmed (cash on delivery, or gateway payment received)."""

    @abstractmethod
    async def send_order_received(self, notice: OrderNotice) -> None:
        """Order placed, gateway payment still pending."""

    @abstractmethod
    async def send_order_cancellation(self, notice: OrderNotice) -> None:
        """Order cancelled."""
