"""Payment gateway port (abstract interface).

Defines the contract every hosted-payment adapter implements, so the
order services can be handed ``PayOSGateway`` in production and
``FakeGateway`` in development and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SessionItem:
    name: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class BuyerInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class PaymentSession:
    """Hosted checkout opened for an order."""

    checkout_url: str
    correlation_code: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


class PaymentGateway(ABC):
    """Abstract hosted-payment gateway."""

    @abstractmethod
    async def create_session(
        self,
        order_id: str,
        amount: Decimal,
        items: List[SessionItem],
        buyer: BuyerInfo,
        return_url: str,
        cancel_url: str,
        description: Optional[str] = None,
    ) -> PaymentSession:
        """Open a hosted payment session for *amount*."""

    @abstractmethod
    async def cancel_session(self, correlation_code: str, reason: str = "Cancel order") -> None:
        """Cancel a session that has not been paid yet."""

    @abstractmethod
    def verify_webhook_signature(self, data: Dict[str, Any], signature: str) -> bool:
        """Check that a webhook ``data`` block was signed by the gateway."""
