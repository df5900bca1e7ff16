"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order is committed."""

    payment_method: str = ""
    total: str = "0"


@dataclass(frozen=True)
class OrderPaid(DomainEvent):
    """Raised when the gateway confirms payment."""


@dataclass(frozen=True)
class OrderPaymentFailed(DomainEvent):
    """Raised when payment is reported failed (or forced failed on cancel)."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on any fulfillment status change."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    refund_due: bool = False
