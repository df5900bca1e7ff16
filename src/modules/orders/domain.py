"""Order aggregate as plain records.

Services work on these dataclasses rather than on Django models so that
async code never triggers a lazy ORM query.  Repositories translate
between the two.

State changes go through the methods on ``OrderRecord``; each one checks
its guard and queues the matching domain event for the outbox.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from uuid6 import uuid7

from modules.orders.constants import (
    CANCELLABLE_STATES,
    ORDER_NUMBER_LENGTH,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingMethod,
)
from modules.orders.events import (
    OrderCancelled,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import InvalidOrderStatus, NotCancellable
from shared.domain.events import DomainEventMixin

ZERO = Decimal("0")


@dataclass(frozen=True)
class ProductSnapshot:
    """Product facts copied onto a line item at purchase time."""

    name: str
    brand: str = ""
    size: str = ""
    color: str = ""
    image: str = ""


@dataclass(frozen=True)
class LineItem:
    variant_id: UUID
    quantity: int
    unit_price: Decimal
    product: ProductSnapshot

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    total: Decimal = ZERO

    @classmethod
    def compute(
        cls,
        items: List[LineItem],
        discount: Decimal = ZERO,
        shipping_fee: Decimal = ZERO,
    ) -> OrderTotals:
        """Totals from snapshot prices; the discount is capped at the subtotal."""
        subtotal = sum((item.line_total for item in items), ZERO)
        discount = min(max(Decimal(discount), ZERO), subtotal)
        shipping_fee = max(Decimal(shipping_fee), ZERO)
        return cls(
            subtotal=subtotal,
            discount=discount,
            shipping_fee=shipping_fee,
            total=subtotal - discount + shipping_fee,
        )


@dataclass(frozen=True)
class GuestInfo:
    name: str
    email: str
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class GatewayInfo:
    """Hosted-checkout session attached to an order."""

    checkout_url: str
    correlation_code: str


@dataclass
class OrderRecord(DomainEventMixin):
    """The order aggregate.

    ``version`` is the optimistic-concurrency token; repositories refuse
    to save a record whose version no longer matches storage.
    """

    id: UUID
    owner_id: Optional[UUID]
    guest_info: Optional[GuestInfo]
    items: List[LineItem]
    totals: OrderTotals
    payment_method: str = PaymentMethod.COD
    payment_status: str = PaymentStatus.PENDING
    status: str = OrderStatus.PENDING
    shipping_method: str = ShippingMethod.STANDARD
    discount_code: str = ""
    membership_discount: Decimal = ZERO
    gateway: Optional[GatewayInfo] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    _domain_events: list = field(default_factory=list, init=False, repr=False, compare=False)

    @classmethod
    def place(
        cls,
        owner_id: Optional[UUID],
        guest_info: Optional[GuestInfo],
        items: List[LineItem],
        totals: OrderTotals,
        payment_method: str = PaymentMethod.COD,
        shipping_method: str = ShippingMethod.STANDARD,
        discount_code: str = "",
        membership_discount: Decimal = ZERO,
    ) -> OrderRecord:
        """Build a new, not yet persisted order and queue ``OrderPlaced``."""
        order = cls(
            id=uuid7(),
            owner_id=owner_id,
            guest_info=guest_info,
            items=list(items),
            totals=totals,
            payment_method=payment_method,
            shipping_method=shipping_method,
            discount_code=discount_code,
            membership_discount=membership_discount,
        )
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                payment_method=str(payment_method),
                total=str(totals.total),
            )
        )
        return order

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def order_number(self) -> str:
        """Short human-facing code: the last characters of the id."""
        return self.id.hex[-ORDER_NUMBER_LENGTH:].upper()

    @property
    def is_guest(self) -> bool:
        return self.owner_id is None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def uses_gateway(self) -> bool:
        return self.payment_method == PaymentMethod.GATEWAY

    @property
    def checkout_url(self) -> str:
        return self.gateway.checkout_url if self.gateway else ""

    @property
    def correlation_code(self) -> Optional[str]:
        return self.gateway.correlation_code if self.gateway else None

    def is_owned_by(self, caller_id: Optional[UUID]) -> bool:
        """``None`` as caller means a guest, who may only touch ownerless orders."""
        if caller_id is None:
            return self.owner_id is None
        return self.owner_id == caller_id

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def transition_to(self, new_status: str) -> None:
        """Move the fulfillment status along the state machine."""
        if not self.can_transition_to(new_status):
            raise InvalidOrderStatus(
                f"Cannot transition from {self.status} to {new_status}."
            )
        old_status = self.status
        self.status = new_status
        self.add_domain_event(
            OrderStatusChanged(
                aggregate_id=self.id,
                old_status=str(old_status),
                new_status=str(new_status),
            )
        )

    def mark_paid(self) -> bool:
        """Apply a gateway success.  Returns ``False`` when nothing changes.

        A cancelled order stays cancelled; an already paid order is left
        untouched.
        """
        if self.status == OrderStatus.CANCELLED or self.payment_status == PaymentStatus.PAID:
            return False
        self.payment_status = PaymentStatus.PAID
        self.add_domain_event(OrderPaid(aggregate_id=self.id))
        if self.status == OrderStatus.PENDING:
            self.transition_to(OrderStatus.PROCESSING)
        return True

    def mark_payment_failed(self) -> bool:
        """Apply a gateway failure; only a pending payment can fail."""
        if self.payment_status != PaymentStatus.PENDING:
            return False
        self.payment_status = PaymentStatus.FAILED
        self.add_domain_event(OrderPaymentFailed(aggregate_id=self.id))
        return True

    def set_payment_status(self, new_status: str) -> None:
        """Administrative payment update: only ``PENDING`` may change."""
        if new_status not in PaymentStatus.values:
            raise InvalidOrderStatus(f"Unknown payment status {new_status}.")
        if new_status == self.payment_status:
            return
        if self.payment_status != PaymentStatus.PENDING or new_status == PaymentStatus.PENDING:
            raise InvalidOrderStatus(
                f"Cannot change payment status from {self.payment_status} to {new_status}."
            )
        if new_status == PaymentStatus.PAID:
            self.payment_status = PaymentStatus.PAID
            self.add_domain_event(OrderPaid(aggregate_id=self.id))
        else:
            self.mark_payment_failed()

    def cancel(self) -> None:
        """Cancel from ``PENDING``/``PROCESSING``.

        Gateway orders always end with payment ``FAILED``, whatever it
        was before; ``refund_due`` on the event flags a captured payment.
        """
        if self.status not in CANCELLABLE_STATES:
            raise NotCancellable()
        refund_due = self.payment_status == PaymentStatus.PAID
        self.transition_to(OrderStatus.CANCELLED)
        if self.uses_gateway and self.payment_status != PaymentStatus.FAILED:
            self.payment_status = PaymentStatus.FAILED
            self.add_domain_event(OrderPaymentFailed(aggregate_id=self.id))
        self.add_domain_event(OrderCancelled(aggregate_id=self.id, refund_due=refund_due))

    def attach_gateway_session(self, gateway: GatewayInfo) -> None:
        self.gateway = gateway

    def copy(self) -> OrderRecord:
        """Detached copy without queued events (used by in-memory stores)."""
        return replace(self, items=list(self.items))
