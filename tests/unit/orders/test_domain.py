"""Unit tests for the order aggregate (no storage involved)."""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.domain import (
    GatewayInfo,
    LineItem,
    OrderRecord,
    OrderTotals,
    ProductSnapshot,
)
from modules.orders.exceptions import InvalidOrderStatus, NotCancellable

pytestmark = pytest.mark.unit


def line(price="100000", quantity=1):
    return LineItem(
        variant_id=uuid4(),
        quantity=quantity,
        unit_price=Decimal(price),
        product=ProductSnapshot(name="Runner"),
    )


def new_order(payment_method=PaymentMethod.COD, owner_id=None):
    items = [line("100000", 2), line("50000", 1)]
    order = OrderRecord.place(
        owner_id=owner_id or uuid4(),
        guest_info=None,
        items=items,
        totals=OrderTotals.compute(items),
        payment_method=payment_method,
    )
    order.clear_domain_events()
    return order


def event_names(order):
    return [e.event_name for e in order.domain_events]


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class TestOrderTotals:
    def test_total_is_subtotal_minus_discount_plus_shipping(self):
        totals = OrderTotals.compute(
            [line("100000", 2), line("50000", 1)],
            discount=Decimal("20000"),
            shipping_fee=Decimal("30000"),
        )

        assert totals.subtotal == Decimal("250000")
        assert totals.total == Decimal("260000")

    def test_discount_never_exceeds_subtotal(self):
        totals = OrderTotals.compute([line("10000")], discount=Decimal("50000"))

        assert totals.discount == Decimal("10000")
        assert totals.total == Decimal("0")

    def test_negative_inputs_are_clamped(self):
        totals = OrderTotals.compute(
            [line("10000")], discount=Decimal("-5"), shipping_fee=Decimal("-5")
        )

        assert totals.total == Decimal("10000")


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class TestIdentity:
    def test_place_queues_order_placed(self):
        items = [line()]
        order = OrderRecord.place(
            owner_id=None, guest_info=None, items=items, totals=OrderTotals.compute(items)
        )

        assert event_names(order) == ["OrderPlaced"]
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING

    def test_order_number_is_last_six_hex_chars_upper(self):
        order = new_order()
        order.id = UUID("0190a5c4-1111-7000-8000-00000abcdef1")

        assert order.order_number == "BCDEF1"

    def test_guest_caller_only_owns_ownerless_orders(self):
        owner = uuid4()
        owned = new_order(owner_id=owner)
        guest = new_order()
        guest.owner_id = None

        assert owned.is_owned_by(owner)
        assert not owned.is_owned_by(None)
        assert not owned.is_owned_by(uuid4())
        assert guest.is_owned_by(None)

    def test_copy_drops_pending_events(self):
        order = new_order()
        order.transition_to(OrderStatus.PROCESSING)

        assert order.copy().domain_events == []
        assert event_names(order) == ["OrderStatusChanged"]


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class TestTransitions:
    @pytest.mark.parametrize(
        "path",
        [
            [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
            [OrderStatus.CANCELLED],
            [OrderStatus.PROCESSING, OrderStatus.CANCELLED],
        ],
    )
    def test_allowed_paths(self, path):
        order = new_order()
        for status in path:
            order.transition_to(status)

        assert order.status == path[-1]

    @pytest.mark.parametrize(
        "start,target",
        [
            (OrderStatus.PENDING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.PROCESSING),
            (OrderStatus.CANCELLED, OrderStatus.PENDING),
        ],
    )
    def test_forbidden_transitions(self, start, target):
        order = new_order()
        order.status = start

        with pytest.raises(InvalidOrderStatus):
            order.transition_to(target)

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states(self, status):
        order = new_order()
        order.status = status

        assert order.is_terminal


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------


class TestPayment:
    def test_mark_paid_moves_pending_to_processing(self):
        order = new_order(PaymentMethod.GATEWAY)

        assert order.mark_paid() is True
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.PROCESSING
        assert event_names(order) == ["OrderPaid", "OrderStatusChanged"]

    def test_mark_paid_twice_is_a_no_op(self):
        order = new_order(PaymentMethod.GATEWAY)
        order.mark_paid()
        order.clear_domain_events()

        assert order.mark_paid() is False
        assert order.domain_events == []

    def test_mark_paid_on_cancelled_order_changes_nothing(self):
        order = new_order(PaymentMethod.GATEWAY)
        order.cancel()

        assert order.mark_paid() is False
        assert order.status == OrderStatus.CANCELLED
        assert order.payment_status == PaymentStatus.FAILED

    def test_failure_only_from_pending(self):
        order = new_order(PaymentMethod.GATEWAY)
        order.mark_paid()

        assert order.mark_payment_failed() is False
        assert order.payment_status == PaymentStatus.PAID

    def test_admin_payment_update_only_from_pending(self):
        order = new_order()
        order.set_payment_status(PaymentStatus.FAILED)

        with pytest.raises(InvalidOrderStatus):
            order.set_payment_status(PaymentStatus.PAID)

    def test_admin_payment_update_rejects_unknown(self):
        with pytest.raises(InvalidOrderStatus):
            new_order().set_payment_status("REFUNDED")

    def test_admin_marking_paid_keeps_fulfillment_status(self):
        order = new_order()
        order.set_payment_status(PaymentStatus.PAID)

        assert order.status == OrderStatus.PENDING


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancel:
    def test_cod_cancel_keeps_payment_status(self):
        order = new_order()
        order.cancel()

        assert order.status == OrderStatus.CANCELLED
        assert order.payment_status == PaymentStatus.PENDING
        assert event_names(order) == ["OrderStatusChanged", "OrderCancelled"]

    def test_gateway_cancel_fails_payment(self):
        order = new_order(PaymentMethod.GATEWAY)
        order.attach_gateway_session(GatewayInfo("https://pay.example.test/web/1", "1"))
        order.cancel()

        assert order.payment_status == PaymentStatus.FAILED
        assert order.domain_events[-1].refund_due is False

    def test_paid_gateway_cancel_flags_refund(self):
        order = new_order(PaymentMethod.GATEWAY)
        order.mark_paid()
        order.cancel()

        assert order.payment_status == PaymentStatus.FAILED
        assert order.domain_events[-1].refund_due is True

    @pytest.mark.parametrize(
        "status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED]
    )
    def test_not_cancellable(self, status):
        order = new_order()
        order.status = status

        with pytest.raises(NotCancellable):
            order.cancel()
