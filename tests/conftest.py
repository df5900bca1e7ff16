from decimal import Decimal

import pytest

from modules.customers.services import LoyaltyService
from modules.orders.services import (
    AnalyticsService,
    CancellationService,
    CheckoutService,
    OrderService,
    WebhookReconciler,
)
from modules.payments.fake_adapter import FakeGateway
from tests.fakes import (
    FRONTEND_URL,
    FakeCarts,
    FakeCustomers,
    FakeInventory,
    FakeOrderRepository,
    FakePromotions,
    RecordingNotifier,
)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


# ---------------------------------------------------------------------------
# In-memory ports
# ---------------------------------------------------------------------------


@pytest.fixture()
def orders():
    return FakeOrderRepository()


@pytest.fixture()
def inventory():
    return FakeInventory()


@pytest.fixture()
def carts():
    return FakeCarts()


@pytest.fixture()
def customers():
    return FakeCustomers()


@pytest.fixture()
def promotions():
    return FakePromotions()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def loyalty(customers):
    return LoyaltyService(customers, multiplier=Decimal("0.01"))


# ---------------------------------------------------------------------------
# Services wired to the in-memory ports
# ---------------------------------------------------------------------------


@pytest.fixture()
def checkout(orders, inventory, carts, customers, promotions, loyalty, notifier, gateway):
    return CheckoutService(
        orders=orders,
        inventory=inventory,
        carts=carts,
        customers=customers,
        promotions=promotions,
        loyalty=loyalty,
        notifications=notifier,
        gateway=gateway,
        frontend_url=FRONTEND_URL,
    )


@pytest.fixture()
def reconciler(orders, customers, loyalty, notifier, gateway):
    return WebhookReconciler(
        orders=orders,
        customers=customers,
        loyalty=loyalty,
        notifications=notifier,
        gateway=gateway,
    )


@pytest.fixture()
def cancellation(orders, inventory, customers, notifier, gateway):
    return CancellationService(
        orders=orders,
        inventory=inventory,
        customers=customers,
        notifications=notifier,
        gateway=gateway,
    )


@pytest.fixture()
def analytics(orders, inventory, customers):
    return AnalyticsService(orders=orders, inventory=inventory, customers=customers)


@pytest.fixture()
def order_service(orders):
    return OrderService(orders)
