"""Service wiring.

Builds each order service with its Django repositories and the gateway,
notifier and loyalty settings taken from ``django.conf.settings``.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings

from modules.carts.repositories import CartDjangoRepository
from modules.catalog.repositories import InventoryDjangoRepository
from modules.customers.constants import DEFAULT_POINTS_MULTIPLIER
from modules.customers.repositories import CustomerDjangoRepository
from modules.customers.services import LoyaltyService
from modules.notifications.services import EmailNotificationService
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services.analytics import AnalyticsService
from modules.orders.services.cancellation import CancellationService
from modules.orders.services.checkout import DEFAULT_FRONTEND_URL, CheckoutService
from modules.orders.services.queries import OrderService
from modules.orders.services.reconciliation import WebhookReconciler
from modules.payments.factory import build_gateway
from modules.payments.gateway import PaymentGateway
from modules.promotions.repositories import PromotionDjangoRepository


def build_loyalty_service() -> LoyaltyService:
    multiplier = getattr(settings, "LOYALTY_POINTS_MULTIPLIER", DEFAULT_POINTS_MULTIPLIER)
    return LoyaltyService(CustomerDjangoRepository(), multiplier=Decimal(str(multiplier)))


def build_checkout_service(gateway: PaymentGateway | None = None) -> CheckoutService:
    return CheckoutService(
        orders=OrderDjangoRepository(),
        inventory=InventoryDjangoRepository(),
        carts=CartDjangoRepository(),
        customers=CustomerDjangoRepository(),
        promotions=PromotionDjangoRepository(),
        loyalty=build_loyalty_service(),
        notifications=EmailNotificationService(),
        gateway=gateway or build_gateway(),
        frontend_url=getattr(settings, "FRONTEND_URL", DEFAULT_FRONTEND_URL),
    )


def build_webhook_reconciler(gateway: PaymentGateway | None = None) -> WebhookReconciler:
    return WebhookReconciler(
        orders=OrderDjangoRepository(),
        customers=CustomerDjangoRepository(),
        loyalty=build_loyalty_service(),
        notifications=EmailNotificationService(),
        gateway=gateway or build_gateway(),
        verify_signatures=getattr(settings, "PAYOS_VERIFY_WEBHOOK_SIGNATURE", False),
    )


def build_cancellation_service(gateway: PaymentGateway | None = None) -> CancellationService:
    return CancellationService(
        orders=OrderDjangoRepository(),
        inventory=InventoryDjangoRepository(),
        customers=CustomerDjangoRepository(),
        notifications=EmailNotificationService(),
        gateway=gateway or build_gateway(),
    )


def build_analytics_service() -> AnalyticsService:
    return AnalyticsService(
        orders=OrderDjangoRepository(),
        inventory=InventoryDjangoRepository(),
        customers=CustomerDjangoRepository(),
    )


def build_order_service() -> OrderService:
    return OrderService(OrderDjangoRepository())
