"""Order use cases."""

from modules.orders.services.analytics import AnalyticsService, build_report
from modules.orders.services.cancellation import CancellationService
from modules.orders.services.checkout import CheckoutService
from modules.orders.services.queries import OrderService
from modules.orders.services.reconciliation import WebhookReconciler

__all__ = [
    "AnalyticsService",
    "CancellationService",
    "CheckoutService",
    "OrderService",
    "WebhookReconciler",
    "build_report",
]
