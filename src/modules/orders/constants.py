"""Order domain constants.

Defines status choices and the valid fulfillment transitions for the
order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """Fulfillment status."""

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"


class PaymentMethod(models.TextChoices):
    COD = "COD", "Cash on delivery"
    GATEWAY = "GATEWAY", "Hosted payment gateway"


class ShippingMethod(models.TextChoices):
    STANDARD = "STANDARD", "Standard"
    EXPRESS = "EXPRESS", "Express"
    FREE = "FREE", "Free"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

ORDER_NUMBER_LENGTH = 6

# Optimistic-concurrency retries for read-modify-write on an order.
MAX_WRITE_ATTEMPTS = 3

# Gateway webhook / acknowledgement codes.
WEBHOOK_SUCCESS_CODE = "00"
WEBHOOK_SUCCESS_DESC = "success"
WEBHOOK_FAILURE_CODE = "01"

ANALYTICS_TOP_N = 5
ANALYTICS_WINDOW_DAYS = 7
