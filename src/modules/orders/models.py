"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- An order is owned by a customer or carries guest contact info, never both.
- OrderItem snapshots the product (name, brand, size, color, image, unit
  price) at purchase time; later catalog edits never change it.
- Totals are stored as computed at checkout (``total = subtotal - discount
  + shipping_fee``).
- ``version`` is the optimistic-concurrency token bumped on every write.
- Orders are never deleted; ``delete()`` raises ``OrderDeletionForbidden``.
- Each status or payment-status change is recorded in OrderStatusHistory.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingMethod,
)
from modules.orders.exceptions import OrderDeletionForbidden


class Order(BaseModel):
    """Order aggregate root."""

    owner: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    guest_name: models.CharField = models.CharField(max_length=200, blank=True, default="")
    guest_email: models.EmailField = models.EmailField(blank=True, default="")
    guest_phone: models.CharField = models.CharField(max_length=30, blank=True, default="")
    guest_address: models.TextField = models.TextField(blank=True, default="")

    subtotal: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    discount: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    shipping_fee: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    payment_method: models.CharField = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.COD
    )
    payment_status: models.CharField = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    status: models.CharField = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    shipping_method: models.CharField = models.CharField(
        max_length=20, choices=ShippingMethod.choices, default=ShippingMethod.STANDARD
    )
    discount_code: models.CharField = models.CharField(max_length=50, blank=True, default="")
    membership_discount: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    gateway_checkout_url: models.URLField = models.URLField(
        max_length=500, blank=True, default=""
    )
    gateway_correlation_code: models.CharField = models.CharField(  # noqa: DJ01
        max_length=32, unique=True, null=True, blank=True
    )

    version: models.PositiveIntegerField = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["guest_email"], name="orders_guest_email_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    @property
    def order_number(self) -> str:
        return self.id.hex[-6:].upper()

    def delete(self, *args: Any, **kwargs: Any) -> Any:
        raise OrderDeletionForbidden()

    def __str__(self) -> str:
        return f"#{self.order_number} ({self.status}/{self.payment_status})"


class OrderItem(BaseModel):
    """Line item with a snapshot of the purchased variant.

    ``variant_id`` is a plain reference: the variant may later be removed
    from the catalog without touching order history.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(default=0)
    variant_id: models.UUIDField = models.UUIDField(db_index=True)
    product_name: models.CharField = models.CharField(max_length=200)
    brand: models.CharField = models.CharField(max_length=100, blank=True, default="")
    size: models.CharField = models.CharField(max_length=20, blank=True, default="")
    color: models.CharField = models.CharField(max_length=50, blank=True, default="")
    image: models.URLField = models.URLField(max_length=500, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(max_digits=14, decimal_places=2)
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=14, decimal_places=2, editable=False
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for status and payment-status changes."""

    STATUS = "status"
    PAYMENT_STATUS = "payment_status"
    FIELD_CHOICES = [(STATUS, "Status"), (PAYMENT_STATUS, "Payment status")]

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    tracked_field: models.CharField = models.CharField(
        max_length=20, choices=FIELD_CHOICES, default=STATUS
    )
    old_value: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, null=True, blank=True
    )
    new_value: models.CharField = models.CharField(max_length=20)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} {self.tracked_field}: {self.old_value} -> {self.new_value}"
