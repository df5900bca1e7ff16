"""Customer and loyalty ledger models.

Business rules implemented:
- Email is unique among customers.
- Loyalty points are accrued through ``LoyaltyTransaction`` rows; the
  customer's running balance and membership level are denormalised.
- At most one accrual per order (unique ``order_id``).
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.core.models import BaseModel
from modules.customers.constants import MembershipLevel

logger = structlog.get_logger(__name__)


class Customer(BaseModel):
    """Registered shopper (the "owner" of an order)."""

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    loyalty_points = models.PositiveIntegerField(default=0)
    membership_level = models.CharField(
        max_length=10,
        choices=MembershipLevel.choices,
        blank=True,
        default="",
    )
    membership_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class LoyaltyTransaction(BaseModel):
    """Append-only record of points earned for an order."""

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="loyalty_transactions",
    )
    order_id = models.UUIDField(unique=True)
    points_earned = models.IntegerField()
    revenue = models.DecimalField(max_digits=14, decimal_places=2)
    reason = models.CharField(max_length=120)

    class Meta:
        db_table = "loyalty_transactions"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.customer_id} +{self.points_earned} ({self.reason})"
