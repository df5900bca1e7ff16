"""Product and Variant models (inventory store).

Business rules implemented:
- A variant is the purchasable unit: it carries its own price and stock.
- Stock can never be negative (check constraint + conditional decrement
  in the repository).
- (product, size, color) is unique.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product grouping one or more variants."""

    name = models.CharField(max_length=255)
    brand = models.CharField(max_length=120, blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_products"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Variant(BaseModel):
    """A size/color combination of a product with its own price and stock."""

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="variants",
    )
    sku = models.CharField(max_length=64, unique=True)
    size = models.CharField(max_length=20)
    color = models.CharField(max_length=40)
    image = models.URLField(max_length=500, blank=True, default="")
    price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock = models.IntegerField(default=0)

    class Meta:
        db_table = "catalog_variants"
        ordering = ["sku"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "size", "color"],
                name="catalog_variant_unique_option",
            ),
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="catalog_variant_stock_non_negative",
            ),
        ]

    @property
    def display_image(self) -> str:
        """Variant image, falling back to the product image."""
        return self.image or self.product.image

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku} ({self.size}/{self.color})"
