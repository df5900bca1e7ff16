"""Catalog DTOs handed to the order services.

Immutable snapshots of inventory rows, so async service code never
touches lazily-loading Django relations.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.catalog.models import Variant


class VariantDTO(BaseModel):
    """A purchasable variant joined with its product fields."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    brand: str
    size: str
    color: str
    image: str
    price: Decimal
    stock: int

    @classmethod
    def from_entity(cls, variant: Variant) -> VariantDTO:
        """Build from a ``Variant`` with ``product`` already selected."""
        return cls(
            id=variant.id,
            product_id=variant.product_id,
            product_name=variant.product.name or "Product",
            brand=variant.product.brand,
            size=variant.size,
            color=variant.color,
            image=variant.display_image,
            price=variant.price,
            stock=variant.stock,
        )


class VariantProductDTO(BaseModel):
    """Variant -> product join used by sales reporting."""

    model_config = ConfigDict(frozen=True)

    variant_id: UUID
    product_id: UUID
    name: str
    image: str
