"""Inventory repository interface.

Stock mutations are single atomic statements at the store layer; there
is no cross-request lock on a variant.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable
from uuid import UUID

if TYPE_CHECKING:
    from modules.catalog.dtos import VariantDTO, VariantProductDTO


class IInventoryRepository(ABC):
    """Repository contract for variant price and stock."""

    @abstractmethod
    async def get_variants(self, ids: Iterable[UUID]) -> Dict[UUID, VariantDTO]:
        """Return the variants that exist among *ids*, keyed by id."""

    @abstractmethod
    async def increment_stock(self, variant_id: UUID, quantity: int) -> None:
        """Atomically add *quantity* to the variant's stock."""

    @abstractmethod
    async def decrement_if_available(self, variant_id: UUID, quantity: int) -> bool:
        """Subtract *quantity* only if enough stock remains.

        Returns ``False`` (and changes nothing) when stock is insufficient
        or the variant does not exist.
        """

    @abstractmethod
    async def get_variant_products(
        self, ids: Iterable[UUID]
    ) -> Dict[UUID, VariantProductDTO]:
        """Map variant ids to their (still existing) product."""
