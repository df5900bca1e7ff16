"""Cart repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List
from uuid import UUID

if TYPE_CHECKING:
    from modules.carts.dtos import CartLineDTO


class ICartRepository(ABC):
    """Repository contract for a customer's cart."""

    @abstractmethod
    async def get_items(self, owner_id: UUID) -> List[CartLineDTO]:
        """Return the cart lines in insertion order (empty if no cart)."""

    @abstractmethod
    async def clear(self, owner_id: UUID) -> None:
        """Remove every line from the owner's cart."""
