"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import List
from uuid import UUID

import structlog
from asgiref.sync import sync_to_async

from modules.carts.dtos import CartLineDTO
from modules.carts.models import CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    async def get_items(self, owner_id: UUID) -> List[CartLineDTO]:
        return await sync_to_async(self._get_items)(owner_id)

    async def clear(self, owner_id: UUID) -> None:
        await sync_to_async(self._clear)(owner_id)

    def _get_items(self, owner_id: UUID) -> List[CartLineDTO]:
        lines = CartItem.objects.filter(cart__owner_id=owner_id).order_by("created_at")
        return [
            CartLineDTO(variant_id=line.variant_id, quantity=line.quantity)
            for line in lines
        ]

    def _clear(self, owner_id: UUID) -> None:
        deleted, _ = CartItem.objects.filter(cart__owner_id=owner_id).delete()
        logger.info("cart.cleared", owner_id=str(owner_id), removed=deleted)
