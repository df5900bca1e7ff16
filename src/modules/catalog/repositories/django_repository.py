"""Django ORM implementation of the inventory repository.

Stock changes are issued as ``UPDATE ... SET stock = stock +/- n`` so
concurrent checkouts never lose an update; the conditional variant adds
``WHERE stock >= n`` and reports whether a row matched.
"""

from __future__ import annotations

from typing import Dict, Iterable
from uuid import UUID

import structlog
from asgiref.sync import sync_to_async
from django.db.models import F

from modules.catalog.dtos import VariantDTO, VariantProductDTO
from modules.catalog.models import Variant
from modules.catalog.repositories.interfaces import IInventoryRepository

logger = structlog.get_logger(__name__)


class InventoryDjangoRepository(IInventoryRepository):
    """Concrete inventory repository backed by Django ORM."""

    async def get_variants(self, ids: Iterable[UUID]) -> Dict[UUID, VariantDTO]:
        return await sync_to_async(self._get_variants)(list(ids))

    async def increment_stock(self, variant_id: UUID, quantity: int) -> None:
        await sync_to_async(self._add_stock)(variant_id, quantity)

    async def decrement_if_available(self, variant_id: UUID, quantity: int) -> bool:
        return await sync_to_async(self._decrement_if_available)(variant_id, quantity)

    async def get_variant_products(
        self, ids: Iterable[UUID]
    ) -> Dict[UUID, VariantProductDTO]:
        return await sync_to_async(self._get_variant_products)(list(ids))

    # ------------------------------------------------------------------
    # Synchronous ORM work
    # ------------------------------------------------------------------

    def _get_variants(self, ids: list[UUID]) -> Dict[UUID, VariantDTO]:
        variants = Variant.objects.select_related("product").filter(id__in=ids)
        return {variant.id: VariantDTO.from_entity(variant) for variant in variants}

    def _add_stock(self, variant_id: UUID, delta: int) -> None:
        updated = Variant.objects.filter(id=variant_id).update(stock=F("stock") + delta)
        if not updated:
            logger.warning("inventory.variant_missing", variant_id=str(variant_id))
            return
        logger.info("inventory.stock_adjusted", variant_id=str(variant_id), delta=delta)

    def _decrement_if_available(self, variant_id: UUID, quantity: int) -> bool:
        updated = Variant.objects.filter(id=variant_id, stock__gte=quantity).update(
            stock=F("stock") - quantity
        )
        log = logger.bind(variant_id=str(variant_id), quantity=quantity)
        if not updated:
            log.warning("inventory.insufficient_stock")
            return False
        log.info("inventory.stock_reserved")
        return True

    def _get_variant_products(self, ids: list[UUID]) -> Dict[UUID, VariantProductDTO]:
        variants = Variant.objects.select_related("product").filter(id__in=ids)
        return {
            variant.id: VariantProductDTO(
                variant_id=variant.id,
                product_id=variant.product_id,
                name=variant.product.name,
                image=variant.display_image,
            )
            for variant in variants
        }
