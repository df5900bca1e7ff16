"""Django ORM implementation of the Promotion repository."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import structlog
from asgiref.sync import sync_to_async
from django.db.models import F

from modules.promotions.models import Promotion
from modules.promotions.repositories.interfaces import IPromotionRepository

logger = structlog.get_logger(__name__)


class PromotionDjangoRepository(IPromotionRepository):
    """Concrete Promotion repository backed by Django ORM."""

    async def get_id_by_code(self, code: str) -> Optional[UUID]:
        return await sync_to_async(self._get_id_by_code)(code)

    async def increment_usage(self, promotion_id: UUID) -> None:
        await sync_to_async(self._increment_usage)(promotion_id)

    def _get_id_by_code(self, code: str) -> Optional[UUID]:
        return (
            Promotion.objects.filter(code=code.strip().upper())
            .values_list("id", flat=True)
            .first()
        )

    def _increment_usage(self, promotion_id: UUID) -> None:
        Promotion.objects.filter(id=promotion_id).update(used_count=F("used_count") + 1)
        logger.info("promotion.usage_incremented", promotion_id=str(promotion_id))
