"""Promotion repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID


class IPromotionRepository(ABC):
    """Repository contract for discount codes."""

    @abstractmethod
    async def get_id_by_code(self, code: str) -> Optional[UUID]:
        """Look a promotion up by code (case-insensitive)."""

    @abstractmethod
    async def increment_usage(self, promotion_id: UUID) -> None:
        """Atomically bump the promotion's usage counter."""
