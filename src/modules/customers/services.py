"""Loyalty service (Use Case).

Converts order revenue into loyalty points for registered customers.
Points are ``floor(revenue * multiplier)``; zero-point accruals are
skipped.  The ledger guarantees one accrual per order.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.customers.constants import DEFAULT_POINTS_MULTIPLIER

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class LoyaltyService:
    """Application service for loyalty accrual.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: ICustomerRepository,
        multiplier: Decimal = DEFAULT_POINTS_MULTIPLIER,
    ) -> None:
        self._repo = repository
        self._multiplier = Decimal(multiplier)

    def points_for(self, revenue: Decimal) -> int:
        return int((Decimal(revenue) * self._multiplier).to_integral_value(ROUND_FLOOR))

    async def earn_points(
        self,
        user_id: Optional[UUID],
        order_id: UUID,
        revenue: Decimal,
        reason: str = "Order completion",
    ) -> int:
        """Accrue points for *order_id*; return the points awarded (0 if none)."""
        if not user_id or not revenue:
            return 0

        points = self.points_for(revenue)
        if points <= 0:
            return 0

        balance = await self._repo.record_loyalty(
            customer_id=user_id,
            order_id=order_id,
            points=points,
            revenue=Decimal(revenue),
            reason=reason,
        )
        if balance is None:
            return 0

        logger.info(
            "loyalty.points_earned",
            customer_id=str(user_id),
            order_id=str(order_id),
            points=points,
            reason=reason,
        )
        return points
