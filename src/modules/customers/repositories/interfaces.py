"""Customer repository interface.

Read side for notification/loyalty targeting plus the loyalty ledger
write used by ``LoyaltyService``.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.dtos import CustomerDTO


class ICustomerRepository(IRepository["CustomerDTO"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    async def get_by_id(self, id: UUID | str) -> Optional[CustomerDTO]:
        """Retrieve a customer by primary key."""

    @abstractmethod
    async def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, CustomerDTO]:
        """Return the customers that exist among *ids*, keyed by id."""

    @abstractmethod
    async def record_loyalty(
        self,
        customer_id: UUID,
        order_id: UUID,
        points: int,
        revenue: Decimal,
        reason: str,
    ) -> Optional[int]:
        """Append a ledger row and add *points* to the customer's balance.

        Returns the new balance, or ``None`` if the customer does not
        exist or the order already has an accrual.
        """
