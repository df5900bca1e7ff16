"""Django ORM implementation of the Customer repository.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising, the Service Layer decides what a missing row means.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional
from uuid import UUID

import structlog
from asgiref.sync import sync_to_async
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.customers.constants import membership_level_for
from modules.customers.dtos import CustomerDTO
from modules.customers.models import Customer, LoyaltyTransaction
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    async def get_by_id(self, id: UUID | str) -> Optional[CustomerDTO]:
        return await sync_to_async(self._get_by_id)(id)

    async def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, CustomerDTO]:
        return await sync_to_async(self._get_many)(list(ids))

    async def record_loyalty(
        self,
        customer_id: UUID,
        order_id: UUID,
        points: int,
        revenue: Decimal,
        reason: str,
    ) -> Optional[int]:
        return await sync_to_async(self._record_loyalty)(
            customer_id, order_id, points, revenue, reason
        )

    # ------------------------------------------------------------------
    # Synchronous ORM work
    # ------------------------------------------------------------------

    def _get_by_id(self, id: UUID | str) -> Optional[CustomerDTO]:
        try:
            customer = Customer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None
        return CustomerDTO.from_entity(customer) if customer else None

    def _get_many(self, ids: list[UUID]) -> Dict[UUID, CustomerDTO]:
        return {
            customer.id: CustomerDTO.from_entity(customer)
            for customer in Customer.objects.filter(id__in=ids)
        }

    @transaction.atomic
    def _record_loyalty(
        self,
        customer_id: UUID,
        order_id: UUID,
        points: int,
        revenue: Decimal,
        reason: str,
    ) -> Optional[int]:
        customer = Customer.objects.select_for_update().filter(id=customer_id).first()
        log = logger.bind(customer_id=str(customer_id), order_id=str(order_id))
        if not customer:
            log.warning("loyalty.customer_missing")
            return None
        if LoyaltyTransaction.objects.filter(order_id=order_id).exists():
            log.info("loyalty.already_recorded")
            return None

        LoyaltyTransaction.objects.create(
            customer=customer,
            order_id=order_id,
            points_earned=points,
            revenue=revenue,
            reason=reason,
        )
        customer.loyalty_points += points
        customer.membership_level = membership_level_for(customer.loyalty_points)
        customer.membership_updated_at = timezone.now()
        customer.save(
            update_fields=["loyalty_points", "membership_level", "membership_updated_at"]
        )
        log.info("loyalty.points_recorded", points=points, balance=customer.loyalty_points)
        return customer.loyalty_points
