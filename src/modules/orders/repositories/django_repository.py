"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Public
methods are coroutines that hand the ORM work to ``sync_to_async``; the
synchronous halves run inside ``transaction.atomic()`` so the aggregate
(Order + OrderItems + history + outbox rows) is persisted atomically.

Concurrency control uses the ``version`` column: an update only matches
the row if the version read earlier is still current.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

import structlog
from asgiref.sync import sync_to_async
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.domain import (
    GatewayInfo,
    GuestInfo,
    LineItem,
    OrderRecord,
    OrderTotals,
    ProductSnapshot,
)
from modules.orders.exceptions import ConcurrentOrderUpdate, OrderNotFound
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    async def create(self, order: OrderRecord) -> OrderRecord:
        return await sync_to_async(self._create)(order)

    async def save(self, order: OrderRecord) -> OrderRecord:
        return await sync_to_async(self._save)(order)

    async def get_by_id(self, id: UUID | str) -> Optional[OrderRecord]:
        return await sync_to_async(self._get_by_id)(id)

    async def get_by_correlation_code(self, code: str) -> Optional[OrderRecord]:
        return await sync_to_async(self._get_by_correlation_code)(code)

    async def list(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        exclude_cancelled: bool = False,
        created_since: Optional[datetime] = None,
    ) -> List[OrderRecord]:
        return await sync_to_async(self._list)(
            owner_id, status, payment_status, exclude_cancelled, created_since
        )

    async def list_guest_orders(self, email: str) -> List[OrderRecord]:
        return await sync_to_async(self._list_guest_orders)(email)

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def _create(self, order: OrderRecord) -> OrderRecord:
        guest = order.guest_info
        row = Order(
            id=order.id,
            owner_id=order.owner_id,
            guest_name=guest.name if guest else "",
            guest_email=guest.email if guest else "",
            guest_phone=guest.phone if guest else "",
            guest_address=guest.address if guest else "",
            subtotal=order.totals.subtotal,
            discount=order.totals.discount,
            shipping_fee=order.totals.shipping_fee,
            total=order.totals.total,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            status=order.status,
            shipping_method=order.shipping_method,
            discount_code=order.discount_code or "",
            membership_discount=order.membership_discount,
            gateway_checkout_url=order.checkout_url,
            gateway_correlation_code=order.correlation_code,
        )
        row.save(force_insert=True)

        for position, item in enumerate(order.items):
            OrderItem(
                order=row,
                position=position,
                variant_id=item.variant_id,
                product_name=item.product.name,
                brand=item.product.brand,
                size=item.product.size,
                color=item.product.color,
                image=item.product.image,
                quantity=item.quantity,
                unit_price=item.unit_price,
            ).save()

        OrderStatusHistory.objects.create(
            order=row,
            tracked_field=OrderStatusHistory.STATUS,
            old_value=None,
            new_value=row.status,
            notes="Order placed",
        )
        event_count = self._flush_events(order)

        logger.bind(order_id=str(row.id), item_count=len(order.items)).info(
            "order.created", event_count=event_count
        )
        return self._get_by_id(row.id)

    # ------------------------------------------------------------------
    # Versioned update
    # ------------------------------------------------------------------

    @transaction.atomic
    def _save(self, order: OrderRecord) -> OrderRecord:
        current = Order.objects.filter(id=order.id).values("status", "payment_status").first()
        if current is None:
            raise OrderNotFound()

        updated = Order.objects.filter(id=order.id, version=order.version).update(
            status=order.status,
            payment_status=order.payment_status,
            gateway_checkout_url=order.checkout_url,
            gateway_correlation_code=order.correlation_code,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        log = logger.bind(order_id=str(order.id), version=order.version)
        if not updated:
            log.warning("order.version_conflict")
            raise ConcurrentOrderUpdate()

        for tracked_field in (OrderStatusHistory.STATUS, OrderStatusHistory.PAYMENT_STATUS):
            old_value = current[tracked_field]
            new_value = getattr(order, tracked_field)
            if old_value != new_value:
                OrderStatusHistory.objects.create(
                    order_id=order.id,
                    tracked_field=tracked_field,
                    old_value=old_value,
                    new_value=new_value,
                )
        event_count = self._flush_events(order)

        log.info(
            "order.saved",
            status=str(order.status),
            payment_status=str(order.payment_status),
            event_count=event_count,
        )
        return self._get_by_id(order.id)

    def _flush_events(self, order: OrderRecord) -> int:
        events = order.domain_events
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        order.clear_domain_events()
        return len(events)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _get_by_id(self, id: UUID | str) -> Optional[OrderRecord]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            row = self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None
        return _to_record(row) if row else None

    def _get_by_correlation_code(self, code: str) -> Optional[OrderRecord]:
        row = self._queryset().filter(gateway_correlation_code=str(code)).first()
        return _to_record(row) if row else None

    def _list(
        self,
        owner_id: Optional[UUID],
        status: Optional[str],
        payment_status: Optional[str],
        exclude_cancelled: bool,
        created_since: Optional[datetime],
    ) -> List[OrderRecord]:
        queryset = self._queryset()
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        if status:
            queryset = queryset.filter(status=status)
        if payment_status:
            queryset = queryset.filter(payment_status=payment_status)
        if exclude_cancelled:
            queryset = queryset.exclude(status=OrderStatus.CANCELLED)
        if created_since is not None:
            queryset = queryset.filter(created_at__gte=created_since)
        return _to_records(queryset)

    def _list_guest_orders(self, email: str) -> List[OrderRecord]:
        queryset = self._queryset().filter(owner__isnull=True, guest_email__iexact=email)
        return _to_records(queryset)

    @staticmethod
    def _queryset() -> QuerySet:
        return Order.objects.prefetch_related("items").order_by("-created_at", "-id")


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def _to_records(rows: Iterable[Order]) -> List[OrderRecord]:
    return [_to_record(row) for row in rows]


def _to_record(row: Order) -> OrderRecord:
    guest_info = None
    if row.owner_id is None:
        guest_info = GuestInfo(
            name=row.guest_name,
            email=row.guest_email,
            phone=row.guest_phone,
            address=row.guest_address,
        )
    gateway = None
    if row.gateway_correlation_code:
        gateway = GatewayInfo(
            checkout_url=row.gateway_checkout_url,
            correlation_code=row.gateway_correlation_code,
        )
    items = [
        LineItem(
            variant_id=item.variant_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            product=ProductSnapshot(
                name=item.product_name,
                brand=item.brand,
                size=item.size,
                color=item.color,
                image=item.image,
            ),
        )
        for item in row.items.all()
    ]
    return OrderRecord(
        id=row.id,
        owner_id=row.owner_id,
        guest_info=guest_info,
        items=items,
        totals=OrderTotals(
            subtotal=row.subtotal,
            discount=row.discount,
            shipping_fee=row.shipping_fee,
            total=row.total,
        ),
        payment_method=row.payment_method,
        payment_status=row.payment_status,
        status=row.status,
        shipping_method=row.shipping_method,
        discount_code=row.discount_code,
        membership_discount=row.membership_discount,
        gateway=gateway,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
