"""Analytics service.

Recomputes the admin dashboard on every read.  ``build_report`` is a
pure function over already-loaded records; ``AnalyticsService`` only
loads them.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Set, Tuple
from uuid import UUID

import structlog
from django.utils import timezone

from modules.orders.constants import (
    ANALYTICS_TOP_N,
    ANALYTICS_WINDOW_DAYS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.dtos import (
    AnalyticsReport,
    ProductSalesDTO,
    RecentOrderDTO,
    TopCustomerDTO,
)

if TYPE_CHECKING:
    from modules.catalog.dtos import VariantProductDTO
    from modules.catalog.repositories.interfaces import IInventoryRepository
    from modules.customers.dtos import CustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.domain import OrderRecord
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def build_report(
    orders: Iterable[OrderRecord],
    variant_products: Dict[UUID, VariantProductDTO],
    customers: Dict[UUID, CustomerDTO],
    now: datetime,
) -> AnalyticsReport:
    """Aggregate non-cancelled *orders* into an ``AnalyticsReport``.

    Line items whose variant is missing from *variant_products* are left
    out of the product ranking.
    """
    active = [order for order in orders if order.status != OrderStatus.CANCELLED]

    total_revenue = sum(
        (o.totals.total for o in active if o.payment_status == PaymentStatus.PAID), ZERO
    )
    gross = sum((o.totals.total for o in active), ZERO)
    avg_order_value = (gross / len(active)).quantize(CENTS) if active else ZERO

    identities: Set[Tuple[str, str]] = set()
    for order in active:
        if order.owner_id is not None:
            identities.add(("owner", str(order.owner_id)))
        elif order.guest_info is not None and order.guest_info.email:
            identities.add(("guest", order.guest_info.email.strip().lower()))

    return AnalyticsReport(
        total_revenue=total_revenue,
        total_orders=len(active),
        total_customers=len(identities),
        avg_order_value=avg_order_value,
        recent_orders=_recent_orders(active, customers),
        most_selling_products=_most_selling_products(active, variant_products),
        weekly_top_customers=_weekly_top_customers(active, customers, now),
    )


def _sort_key_created(order: OrderRecord) -> datetime:
    return order.created_at or datetime.min.replace(tzinfo=dt_timezone.utc)


def _recent_orders(
    orders: list[OrderRecord],
    customers: Dict[UUID, CustomerDTO],
) -> list[RecentOrderDTO]:
    recent = sorted(orders, key=_sort_key_created, reverse=True)[:ANALYTICS_TOP_N]
    rows = []
    for order in recent:
        customer = customers.get(order.owner_id) if order.owner_id else None
        if customer is not None:
            name, email = customer.name, customer.email
        elif order.guest_info is not None:
            name, email = order.guest_info.name or "Guest", order.guest_info.email
        else:
            name, email = "Guest", ""
        rows.append(
            RecentOrderDTO(
                id=order.id,
                order_number=order.order_number,
                customer_name=name,
                customer_email=email,
                total=order.totals.total,
                status=str(order.status),
                payment_status=str(order.payment_status),
                payment_method=str(order.payment_method),
                created_at=order.created_at,
            )
        )
    return rows


def _most_selling_products(
    orders: list[OrderRecord],
    variant_products: Dict[UUID, VariantProductDTO],
) -> list[ProductSalesDTO]:
    sold: Dict[UUID, int] = defaultdict(int)
    revenue: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    products: Dict[UUID, VariantProductDTO] = {}
    for order in orders:
        for item in order.items:
            product = variant_products.get(item.variant_id)
            if product is None:
                continue
            products[product.product_id] = product
            sold[product.product_id] += item.quantity
            revenue[product.product_id] += item.line_total

    ranked = sorted(sold, key=lambda pid: (-sold[pid], products[pid].name))
    return [
        ProductSalesDTO(
            product_id=pid,
            name=products[pid].name,
            image=products[pid].image,
            sold=sold[pid],
            revenue=revenue[pid],
        )
        for pid in ranked[:ANALYTICS_TOP_N]
    ]


def _weekly_top_customers(
    orders: list[OrderRecord],
    customers: Dict[UUID, CustomerDTO],
    now: datetime,
) -> list[TopCustomerDTO]:
    since = now - timedelta(days=ANALYTICS_WINDOW_DAYS)
    spent: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[UUID, int] = defaultdict(int)
    for order in orders:
        if order.owner_id is None or order.created_at is None or order.created_at < since:
            continue
        spent[order.owner_id] += order.totals.total
        counts[order.owner_id] += 1

    ranked = sorted(spent, key=lambda cid: spent[cid], reverse=True)[:ANALYTICS_TOP_N]
    rows = []
    for customer_id in ranked:
        customer = customers.get(customer_id)
        rows.append(
            TopCustomerDTO(
                customer_id=customer_id,
                name=customer.name if customer else "Unknown",
                email=customer.email if customer else "",
                total_spent=spent[customer_id],
                order_count=counts[customer_id],
            )
        )
    return rows


class AnalyticsService:
    """Loads orders and their joins, then delegates to ``build_report``."""

    def __init__(
        self,
        orders: IOrderRepository,
        inventory: IInventoryRepository,
        customers: ICustomerRepository,
    ) -> None:
        self._orders = orders
        self._inventory = inventory
        self._customers = customers

    async def get_analytics(self, now: Optional[datetime] = None) -> AnalyticsReport:
        now = now or timezone.now()
        orders = await self._orders.list(exclude_cancelled=True)

        variant_ids = {item.variant_id for order in orders for item in order.items}
        owner_ids = {order.owner_id for order in orders if order.owner_id is not None}
        variant_products, customers = await asyncio.gather(
            self._inventory.get_variant_products(variant_ids),
            self._customers.get_many(owner_ids),
        )

        report = build_report(orders, variant_products, customers, now)
        logger.info(
            "analytics.report_built",
            total_orders=report.total_orders,
            total_revenue=str(report.total_revenue),
        )
        return report
