"""Helpers shared by the order services."""

from __future__ import annotations

from typing import Any, Awaitable, Optional, TypeVar

import structlog

from modules.customers.dtos import CustomerDTO
from modules.notifications.interfaces import OrderNotice
from modules.orders.domain import OrderRecord

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def best_effort(step: str, awaitable: Awaitable[T], **context: Any) -> Optional[T]:
    """Await a side effect whose failure must not fail the caller.

    Failures are logged as ``<step>.failed`` with the traceback and
    swallowed; ``None`` is returned in that case.
    """
    try:
        return await awaitable
    except Exception:
        logger.exception(f"{step}.failed", **context)
        return None


def build_notice(order: OrderRecord, customer: Optional[CustomerDTO] = None) -> OrderNotice:
    """Address a notice to the owner if known, else to the guest contact."""
    email = name = ""
    if customer is not None:
        email, name = customer.email, customer.name
    elif order.guest_info is not None:
        email, name = order.guest_info.email, order.guest_info.name
    return OrderNotice(
        order_id=order.id,
        order_number=order.order_number,
        email=email,
        name=name,
        total=order.totals.total,
        payment_method=str(order.payment_method),
        checkout_url=order.checkout_url,
    )
