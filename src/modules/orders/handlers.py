"""Event handlers for Orders domain events.

Handlers receive outbox payloads relayed by ``core.publish_outbox_events``.
"""

from __future__ import annotations

from typing import Any, Dict

import structlog

from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler):
    def handle(self, event_name: str, payload: Dict[str, Any]) -> None:
        logger.info(
            "order.placed_event_processed",
            order_id=payload.get("aggregate_id"),
            payment_method=payload.get("payment_method"),
            total=payload.get("total"),
        )


class OrderStatusChangedHandler(IEventHandler):
    def handle(self, event_name: str, payload: Dict[str, Any]) -> None:
        logger.info(
            "order.status_changed_event_processed",
            order_id=payload.get("aggregate_id"),
            old_status=payload.get("old_status"),
            new_status=payload.get("new_status"),
        )


class OrderCancelledHandler(IEventHandler):
    """Flags cancelled orders whose payment had already been captured."""

    def handle(self, event_name: str, payload: Dict[str, Any]) -> None:
        log = logger.bind(order_id=payload.get("aggregate_id"))
        if payload.get("refund_due"):
            log.warning("order.refund_required")
        else:
            log.info("order.cancelled_event_processed")


order_placed_handler = OrderPlacedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
