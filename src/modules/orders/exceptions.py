"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Every
error carries a stable ``code`` and the HTTP ``status_code`` a boundary
layer should translate it into.
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID


class OrderError(Exception):
    """Base class for order lifecycle errors."""

    code = "ORDER_ERROR"
    status_code = 400
    default_message = "Order operation failed."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class EmptyCart(OrderError):
    """Cart checkout was attempted with an empty cart."""

    code = "EMPTY_CART"
    default_message = "Cart is empty."


class NoItems(OrderError):
    """Guest checkout was attempted without items."""

    code = "NO_ITEMS"
    default_message = "No items provided."


class VariantNotFound(OrderError):
    """A requested variant does not exist."""

    code = "VARIANT_NOT_FOUND"
    status_code = 404
    default_message = "Variant not found."

    def __init__(self, variant_id: UUID) -> None:
        super().__init__(f"Variant {variant_id} not found.")
        self.variant_id = variant_id


class InsufficientStock(OrderError):
    """Not enough stock to fulfil one or more line items."""

    code = "INSUFFICIENT_STOCK"
    status_code = 409
    default_message = "Variant out of stock."

    def __init__(
        self,
        variant_ids: Iterable[UUID],
        order_id: Optional[UUID] = None,
    ) -> None:
        self.variant_ids = list(variant_ids)
        self.order_id = order_id
        joined = ", ".join(str(v) for v in self.variant_ids)
        super().__init__(f"Insufficient stock for variant(s): {joined}.")


class OrderNotFound(OrderError):
    """The order does not exist or does not belong to the caller."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Order not found."


class NotCancellable(OrderError):
    """Only pending or processing orders can be cancelled."""

    code = "NOT_CANCELLABLE"
    default_message = (
        "Order cannot be cancelled. Only pending or processing orders can be cancelled."
    )


class InvalidOrderStatus(OrderError):
    """An invalid fulfillment or payment status transition was attempted."""

    code = "INVALID_STATUS"


class PaymentSetupFailed(OrderError):
    """The gateway refused to open a payment session.

    The order has already been committed when this is raised; ``order_id``
    lets the caller deal with the pending order.
    """

    code = "PAYMENT_SETUP_FAILED"
    status_code = 502
    default_message = "Payment gateway could not create a payment session."

    def __init__(self, order_id: UUID, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.order_id = order_id


class OrderRequiresAuthentication(OrderError):
    """A guest endpoint was used to read an order that has an owner."""

    code = "AUTH_REQUIRED"
    status_code = 403
    default_message = "This order requires authentication."


class ConcurrentOrderUpdate(OrderError):
    """The order changed between read and write (optimistic lock lost)."""

    code = "CONCURRENT_UPDATE"
    status_code = 409
    default_message = "Order was modified concurrently."


class OrderDeletionForbidden(OrderError):
    """Orders are append-only history and are never deleted."""

    code = "DELETE_FORBIDDEN"
    status_code = 405
    default_message = "Orders cannot be deleted."
