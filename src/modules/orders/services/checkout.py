"""Checkout service (Use Case).

Turns a cart, or an explicit guest item list, into a committed order.

Processing order:
1. Resolve and validate items (variant exists, stock covers the request).
2. Freeze product snapshots and compute totals.
3. Persist the order (PENDING / PENDING).  This is the commit point.
4. Count the promotion usage (best effort).
5. Reserve stock with conditional decrements, concurrently.  A shortfall
   found here rolls the reservations back, cancels the order, and raises
   ``InsufficientStock``.
6. Clear the cart (cart checkout only, best effort).
7. Open a hosted payment session for gateway orders.
8. Accrue loyalty for cash-on-delivery orders with an owner (best effort).
9. Notify the customer (best effort).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog

from modules.orders.constants import MAX_WRITE_ATTEMPTS, PaymentMethod, PaymentStatus
from modules.orders.domain import (
    GatewayInfo,
    GuestInfo,
    LineItem,
    OrderRecord,
    OrderTotals,
    ProductSnapshot,
)
from modules.orders.dtos import CartCheckoutDTO, GuestCheckoutDTO
from modules.orders.exceptions import (
    ConcurrentOrderUpdate,
    EmptyCart,
    InsufficientStock,
    NoItems,
    PaymentSetupFailed,
    VariantNotFound,
)
from modules.orders.services.support import best_effort, build_notice
from modules.payments.exceptions import PaymentChannelError
from modules.payments.gateway import BuyerInfo, SessionItem

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.catalog.dtos import VariantDTO
    from modules.catalog.repositories.interfaces import IInventoryRepository
    from modules.customers.dtos import CustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.customers.services import LoyaltyService
    from modules.notifications.interfaces import INotificationService
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import PaymentGateway
    from modules.promotions.repositories.interfaces import IPromotionRepository

logger = structlog.get_logger(__name__)

DEFAULT_FRONTEND_URL = "http://localhost:8080"


class CheckoutService:
    """Application service for order creation.

    Every collaborator is received via constructor injection (DIP), the
    payment gateway included.
    """

    def __init__(
        self,
        orders: IOrderRepository,
        inventory: IInventoryRepository,
        carts: ICartRepository,
        customers: ICustomerRepository,
        promotions: IPromotionRepository,
        loyalty: LoyaltyService,
        notifications: INotificationService,
        gateway: PaymentGateway,
        frontend_url: str = DEFAULT_FRONTEND_URL,
    ) -> None:
        self._orders = orders
        self._inventory = inventory
        self._carts = carts
        self._customers = customers
        self._promotions = promotions
        self._loyalty = loyalty
        self._notifications = notifications
        self._gateway = gateway
        self._frontend_url = frontend_url.rstrip("/")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def create_from_cart(self, owner_id: UUID, payload: CartCheckoutDTO) -> OrderRecord:
        """Check out the owner's cart.

        Raises:
            EmptyCart: The cart has no items.
            VariantNotFound: A cart line points at a missing variant.
            InsufficientStock: Stock does not cover a line.
            PaymentSetupFailed: The gateway refused the payment session
                (the order exists and stays pending).
        """
        lines = await self._carts.get_items(owner_id)
        if not lines:
            raise EmptyCart()

        customer = await self._customers.get_by_id(owner_id)
        requested = [(line.variant_id, line.quantity) for line in lines]
        order = await self._checkout(
            requested=requested,
            payload=payload,
            owner_id=owner_id,
            guest_info=None,
        )

        await best_effort(
            "checkout.cart_clear",
            self._carts.clear(owner_id),
            order_id=str(order.id),
        )
        return await self._finish(order, customer)

    async def create_guest(self, payload: GuestCheckoutDTO) -> OrderRecord:
        """Check out an explicit item list for a guest.

        Raises:
            NoItems: ``payload.items`` is empty.
            VariantNotFound, InsufficientStock, PaymentSetupFailed: as for
                ``create_from_cart``.
        """
        if not payload.items:
            raise NoItems()

        info = payload.guest_info
        guest_info = GuestInfo(
            name=info.name,
            email=str(info.email),
            phone=info.phone,
            address=info.address,
        )
        requested = [(item.variant_id, item.quantity) for item in payload.items]
        order = await self._checkout(
            requested=requested,
            payload=payload,
            owner_id=None,
            guest_info=guest_info,
        )
        return await self._finish(order, None)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    async def _checkout(
        self,
        requested: Sequence[Tuple[UUID, int]],
        payload: CartCheckoutDTO,
        owner_id: Optional[UUID],
        guest_info: Optional[GuestInfo],
    ) -> OrderRecord:
        """Validate, commit, reserve stock, and count the promotion."""
        variants = await self._inventory.get_variants([vid for vid, _ in requested])
        items = self._build_items(requested, variants)
        totals = OrderTotals.compute(
            items,
            discount=payload.totals.discount,
            shipping_fee=payload.totals.shipping_fee,
        )

        draft = OrderRecord.place(
            owner_id=owner_id,
            guest_info=guest_info,
            items=items,
            totals=totals,
            payment_method=payload.payment_method.value,
            shipping_method=payload.shipping_method.value,
            discount_code=payload.discount_code or "",
            membership_discount=payload.membership_discount,
        )
        order = await self._orders.create(draft)

        log = logger.bind(order_id=str(order.id), owner_id=str(owner_id) if owner_id else None)
        log.info(
            "checkout.order_committed",
            total=str(order.totals.total),
            payment_method=str(order.payment_method),
            item_count=len(order.items),
        )

        order = await self._reserve_stock(order)

        if payload.discount_code:
            await best_effort(
                "checkout.promotion_usage",
                self._count_promotion(payload.discount_code),
                order_id=str(order.id),
                discount_code=payload.discount_code,
            )

        return order

    @staticmethod
    def _build_items(
        requested: Sequence[Tuple[UUID, int]],
        variants: Dict[UUID, VariantDTO],
    ) -> List[LineItem]:
        items: List[LineItem] = []
        short: List[UUID] = []
        for variant_id, quantity in requested:
            variant = variants.get(variant_id)
            if variant is None:
                raise VariantNotFound(variant_id)
            if variant.stock < quantity:
                short.append(variant_id)
                continue
            items.append(
                LineItem(
                    variant_id=variant.id,
                    quantity=quantity,
                    unit_price=variant.price,
                    product=ProductSnapshot(
                        name=variant.product_name,
                        brand=variant.brand,
                        size=variant.size,
                        color=variant.color,
                        image=variant.image,
                    ),
                )
            )
        if short:
            raise InsufficientStock(short)
        return items

    async def _count_promotion(self, code: str) -> None:
        promotion_id = await self._promotions.get_id_by_code(code)
        if promotion_id is not None:
            await self._promotions.increment_usage(promotion_id)

    async def _reserve_stock(self, order: OrderRecord) -> OrderRecord:
        """Decrement stock per line; compensate if any line comes up short."""
        results = await asyncio.gather(
            *(
                self._inventory.decrement_if_available(item.variant_id, item.quantity)
                for item in order.items
            ),
            return_exceptions=True,
        )

        reserved: List[LineItem] = []
        short: List[UUID] = []
        for item, result in zip(order.items, results):
            if isinstance(result, Exception):
                logger.error(
                    "checkout.stock_decrement.failed",
                    order_id=str(order.id),
                    variant_id=str(item.variant_id),
                    error=str(result),
                )
            elif result:
                reserved.append(item)
            else:
                short.append(item.variant_id)

        if not short:
            return order

        logger.warning(
            "checkout.stock_shortfall",
            order_id=str(order.id),
            variant_ids=[str(v) for v in short],
        )
        await self._release(order.id, reserved)
        await self._cancel_unfulfillable(order)
        raise InsufficientStock(short, order_id=order.id)

    async def _release(self, order_id: UUID, items: List[LineItem]) -> None:
        results = await asyncio.gather(
            *(self._inventory.increment_stock(item.variant_id, item.quantity) for item in items),
            return_exceptions=True,
        )
        for item, result in zip(items, results):
            if isinstance(result, Exception):
                logger.error(
                    "checkout.stock_release.failed",
                    order_id=str(order_id),
                    variant_id=str(item.variant_id),
                    error=str(result),
                )

    async def _cancel_unfulfillable(self, order: OrderRecord) -> None:
        for _ in range(MAX_WRITE_ATTEMPTS):
            order.cancel()
            try:
                await self._orders.save(order)
                return
            except ConcurrentOrderUpdate:
                fresh = await self._orders.get_by_id(order.id)
                if fresh is None or fresh.is_terminal:
                    return
                order = fresh
        raise ConcurrentOrderUpdate()

    async def _finish(
        self,
        order: OrderRecord,
        customer: Optional[CustomerDTO],
    ) -> OrderRecord:
        """Payment session, loyalty, and notification."""
        if order.uses_gateway:
            order = await self._open_payment_session(order, customer)

        if order.owner_id and order.payment_method == PaymentMethod.COD:
            await best_effort(
                "checkout.loyalty",
                self._loyalty.earn_points(
                    user_id=order.owner_id,
                    order_id=order.id,
                    revenue=order.totals.subtotal - order.totals.discount,
                ),
                order_id=str(order.id),
            )

        notice = build_notice(order, customer)
        if not order.uses_gateway or order.payment_status == PaymentStatus.PAID:
            send = self._notifications.send_order_confirmation(notice)
        else:
            send = self._notifications.send_order_received(notice)
        await best_effort("checkout.notification", send, order_id=str(order.id))

        return order

    async def _open_payment_session(
        self,
        order: OrderRecord,
        customer: Optional[CustomerDTO],
    ) -> OrderRecord:
        log = logger.bind(order_id=str(order.id))
        try:
            session = await self._gateway.create_session(
                order_id=str(order.id),
                amount=order.totals.total,
                items=[
                    SessionItem(
                        name=item.product.name,
                        quantity=item.quantity,
                        price=item.unit_price,
                    )
                    for item in order.items
                ],
                buyer=self._buyer(order, customer),
                return_url=f"{self._frontend_url}/orders/{order.id}?payment=success",
                cancel_url=f"{self._frontend_url}/checkout?payment=cancelled",
                description=f"Order #{order.order_number}",
            )
        except PaymentChannelError as exc:
            log.error("checkout.payment_session_rejected", code=exc.code, error=str(exc))
            raise PaymentSetupFailed(order_id=order.id, message=str(exc)) from exc
        except Exception:
            log.exception("checkout.payment_session.failed")
            return order

        order.attach_gateway_session(
            GatewayInfo(
                checkout_url=session.checkout_url,
                correlation_code=str(session.correlation_code),
            )
        )
        order = await self._orders.save(order)
        log.info("checkout.payment_session_opened", correlation_code=order.correlation_code)
        return order

    @staticmethod
    def _buyer(order: OrderRecord, customer: Optional[CustomerDTO]) -> BuyerInfo:
        if customer is not None:
            return BuyerInfo(
                name=customer.name,
                email=customer.email,
                phone=customer.phone,
                address=customer.address,
            )
        if order.guest_info is not None:
            return BuyerInfo(
                name=order.guest_info.name,
                email=order.guest_info.email,
                phone=order.guest_info.phone,
                address=order.guest_info.address,
            )
        return BuyerInfo()

