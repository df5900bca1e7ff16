"""In-memory implementations of the service ports for unit tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from django.utils import timezone

from modules.carts.dtos import CartLineDTO
from modules.carts.repositories.interfaces import ICartRepository
from modules.catalog.dtos import VariantDTO, VariantProductDTO
from modules.catalog.repositories.interfaces import IInventoryRepository
from modules.customers.dtos import CustomerDTO
from modules.customers.repositories.interfaces import ICustomerRepository
from modules.notifications.interfaces import INotificationService, OrderNotice
from modules.orders.constants import OrderStatus
from modules.orders.domain import OrderRecord
from modules.orders.exceptions import ConcurrentOrderUpdate, OrderNotFound
from modules.orders.repositories.interfaces import IOrderRepository
from modules.promotions.repositories.interfaces import IPromotionRepository

FRONTEND_URL = "https://shop.example.test"


class FakeOrderRepository(IOrderRepository):
    """Stores detached copies and enforces the version check like the ORM one."""

    def __init__(self) -> None:
        self.orders: Dict[UUID, OrderRecord] = {}
        self.events: List[str] = []
        self.fail_create = False
        self.before_save: Optional[Callable[[OrderRecord], None]] = None
        self._clock = timezone.now()

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _store(self, order: OrderRecord) -> OrderRecord:
        self.events.extend(event.event_name for event in order.domain_events)
        order.clear_domain_events()
        self.orders[order.id] = order.copy()
        return order.copy()

    async def create(self, order: OrderRecord) -> OrderRecord:
        if self.fail_create:
            raise RuntimeError("database unavailable")
        order.version = 1
        order.created_at = order.updated_at = self._tick()
        return self._store(order)

    async def save(self, order: OrderRecord) -> OrderRecord:
        if self.before_save is not None:
            hook, self.before_save = self.before_save, None
            hook(order)
        stored = self.orders.get(order.id)
        if stored is None:
            raise OrderNotFound()
        if stored.version != order.version:
            raise ConcurrentOrderUpdate()
        order.version += 1
        order.updated_at = self._tick()
        return self._store(order)

    async def get_by_id(self, id) -> Optional[OrderRecord]:
        try:
            key = id if isinstance(id, UUID) else UUID(str(id))
        except ValueError:
            return None
        stored = self.orders.get(key)
        return stored.copy() if stored else None

    async def get_by_correlation_code(self, code: str) -> Optional[OrderRecord]:
        for stored in self.orders.values():
            if stored.correlation_code == str(code):
                return stored.copy()
        return None

    async def list(
        self,
        owner_id=None,
        status=None,
        payment_status=None,
        exclude_cancelled=False,
        created_since=None,
    ) -> List[OrderRecord]:
        rows = []
        for stored in self.orders.values():
            if owner_id is not None and stored.owner_id != owner_id:
                continue
            if status and stored.status != status:
                continue
            if payment_status and stored.payment_status != payment_status:
                continue
            if exclude_cancelled and stored.status == OrderStatus.CANCELLED:
                continue
            if created_since is not None and stored.created_at < created_since:
                continue
            rows.append(stored.copy())
        return sorted(rows, key=lambda o: o.created_at, reverse=True)

    async def list_guest_orders(self, email: str) -> List[OrderRecord]:
        return [
            stored.copy()
            for stored in self.orders.values()
            if stored.owner_id is None
            and stored.guest_info is not None
            and stored.guest_info.email.lower() == email.lower()
        ]

    def bump_version(self, order_id: UUID, **changes) -> None:
        """Simulate a write from another process."""
        stored = self.orders[order_id]
        for field, value in changes.items():
            setattr(stored, field, value)
        stored.version += 1


class FakeInventory(IInventoryRepository):
    def __init__(self) -> None:
        self.variants: Dict[UUID, VariantDTO] = {}
        self.stock: Dict[UUID, int] = {}
        self.product_names: Dict[UUID, str] = {}
        self.failing: set[UUID] = set()
        self.steal_before_decrement: Dict[UUID, int] = {}

    def add_variant(
        self,
        price: Decimal,
        stock: int,
        name: str = "Runner",
        product_id: Optional[UUID] = None,
        size: str = "42",
        color: str = "Black",
    ) -> VariantDTO:
        product_id = product_id or uuid4()
        variant = VariantDTO(
            id=uuid4(),
            product_id=product_id,
            product_name=name,
            brand="Acme",
            size=size,
            color=color,
            image=f"https://cdn.example.test/{name.lower()}.jpg",
            price=Decimal(price),
            stock=stock,
        )
        self.variants[variant.id] = variant
        self.stock[variant.id] = stock
        self.product_names[product_id] = name
        return variant

    def remove_variant(self, variant_id: UUID) -> None:
        self.variants.pop(variant_id)
        self.stock.pop(variant_id)

    async def get_variants(self, ids: Iterable[UUID]) -> Dict[UUID, VariantDTO]:
        return {
            vid: self.variants[vid].model_copy(update={"stock": self.stock[vid]})
            for vid in ids
            if vid in self.variants
        }

    async def increment_stock(self, variant_id: UUID, quantity: int) -> None:
        if variant_id in self.failing:
            raise RuntimeError("inventory store unavailable")
        if variant_id in self.stock:
            self.stock[variant_id] += quantity

    async def decrement_if_available(self, variant_id: UUID, quantity: int) -> bool:
        if variant_id in self.failing:
            raise RuntimeError("inventory store unavailable")
        if variant_id in self.steal_before_decrement:
            self.stock[variant_id] -= self.steal_before_decrement.pop(variant_id)
        if self.stock.get(variant_id, 0) < quantity:
            return False
        self.stock[variant_id] -= quantity
        return True

    async def get_variant_products(self, ids: Iterable[UUID]) -> Dict[UUID, VariantProductDTO]:
        result = {}
        for vid in ids:
            variant = self.variants.get(vid)
            if variant is None:
                continue
            result[vid] = VariantProductDTO(
                variant_id=vid,
                product_id=variant.product_id,
                name=self.product_names[variant.product_id],
                image=variant.image,
            )
        return result


class FakeCarts(ICartRepository):
    def __init__(self) -> None:
        self.carts: Dict[UUID, List[CartLineDTO]] = {}
        self.fail_clear = False

    def put(self, owner_id: UUID, variant_id: UUID, quantity: int) -> None:
        self.carts.setdefault(owner_id, []).append(
            CartLineDTO(variant_id=variant_id, quantity=quantity)
        )

    async def get_items(self, owner_id: UUID) -> List[CartLineDTO]:
        return list(self.carts.get(owner_id, []))

    async def clear(self, owner_id: UUID) -> None:
        if self.fail_clear:
            raise RuntimeError("cart store unavailable")
        self.carts[owner_id] = []


class FakeCustomers(ICustomerRepository):
    def __init__(self) -> None:
        self.customers: Dict[UUID, CustomerDTO] = {}
        self.ledger: Dict[UUID, int] = {}
        self.reasons: Dict[UUID, str] = {}
        self.points: Dict[UUID, int] = {}
        self.fail_loyalty = False

    def add(self, name: str = "Lan Nguyen", email: str = "lan@example.com") -> CustomerDTO:
        customer = CustomerDTO(
            id=uuid4(), name=name, email=email, phone="0901234567", address="1 Le Loi"
        )
        self.customers[customer.id] = customer
        self.points[customer.id] = 0
        return customer

    async def get_by_id(self, id) -> Optional[CustomerDTO]:
        return self.customers.get(id)

    async def get_many(self, ids: Iterable[UUID]) -> Dict[UUID, CustomerDTO]:
        return {cid: self.customers[cid] for cid in ids if cid in self.customers}

    async def record_loyalty(self, customer_id, order_id, points, revenue, reason):
        if self.fail_loyalty:
            raise RuntimeError("loyalty ledger unavailable")
        if customer_id not in self.customers or order_id in self.ledger:
            return None
        self.ledger[order_id] = points
        self.reasons[order_id] = reason
        self.points[customer_id] += points
        return self.points[customer_id]


class FakePromotions(IPromotionRepository):
    def __init__(self) -> None:
        self.codes: Dict[str, UUID] = {}
        self.usage: Dict[UUID, int] = {}
        self.fail = False

    def add(self, code: str) -> UUID:
        promotion_id = uuid4()
        self.codes[code.upper()] = promotion_id
        self.usage[promotion_id] = 0
        return promotion_id

    async def get_id_by_code(self, code: str) -> Optional[UUID]:
        if self.fail:
            raise RuntimeError("promotion store unavailable")
        return self.codes.get(code.upper())

    async def increment_usage(self, promotion_id: UUID) -> None:
        self.usage[promotion_id] += 1


class RecordingNotifier(INotificationService):
    def __init__(self) -> None:
        self.sent: List[tuple[str, OrderNotice]] = []
        self.fail = False

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.sent]

    async def _record(self, kind: str, notice: OrderNotice) -> None:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((kind, notice))

    async def send_order_confirmation(self, notice: OrderNotice) -> None:
        await self._record("confirmation", notice)

    async def send_order_received(self, notice: OrderNotice) -> None:
        await self._record("received", notice)

    async def send_order_cancellation(self, notice: OrderNotice) -> None:
        await self._record("cancellation", notice)
