"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are
the contracts between a boundary layer (HTTP handlers, webhook
receivers, admin tools) and the order services.  DTOs are immutable
(``frozen=True``).

- ``CartCheckoutDTO``: checkout for a signed-in customer (items from cart).
- ``GuestCheckoutDTO``: checkout with inline items and guest contact info.
- ``WebhookPayloadDTO``: inbound gateway notification.
- ``WebhookAck``: acknowledgement returned to the gateway.
- ``AnalyticsReport``: dashboard aggregates.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from modules.orders.constants import (
    WEBHOOK_FAILURE_CODE,
    WEBHOOK_SUCCESS_CODE,
    WEBHOOK_SUCCESS_DESC,
)


class PaymentMethodEnum(StrEnum):
    COD = "COD"
    GATEWAY = "GATEWAY"


class ShippingMethodEnum(StrEnum):
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"
    FREE = "FREE"


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class TotalsInputDTO(BaseModel):
    """Caller-supplied price adjustments; the subtotal is always recomputed."""

    model_config = ConfigDict(frozen=True)

    discount: Decimal = Field(default=Decimal("0"), ge=0)
    shipping_fee: Decimal = Field(default=Decimal("0"), ge=0)


class GuestInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str = ""
    address: str = ""


class CheckoutItemDTO(BaseModel):
    """A single requested line: variant and quantity."""

    model_config = ConfigDict(frozen=True)

    variant_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CartCheckoutDTO(BaseModel):
    """Checkout options shared by both checkout modes."""

    model_config = ConfigDict(frozen=True)

    payment_method: PaymentMethodEnum = PaymentMethodEnum.COD
    totals: TotalsInputDTO = Field(default_factory=TotalsInputDTO)
    discount_code: Optional[str] = None
    membership_discount: Decimal = Field(default=Decimal("0"), ge=0)
    shipping_method: ShippingMethodEnum = ShippingMethodEnum.STANDARD

    @field_validator("discount_code")
    @classmethod
    def normalize_discount_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class GuestCheckoutDTO(CartCheckoutDTO):
    """Guest checkout: items are given inline.

    An empty ``items`` list is accepted here and rejected by the checkout
    service with ``NO_ITEMS``.
    """

    items: List[CheckoutItemDTO] = Field(default_factory=list)
    guest_info: GuestInfoDTO

    @model_validator(mode="after")
    def no_duplicate_variants(self):
        """Prevent the same variant appearing on two lines."""
        variant_ids = [item.variant_id for item in self.items]
        if len(variant_ids) != len(set(variant_ids)):
            raise ValueError("Duplicate variant IDs are not allowed in the same order.")
        return self


class WebhookDataDTO(BaseModel):
    """The ``data`` block of a gateway webhook."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    order_code: Optional[str] = Field(default=None, alias="orderCode")
    amount: Optional[Decimal] = None
    code: Optional[str] = None
    desc: Optional[str] = None

    @field_validator("order_code", mode="before")
    @classmethod
    def coerce_order_code(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)


class WebhookPayloadDTO(BaseModel):
    """Inbound gateway notification.

    Only the shape is checked here; authenticity is checked by the
    reconciler when signature verification is enabled.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    code: Optional[str] = None
    desc: Optional[str] = None
    success: Optional[bool] = None
    data: Optional[WebhookDataDTO] = None
    signature: Optional[str] = None

    @property
    def correlation_code(self) -> Optional[str]:
        return self.data.order_code if self.data else None

    @property
    def is_success(self) -> bool:
        return self.code == WEBHOOK_SUCCESS_CODE and self.desc == WEBHOOK_SUCCESS_DESC


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class WebhookAck(BaseModel):
    """Acknowledgement body for the gateway."""

    model_config = ConfigDict(frozen=True)

    code: str
    desc: str
    is_test: bool = False

    @classmethod
    def neutral(cls) -> WebhookAck:
        """Ack for pings, unknown orders, and rejected signatures."""
        return cls(code=WEBHOOK_SUCCESS_CODE, desc=WEBHOOK_SUCCESS_DESC, is_test=True)

    @classmethod
    def success(cls) -> WebhookAck:
        return cls(code=WEBHOOK_SUCCESS_CODE, desc=WEBHOOK_SUCCESS_DESC)

    @classmethod
    def failure(cls, message: str) -> WebhookAck:
        return cls(code=WEBHOOK_FAILURE_CODE, desc=message)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(include={"code", "desc"})


class RecentOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    customer_name: str
    customer_email: str
    total: Decimal
    status: str
    payment_status: str
    payment_method: str
    created_at: Optional[datetime]


class ProductSalesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    name: str
    image: str
    sold: int
    revenue: Decimal


class TopCustomerDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    name: str
    email: str
    total_spent: Decimal
    order_count: int


class AnalyticsReport(BaseModel):
    """Dashboard aggregates, recomputed on every read."""

    model_config = ConfigDict(frozen=True)

    total_revenue: Decimal
    total_orders: int
    total_customers: int
    avg_order_value: Decimal
    recent_orders: List[RecentOrderDTO]
    most_selling_products: List[ProductSalesDTO]
    weekly_top_customers: List[TopCustomerDTO]
