"""ORM fixtures shared by the integration tests.

Integration tests are synchronous and drive the async services through
``async_to_sync`` so every ORM call runs on the test thread, inside the
test transaction.
"""

from __future__ import annotations

from decimal import Decimal
from itertools import count

import pytest

from modules.carts.models import Cart, CartItem
from modules.catalog.models import Product, Variant
from modules.customers.models import Customer
from modules.promotions.models import DiscountType, Promotion

_sku = count(1)


@pytest.fixture()
def make_customer():
    def _make(name="Lan Nguyen", email="lan@example.com", **extra):
        return Customer.objects.create(
            name=name, email=email, phone="0901234567", address="1 Le Loi", **extra
        )

    return _make


@pytest.fixture()
def make_variant():
    def _make(price="100000", stock=10, name="Runner", size="42", color="Black", product=None):
        product = product or Product.objects.create(
            name=name, brand="Acme", image=f"https://cdn.example.test/{name.lower()}.jpg"
        )
        return Variant.objects.create(
            product=product,
            sku=f"SKU-{next(_sku):05d}",
            size=size,
            color=color,
            price=Decimal(price),
            stock=stock,
        )

    return _make


@pytest.fixture()
def put_in_cart():
    def _put(customer, variant, quantity):
        cart, _ = Cart.objects.get_or_create(owner=customer)
        return CartItem.objects.create(cart=cart, variant=variant, quantity=quantity)

    return _put


@pytest.fixture()
def make_promotion():
    def _make(code="SUMMER10"):
        return Promotion.objects.create(
            code=code, discount_type=DiscountType.FIXED, discount_value=Decimal("20000")
        )

    return _make
