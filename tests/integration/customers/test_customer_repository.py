"""Integration tests for CustomerDjangoRepository and loyalty accrual."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from asgiref.sync import async_to_sync

from modules.customers.constants import MembershipLevel
from modules.customers.models import LoyaltyTransaction
from modules.customers.repositories import CustomerDjangoRepository
from modules.customers.services import LoyaltyService

pytestmark = pytest.mark.integration


@pytest.fixture()
def repo():
    return CustomerDjangoRepository()


class TestLookups:
    def test_get_by_id(self, repo, make_customer):
        customer = make_customer()

        dto = async_to_sync(repo.get_by_id)(customer.id)

        assert dto.email == "lan@example.com"
        assert dto.phone == "0901234567"

    def test_get_by_id_malformed(self, repo):
        assert async_to_sync(repo.get_by_id)("nope") is None

    def test_get_many_skips_missing(self, repo, make_customer):
        lan = make_customer()
        minh = make_customer(name="Minh Tran", email="minh@example.com")

        found = async_to_sync(repo.get_many)([lan.id, minh.id, uuid4()])

        assert set(found) == {lan.id, minh.id}


class TestRecordLoyalty:
    def test_balance_and_ledger(self, repo, make_customer):
        customer = make_customer()
        order_id = uuid4()

        balance = async_to_sync(repo.record_loyalty)(
            customer.id, order_id, 1200, Decimal("120000"), "Order completion"
        )

        customer.refresh_from_db()
        assert balance == 1200
        assert customer.loyalty_points == 1200
        assert customer.membership_level == MembershipLevel.SILVER
        assert customer.membership_updated_at is not None
        entry = LoyaltyTransaction.objects.get(order_id=order_id)
        assert entry.points_earned == 1200
        assert entry.revenue == Decimal("120000")

    def test_second_accrual_for_same_order_is_ignored(self, repo, make_customer):
        customer = make_customer()
        order_id = uuid4()
        record = async_to_sync(repo.record_loyalty)

        record(customer.id, order_id, 500, Decimal("50000"), "Order completion")
        again = record(customer.id, order_id, 500, Decimal("50000"), "Order completion")

        customer.refresh_from_db()
        assert again is None
        assert customer.loyalty_points == 500
        assert LoyaltyTransaction.objects.count() == 1

    def test_unknown_customer(self, repo):
        assert (
            async_to_sync(repo.record_loyalty)(uuid4(), uuid4(), 10, Decimal("1000"), "x") is None
        )

    def test_service_promotes_membership(self, repo, make_customer):
        customer = make_customer(loyalty_points=2000)
        service = LoyaltyService(repo, multiplier=Decimal("0.01"))

        awarded = async_to_sync(service.earn_points)(customer.id, uuid4(), Decimal("60000"))

        customer.refresh_from_db()
        assert awarded == 600
        assert customer.loyalty_points == 2600
        assert customer.membership_level == MembershipLevel.GOLD
