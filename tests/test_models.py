"""Tests for entity records and derived fields."""
from __future__ import annotations

import pytest

from emlak_office.core.models import (
    LOCKOUT_FOREVER,
    Customer,
    CustomerType,
    InterestType,
    Sale,
    User,
    compute_commission_rate,
)


class TestCommissionRate:
    @pytest.mark.parametrize(
        "price,commission,expected",
        [
            (600000, 18000, 3.0),
            (300000, 1000, 0.3),
            (1000, 0, 0.0),
            (0, 500, 0.0),
            (-10, 5, 0.0),
            (1000, -5, 0.0),
        ],
    )
    def test_rate(self, price, commission, expected):
        assert compute_commission_rate(price, commission) == expected


class TestSale:
    def test_derived_fields_follow_inputs(self):
        sale = Sale(property_id=1, buyer_customer_id=1, sale_price=100000, commission=2000, expenses=500)
        assert sale.commission_rate == 2.0
        assert sale.net_profit == 1500

        sale.commission = 3000
        assert sale.commission_rate == 3.0
        assert sale.net_profit == 2500

    def test_derived_fields_are_read_only(self):
        sale = Sale(property_id=1, buyer_customer_id=1, sale_price=1, commission=0)
        with pytest.raises(AttributeError):
            sale.net_profit = 10


class TestCustomer:
    @pytest.mark.parametrize(
        "customer_type,is_buyer",
        [(CustomerType.BUYER, True), (CustomerType.SELLER, False), (CustomerType.BUYER_AND_SELLER, True)],
    )
    def test_is_buyer(self, customer_type, is_buyer):
        customer = Customer(
            full_name="Test",
            phone="05000000000",
            customer_type=customer_type,
            interest_type=InterestType.ALL,
        )
        assert customer.is_buyer is is_buyer


class TestUser:
    def test_active_without_lockout(self):
        assert User(id="1", username="a", email="a@b").is_active

    def test_locked_user_inactive(self):
        assert not User(id="1", username="a", email="a@b", lockout_end=LOCKOUT_FOREVER).is_active

    def test_online_is_independent_of_active(self):
        user = User(id="1", username="a", email="a@b", lockout_end=LOCKOUT_FOREVER, is_online=True)
        assert user.is_online and not user.is_active
