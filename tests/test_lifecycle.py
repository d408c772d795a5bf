"""Tests for the property and sale status machines."""
from __future__ import annotations

import pytest

from emlak_office.core.models import (
    Property,
    PropertyStatus,
    PropertyType,
    Sale,
    SaleStatus,
)
from emlak_office.domain.lifecycle import (
    cancel_sale,
    change_property_status,
    change_sale_status,
    completion_target,
    plan_property_sync,
    requires_property_sync,
)
from emlak_office.domain.property_schema import coerce


def make_property(status: PropertyStatus = PropertyStatus.FOR_SALE, property_id: int = 10) -> Property:
    return Property(
        id=property_id,
        property_type=PropertyType.APARTMENT,
        title="Test daire",
        status=status,
        province_id=34,
        district_id=1,
        neighborhood_id=5,
        customer_id=2,
        attributes=coerce(PropertyType.APARTMENT, {"TotalPrice": 1000}),
    )


def make_sale(status: SaleStatus = SaleStatus.PENDING) -> Sale:
    return Sale(id=100, property_id=10, buyer_customer_id=1, sale_price=1000, commission=30, status=status)


class TestPropertyMachine:
    """Edits may move a property between any two statuses."""

    @pytest.mark.parametrize("start", list(PropertyStatus))
    @pytest.mark.parametrize("target", list(PropertyStatus))
    def test_any_transition_allowed(self, start, target):
        prop = make_property(start)
        transition = change_property_status(prop, target)
        assert prop.status == target
        assert transition.previous == start
        assert transition.changed is (start != target)

    def test_accepts_member_value(self):
        prop = make_property()
        change_property_status(prop, "Reserved")
        assert prop.status is PropertyStatus.RESERVED


class TestCompletionTarget:
    """A completed sale moves the property by how it was offered."""

    def test_for_rent_becomes_rented(self):
        assert completion_target(PropertyStatus.FOR_RENT) == PropertyStatus.RENTED

    def test_for_sale_or_rent_becomes_rented(self):
        assert completion_target(PropertyStatus.FOR_SALE_OR_RENT) == PropertyStatus.RENTED

    def test_for_sale_becomes_sold(self):
        assert completion_target(PropertyStatus.FOR_SALE) == PropertyStatus.SOLD

    @pytest.mark.parametrize(
        "status", [PropertyStatus.RESERVED, PropertyStatus.SOLD, PropertyStatus.RENTED]
    )
    def test_other_statuses_untouched(self, status):
        assert completion_target(status) is None


class TestSaleMachine:
    def test_change_status(self):
        sale = make_sale()
        transition = change_sale_status(sale, SaleStatus.POSTPONED)
        assert sale.status == SaleStatus.POSTPONED
        assert transition.changed is True
        assert transition.to_dict() == {"previous": "PENDING", "current": "POSTPONED", "changed": True}

    @pytest.mark.parametrize("start", [SaleStatus.PENDING, SaleStatus.POSTPONED, SaleStatus.COMPLETED])
    def test_cancel_from_any_state(self, start):
        sale = make_sale(start)
        transition = cancel_sale(sale)
        assert sale.status == SaleStatus.CANCELLED
        assert transition.changed is True
        assert transition.previous == start

    def test_cancel_is_idempotent(self):
        sale = make_sale(SaleStatus.CANCELLED)
        transition = cancel_sale(sale)
        assert sale.status == SaleStatus.CANCELLED
        assert transition.changed is False


class TestRequiresPropertySync:
    """The completion rule fires only on a transition into Completed."""

    def test_new_completed_sale(self):
        assert requires_property_sync(None, SaleStatus.COMPLETED) is True

    def test_new_pending_sale(self):
        assert requires_property_sync(None, SaleStatus.PENDING) is False

    @pytest.mark.parametrize(
        "previous", [SaleStatus.PENDING, SaleStatus.CANCELLED, SaleStatus.POSTPONED]
    )
    def test_into_completed(self, previous):
        assert requires_property_sync(previous, SaleStatus.COMPLETED) is True

    def test_resaving_completed_sale(self):
        assert requires_property_sync(SaleStatus.COMPLETED, SaleStatus.COMPLETED) is False

    def test_leaving_completed(self):
        assert requires_property_sync(SaleStatus.COMPLETED, SaleStatus.CANCELLED) is False


class TestPlanPropertySync:
    def test_for_rent_property(self):
        outcome = plan_property_sync(make_sale(SaleStatus.COMPLETED), make_property(PropertyStatus.FOR_RENT))
        assert outcome.applied
        assert outcome.previous_status == PropertyStatus.FOR_RENT
        assert outcome.new_status == PropertyStatus.RENTED

    def test_for_sale_property(self):
        outcome = plan_property_sync(make_sale(SaleStatus.COMPLETED), make_property(PropertyStatus.FOR_SALE))
        assert outcome.new_status == PropertyStatus.SOLD

    def test_sold_property_skipped(self):
        outcome = plan_property_sync(make_sale(SaleStatus.COMPLETED), make_property(PropertyStatus.SOLD))
        assert outcome.outcome == "skipped"
        assert outcome.new_status is None
        assert not outcome.failed

    def test_outcome_to_dict(self):
        outcome = plan_property_sync(make_sale(SaleStatus.COMPLETED), make_property(PropertyStatus.FOR_SALE))
        data = outcome.to_dict()
        assert data["sale_id"] == 100
        assert data["property_id"] == 10
        assert data["outcome"] == "applied"
        assert data["previous_status"] == "ForSale"
        assert data["new_status"] == "Sold"
