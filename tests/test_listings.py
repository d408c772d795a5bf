"""Tests for the per-entity list queries."""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from conftest import CUSTOMERS, PROPERTIES, SALES, USERS
from emlak_office.core.models import (
    CustomerType,
    PropertyStatus,
    PropertyType,
    SaleStatus,
    UserRole,
)
from emlak_office.domain.listings import (
    CustomerFilters,
    PropertyFilters,
    SaleFilters,
    UserFilters,
    query_customers,
    query_properties,
    query_sales,
    query_users,
    status_priority,
)
from emlak_office.domain.property_schema import coerce
from emlak_office.domain.query import SortKey
from emlak_office.domain.wire import customer_from_wire, property_from_wire, sale_from_wire, user_from_wire


@pytest.fixture
def customers():
    return [customer_from_wire(r) for r in CUSTOMERS]


@pytest.fixture
def properties():
    return [property_from_wire(r) for r in PROPERTIES]


@pytest.fixture
def sales():
    return [sale_from_wire(r) for r in SALES]


@pytest.fixture
def users():
    return [user_from_wire(r) for r in USERS]


def ids(result):
    return [item.id for item in result.data]


# ============================================================================
# Properties
# ============================================================================


class TestStatusPriority:
    def test_ranking(self):
        assert status_priority(PropertyStatus.RESERVED) == 1
        assert status_priority(PropertyStatus.FOR_SALE) == 2
        assert status_priority(PropertyStatus.RENTED) == 6

    def test_unknown_ranks_last(self):
        assert status_priority("Demolished") == 7
        assert status_priority(None) == 7


class TestQueryProperties:
    """Listings rank by status first and filter on the panel fields."""

    def test_default_order_by_status_priority(self, properties):
        result = query_properties(properties)
        assert ids(result) == [12, 10, 11, 14, 13]
        assert result.total == 5

    def test_search_matches_owner_name(self, properties, customers):
        result = query_properties(properties, PropertyFilters(search="mehmet"), customers)
        assert ids(result) == [10, 11]

    def test_search_matches_title_case_insensitively(self, properties):
        result = query_properties(properties, PropertyFilters(search="DAIRE"))
        assert ids(result) == [11]

    def test_status_filter_accepts_label(self, properties):
        result = query_properties(properties, PropertyFilters(status="Satıldı"))
        assert ids(result) == [13]

    def test_status_filter_accepts_ordinal(self, properties):
        result = query_properties(properties, PropertyFilters(status=1))
        assert ids(result) == [11]

    def test_type_and_location_filters(self, properties):
        assert ids(query_properties(properties, PropertyFilters(property_type=PropertyType.LAND))) == [10]
        assert ids(query_properties(properties, PropertyFilters(province_id=35))) == [12]
        assert ids(query_properties(properties, PropertyFilters(district_id=2))) == [12, 13]
        assert ids(query_properties(properties, PropertyFilters(neighborhood_id=5))) == [10, 11, 14]

    def test_query_is_repeatable_and_ignores_filter_key_order(self, properties, customers):
        first = PropertyFilters(min_price=20000, district_id=2, limit=5)
        second = PropertyFilters(limit=5, district_id=2, min_price=20000)
        snapshot = list(properties)

        result = query_properties(properties, first, customers)

        assert result == query_properties(properties, first, customers)
        assert ids(result) == [12, 13]
        assert result == query_properties(properties, second, customers)
        assert properties == snapshot

    def test_min_price(self, properties):
        result = query_properties(properties, PropertyFilters(min_price=100000))
        assert ids(result) == [10, 14, 13]

    def test_price_range(self, properties):
        result = query_properties(properties, PropertyFilters(min_price=20000, max_price=700000))
        assert ids(result) == [12, 10, 14]

    def test_unpriced_property_passes_price_bounds(self, properties):
        unpriced = replace(
            properties[0],
            id=99,
            attributes=coerce(PropertyType.LAND, {"TotalArea": 300}),
        )
        result = query_properties(properties + [unpriced], PropertyFilters(min_price=1000000))
        assert ids(result) == [99, 13]

    def test_shareholder_filter_applies_to_fields(self, properties):
        no_share = PropertyFilters(property_type=PropertyType.FIELD, has_shareholder=False)
        with_share = PropertyFilters(property_type=PropertyType.FIELD, has_shareholder=True)
        assert ids(query_properties(properties, no_share)) == []
        assert ids(query_properties(properties, with_share)) == [12]

    def test_shareholder_filter_ignored_without_field_type(self, properties):
        result = query_properties(properties, PropertyFilters(has_shareholder=False))
        assert result.total == 5

    def test_caller_sort_breaks_ties_within_status(self, properties):
        second = replace(properties[0], id=20, title="Arka sokak arsası")
        filters = PropertyFilters(
            status=PropertyStatus.FOR_SALE,
            sort_keys=[SortKey(lambda p: p.title)],
        )
        assert ids(query_properties(properties + [second], filters)) == [20, 10]

    def test_caller_sort_cannot_override_status_rank(self, properties):
        filters = PropertyFilters(sort_keys=[SortKey(lambda p: p.total_price, descending=True)])
        result = query_properties(properties, filters)
        assert ids(result)[0] == 12
        assert ids(result)[-1] == 13

    def test_pagination(self, properties):
        result = query_properties(properties, PropertyFilters(page=2, limit=2))
        assert ids(result) == [11, 14]
        assert result.total == 5
        assert result.total_pages == 3


# ============================================================================
# Sales
# ============================================================================


class TestQuerySales:
    def test_search_buyer_and_title(self, sales):
        assert ids(query_sales(sales, SaleFilters(search="zeynep"))) == [101]
        assert ids(query_sales(sales, SaleFilters(search="manzaralı"))) == [100]
        assert ids(query_sales(sales, SaleFilters(search="mehmet"))) == [100, 101]

    def test_status_filter(self, sales):
        assert ids(query_sales(sales, SaleFilters(status=SaleStatus.COMPLETED))) == [101]

    def test_property_type_filter(self, sales):
        assert ids(query_sales(sales, SaleFilters(property_type=PropertyType.LAND))) == [100]

    def test_date_to_includes_whole_day(self, sales):
        assert ids(query_sales(sales, SaleFilters(date_to=date(2024, 3, 10)))) == [100]

    def test_date_from(self, sales):
        assert ids(query_sales(sales, SaleFilters(date_from=date(2024, 4, 1)))) == [101]

    def test_datetime_bounds(self, sales):
        window = SaleFilters(
            date_from=datetime(2024, 3, 1, tzinfo=timezone.utc),
            date_to=datetime(2024, 3, 31),
        )
        assert ids(query_sales(sales, window)) == [100]

    def test_undated_sale_passes_date_window(self, sales):
        undated = replace(sales[0], id=102, sale_date=None)
        result = query_sales(sales + [undated], SaleFilters(date_from=date(2030, 1, 1)))
        assert ids(result) == [102]

    def test_price_range(self, sales):
        assert ids(query_sales(sales, SaleFilters(min_price=100000))) == [100]
        assert ids(query_sales(sales, SaleFilters(max_price=100000))) == [101]

    def test_sort_by_price(self, sales):
        filters = SaleFilters(sort_keys=[SortKey(lambda s: s.sale_price)])
        assert ids(query_sales(sales, filters)) == [101, 100]


# ============================================================================
# Customers
# ============================================================================


class TestQueryCustomers:
    def test_minimum_budget(self, customers):
        """Budgets 100000, null and 250000 with a 50000 minimum keep two customers."""
        result = query_customers(customers, CustomerFilters(min_budget=50000))
        assert ids(result) == [1, 3]
        assert result.total == 2

    def test_maximum_budget_keeps_zero_budget(self, customers):
        assert ids(query_customers(customers, CustomerFilters(max_budget=150000))) == [1, 2]

    def test_customer_type(self, customers):
        assert ids(query_customers(customers, CustomerFilters(customer_type=CustomerType.SELLER))) == [2]

    def test_search_phone_and_notes(self, customers):
        assert ids(query_customers(customers, CustomerFilters(search="0555"))) == [2]
        assert ids(query_customers(customers, CustomerFilters(search="yatırımcı"))) == [3]


# ============================================================================
# Users
# ============================================================================


class TestQueryUsers:
    def test_active_filter(self, users):
        assert ids(query_users(users, UserFilters(is_active=True))) == ["u-1"]
        assert ids(query_users(users, UserFilters(is_active=False))) == ["u-2"]

    def test_role_filter(self, users):
        assert ids(query_users(users, UserFilters(role=UserRole.ADMIN))) == ["u-1"]
        assert ids(query_users(users, UserFilters(role="User"))) == ["u-2"]

    def test_search_email(self, users):
        assert ids(query_users(users, UserFilters(search="danisman@"))) == ["u-2"]
