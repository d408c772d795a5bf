"""Per-entity filter definitions for the list screens.

Each ``*Filters`` record mirrors one list screen's filter panel and turns
into arguments for ``emlak_office.domain.query.query``. Zero or missing
min/max bounds mean "no bound".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from emlak_office.core.models import (
    Customer,
    CustomerType,
    InterestType,
    Property,
    PropertyStatus,
    PropertyType,
    Sale,
    SaleStatus,
    User,
)
from emlak_office.core.utils import ensure_aware
from emlak_office.domain.query import (
    Predicate,
    QueryResult,
    SortKey,
    equals,
    query,
    within,
)
from emlak_office.domain.status_codec import normalize_property_status

# Listings surface reserved and active properties before completed ones
STATUS_PRIORITY: Dict[PropertyStatus, int] = {
    PropertyStatus.RESERVED: 1,
    PropertyStatus.FOR_SALE: 2,
    PropertyStatus.FOR_RENT: 3,
    PropertyStatus.FOR_SALE_OR_RENT: 4,
    PropertyStatus.SOLD: 5,
    PropertyStatus.RENTED: 6,
}
UNKNOWN_STATUS_PRIORITY = 7

DateBound = Union[date, datetime, None]


def status_priority(status: Any) -> int:
    """Listing rank of a property status; unknown values rank last."""
    try:
        return STATUS_PRIORITY[PropertyStatus(status)]
    except (ValueError, KeyError):
        return UNKNOWN_STATUS_PRIORITY


@dataclass
class _Paging:
    search: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None
    sort_keys: List[SortKey] = field(default_factory=list)


# =============================================================================
# Properties
# =============================================================================


@dataclass
class PropertyFilters(_Paging):
    property_type: Optional[PropertyType] = None
    status: Any = None
    province_id: Optional[int] = None
    district_id: Optional[int] = None
    neighborhood_id: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    has_shareholder: Optional[bool] = None


def _property_price_predicate(filters: PropertyFilters) -> Predicate:
    def predicate(prop: Property) -> bool:
        price = prop.total_price
        # Unpriced listings are never excluded by a price bound
        if not price:
            return True
        if filters.min_price and price < filters.min_price:
            return False
        if filters.max_price and price > filters.max_price:
            return False
        return True

    return predicate


def _shareholder_predicate(expected: bool) -> Predicate:
    def predicate(prop: Property) -> bool:
        flag = prop.has_shareholder
        return flag is None or flag == expected

    return predicate


def property_predicates(filters: PropertyFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.property_type is not None:
        predicates.append(equals(lambda p: p.property_type, PropertyType(filters.property_type)))
    if filters.status is not None:
        wanted = normalize_property_status(filters.status)
        predicates.append(lambda p: normalize_property_status(p.status) == wanted)
    if filters.province_id is not None:
        predicates.append(equals(lambda p: p.province_id, filters.province_id))
    if filters.district_id is not None:
        predicates.append(equals(lambda p: p.district_id, filters.district_id))
    if filters.neighborhood_id is not None:
        predicates.append(equals(lambda p: p.neighborhood_id, filters.neighborhood_id))
    if filters.min_price or filters.max_price:
        predicates.append(_property_price_predicate(filters))
    if (
        filters.has_shareholder is not None
        and filters.property_type is not None
        and PropertyType(filters.property_type) == PropertyType.FIELD
    ):
        predicates.append(_shareholder_predicate(filters.has_shareholder))
    return predicates


def query_properties(
    properties: Iterable[Property],
    filters: Optional[PropertyFilters] = None,
    customers: Sequence[Customer] = (),
) -> QueryResult[Property]:
    """
    Filter, rank and paginate properties.

    The search term also matches the owning customer's name, resolved from
    ``customers``. Results are always ordered by status priority first;
    any caller sort keys only break ties within a status.
    """
    filters = filters or PropertyFilters()
    owner_names = {c.id: c.full_name for c in customers if c.id is not None}

    def search_fields(prop: Property) -> List[Any]:
        return [
            prop.title,
            prop.intermediary_full_name,
            prop.notes,
            owner_names.get(prop.customer_id),
        ]

    sort_keys = [SortKey(lambda p: status_priority(p.status))] + list(filters.sort_keys)
    return query(
        properties,
        search=filters.search,
        search_fields=search_fields,
        predicates=property_predicates(filters),
        sort_keys=sort_keys,
        page=filters.page,
        limit=filters.limit,
    )


# =============================================================================
# Sales
# =============================================================================


@dataclass
class SaleFilters(_Paging):
    status: Optional[SaleStatus] = None
    property_type: Optional[PropertyType] = None
    date_from: DateBound = None
    date_to: DateBound = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


def _as_bound(value: DateBound, end_of_day: bool) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    moment = datetime.combine(value, datetime.max.time() if end_of_day else datetime.min.time())
    return ensure_aware(moment)


def _sale_date_predicate(filters: SaleFilters) -> Predicate:
    start = _as_bound(filters.date_from, end_of_day=False)
    end = _as_bound(filters.date_to, end_of_day=True)

    def predicate(sale: Sale) -> bool:
        sold_at = ensure_aware(sale.sale_date)
        # Undated sales are not excluded by a date window
        if sold_at is None:
            return True
        if start is not None and sold_at < start:
            return False
        if end is not None and sold_at > end:
            return False
        return True

    return predicate


def sale_predicates(filters: SaleFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.status is not None:
        predicates.append(equals(lambda s: s.status, SaleStatus(filters.status)))
    if filters.property_type is not None:
        predicates.append(equals(lambda s: s.property_type, PropertyType(filters.property_type)))
    if filters.date_from is not None or filters.date_to is not None:
        predicates.append(_sale_date_predicate(filters))
    if filters.min_price or filters.max_price:
        predicates.append(within(lambda s: s.sale_price, filters.min_price, filters.max_price))
    return predicates


def query_sales(sales: Iterable[Sale], filters: Optional[SaleFilters] = None) -> QueryResult[Sale]:
    """Search property title, buyer and seller names; filter; paginate."""
    filters = filters or SaleFilters()
    return query(
        sales,
        search=filters.search,
        search_fields=lambda s: [s.property_title, s.buyer_customer_name, s.seller_customer_name],
        predicates=sale_predicates(filters),
        sort_keys=filters.sort_keys,
        page=filters.page,
        limit=filters.limit,
    )


# =============================================================================
# Customers
# =============================================================================


@dataclass
class CustomerFilters(_Paging):
    customer_type: Optional[CustomerType] = None
    interest_type: Optional[InterestType] = None
    min_budget: Optional[float] = None
    max_budget: Optional[float] = None


def customer_predicates(filters: CustomerFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.customer_type is not None:
        predicates.append(equals(lambda c: c.customer_type, CustomerType(filters.customer_type)))
    if filters.interest_type is not None:
        predicates.append(equals(lambda c: c.interest_type, InterestType(filters.interest_type)))
    if filters.min_budget or filters.max_budget:
        predicates.append(within(lambda c: c.budget or 0, filters.min_budget, filters.max_budget))
    return predicates


def query_customers(
    customers: Iterable[Customer],
    filters: Optional[CustomerFilters] = None,
) -> QueryResult[Customer]:
    """Search name, phone and notes; filter by type, interest and budget."""
    filters = filters or CustomerFilters()
    return query(
        customers,
        search=filters.search,
        search_fields=lambda c: [c.full_name, c.phone, c.notes],
        predicates=customer_predicates(filters),
        sort_keys=filters.sort_keys,
        page=filters.page,
        limit=filters.limit,
    )


# =============================================================================
# Users
# =============================================================================


@dataclass
class UserFilters(_Paging):
    role: Optional[str] = None
    is_active: Optional[bool] = None


def user_predicates(filters: UserFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.role:
        role = getattr(filters.role, "value", filters.role)
        predicates.append(equals(lambda u: u.role, role))
    if filters.is_active is not None:
        predicates.append(equals(lambda u: u.is_active, filters.is_active))
    return predicates


def query_users(users: Iterable[User], filters: Optional[UserFilters] = None) -> QueryResult[User]:
    """Search username and email; filter by role and active flag."""
    filters = filters or UserFilters()
    return query(
        users,
        search=filters.search,
        search_fields=lambda u: [u.username, u.email],
        predicates=user_predicates(filters),
        sort_keys=filters.sort_keys,
        page=filters.page,
        limit=filters.limit,
    )


__all__ = [
    "STATUS_PRIORITY",
    "UNKNOWN_STATUS_PRIORITY",
    "status_priority",
    "PropertyFilters",
    "SaleFilters",
    "CustomerFilters",
    "UserFilters",
    "property_predicates",
    "sale_predicates",
    "customer_predicates",
    "user_predicates",
    "query_properties",
    "query_sales",
    "query_customers",
    "query_users",
]
