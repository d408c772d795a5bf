"""Conversion between REST payloads (camelCase JSON) and entity records.

Readers are lenient: they normalize statuses, coerce variant attributes
and default missing optional fields. Writers always emit integer statuses
and freshly computed derived sale fields. ``validate_*`` run before any
write and raise ``ValidationError`` listing every offending field.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

from emlak_office.core.exceptions import ValidationError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import (
    Customer,
    CustomerType,
    District,
    InterestType,
    Neighborhood,
    PriceHistoryEntry,
    Property,
    PropertyType,
    Province,
    Sale,
    SaleStatistics,
    User,
    UserRole,
)
from emlak_office.core.utils import parse_datetime, to_number
from emlak_office.domain.property_schema import coerce, dump_attributes, variant_of
from emlak_office.domain.status_codec import (
    denormalize_property_status,
    denormalize_sale_status,
    fold_label,
    normalize_property_status,
    normalize_sale_status,
)

LOGGER = get_logger(__name__)

# English member names plus the Turkish category names some endpoints return
_PROPERTY_TYPE_NAMES: Dict[str, PropertyType] = {
    **{fold_label(member.name): member for member in PropertyType},
    "arsa": PropertyType.LAND,
    "tarla": PropertyType.FIELD,
    "daire": PropertyType.APARTMENT,
    "isyeri": PropertyType.COMMERCIAL,
    "hisseliparsel": PropertyType.SHARED_PARCEL,
}


def _number(raw: Mapping[str, Any], key: str, default: float = 0) -> Any:
    value = to_number(raw.get(key))
    return default if value is None else value


def _text(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value)


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_property_type(raw: Any) -> Optional[PropertyType]:
    """Property type from an ordinal, numeric string or name; None if unknown."""
    number = to_number(raw)
    if isinstance(number, int):
        try:
            return PropertyType(number)
        except ValueError:
            return None
    if isinstance(raw, str):
        return _PROPERTY_TYPE_NAMES.get(fold_label(raw))
    return None


# =============================================================================
# Properties
# =============================================================================


def property_from_wire(raw: Mapping[str, Any]) -> Property:
    """
    Build a Property from an API record.

    Raises:
        ValidationError: The record has no recognizable ``propertyType``.
    """
    property_type = parse_property_type(raw.get("propertyType"))
    if property_type is None:
        raise ValidationError(
            f"Property {raw.get('id')} has unknown type {raw.get('propertyType')!r}",
            errors={"propertyType": "unknown property type"},
        )

    bag = raw.get("typeSpecificProperties") or {}
    if isinstance(bag, str):
        try:
            bag = json.loads(bag)
        except ValueError:
            LOGGER.warning(f"Property {raw.get('id')} has unparseable attributes")
            bag = {}

    return Property(
        id=raw.get("id"),
        property_type=property_type,
        title=_text(raw, "title"),
        status=normalize_property_status(raw.get("status")),
        province_id=raw.get("provinceId"),
        district_id=raw.get("districtId"),
        neighborhood_id=raw.get("neighborhoodId"),
        customer_id=raw.get("customerId"),
        intermediary_full_name=_text(raw, "intermediaryFullName"),
        intermediary_phone=_text(raw, "intermediaryPhone"),
        notes=_text(raw, "notes"),
        attributes=coerce(property_type, bag, strict=False),
        created_at=parse_datetime(raw.get("createdAt")),
    )


def property_to_wire(prop: Property) -> Dict[str, Any]:
    """Create/update payload for a property."""
    payload: Dict[str, Any] = {
        "propertyType": int(prop.property_type),
        "title": prop.title,
        "provinceId": prop.province_id,
        "districtId": prop.district_id,
        "neighborhoodId": prop.neighborhood_id,
        "intermediaryFullName": prop.intermediary_full_name,
        "intermediaryPhone": prop.intermediary_phone,
        "status": denormalize_property_status(prop.status),
        "notes": prop.notes,
        "customerId": prop.customer_id,
        "typeSpecificProperties": dump_attributes(prop.attributes),
    }
    if prop.id is not None:
        payload["id"] = prop.id
    return payload


def validate_property(prop: Property) -> None:
    """Reject a property write with missing or inconsistent fields."""
    errors: Dict[str, str] = {}
    if not prop.title or not prop.title.strip():
        errors["title"] = "required"
    for name in ("province_id", "district_id", "neighborhood_id", "customer_id"):
        value = getattr(prop, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            errors[name] = "must be a positive id"
    phone = (prop.intermediary_phone or "").strip()
    if phone and not 10 <= len(phone) <= 11:
        errors["intermediary_phone"] = "must be 10-11 characters"
    try:
        if variant_of(prop.attributes) != PropertyType(prop.property_type):
            errors["attributes"] = "do not match property type"
    except TypeError:
        errors["attributes"] = "not a variant record"
    if errors:
        raise ValidationError("Invalid property", errors=errors)


def price_history_from_wire(raw: Mapping[str, Any]) -> PriceHistoryEntry:
    return PriceHistoryEntry(
        id=raw.get("id"),
        price=_number(raw, "price"),
        date=parse_datetime(raw.get("date")),
        created_at=parse_datetime(raw.get("createdAt")),
    )


# =============================================================================
# Sales
# =============================================================================


def sale_from_wire(raw: Mapping[str, Any]) -> Sale:
    """
    Build a Sale from an API record.

    ``commissionRate`` and ``netProfit`` on the wire are ignored; the record
    derives them.

    Raises:
        UnknownStatusError: The status is not a known sale status.
    """
    nested = raw.get("property") or {}
    property_type = parse_property_type(nested.get("propertyType", raw.get("propertyType")))
    return Sale(
        id=raw.get("id"),
        property_id=raw.get("propertyId") or nested.get("id"),
        buyer_customer_id=raw.get("buyerCustomerId"),
        sale_price=_number(raw, "salePrice"),
        commission=_number(raw, "commission"),
        expenses=_number(raw, "expenses"),
        sale_date=parse_datetime(raw.get("saleDate")),
        status=normalize_sale_status(raw.get("status")),
        notes=_text(raw, "notes"),
        property_title=raw.get("propertyTitle") or nested.get("title"),
        property_type=property_type,
        buyer_customer_name=raw.get("buyerCustomerName") or (raw.get("buyerCustomer") or {}).get("fullName"),
        seller_customer_name=raw.get("sellerCustomerName") or (raw.get("sellerCustomer") or {}).get("fullName"),
        created_by=raw.get("createdBy"),
        created_at=parse_datetime(raw.get("createdAt")),
    )


def sale_to_wire(sale: Sale) -> Dict[str, Any]:
    """Create/update payload for a sale, with derived fields recomputed."""
    payload: Dict[str, Any] = {
        "propertyId": sale.property_id,
        "buyerCustomerId": sale.buyer_customer_id,
        "salePrice": sale.sale_price,
        "commission": sale.commission,
        "expenses": sale.expenses,
        "commissionRate": sale.commission_rate,
        "saleDate": _iso(sale.sale_date),
        "notes": sale.notes,
        "status": denormalize_sale_status(sale.status),
    }
    if sale.id is not None:
        payload["id"] = sale.id
    return payload


def validate_sale(sale: Sale) -> None:
    errors: Dict[str, str] = {}
    for name in ("property_id", "buyer_customer_id"):
        value = getattr(sale, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            errors[name] = "must be a positive id"
    for name in ("sale_price", "commission", "expenses"):
        value = getattr(sale, name)
        if value is None or value < 0:
            errors[name] = "must be zero or more"
    if errors:
        raise ValidationError("Invalid sale", errors=errors)


def statistics_from_wire(raw: Mapping[str, Any]) -> SaleStatistics:
    return SaleStatistics(
        total_sales=int(_number(raw, "totalSales")),
        total_revenue=_number(raw, "totalRevenue"),
        total_commission=_number(raw, "totalCommission"),
        total_expenses=_number(raw, "totalExpenses"),
        total_net_profit=_number(raw, "totalNetProfit"),
        average_sale_price=_number(raw, "averageSalePrice"),
        sales_this_month=int(_number(raw, "salesThisMonth")),
        revenue_this_month=_number(raw, "revenueThisMonth"),
    )


# =============================================================================
# Customers
# =============================================================================


def customer_from_wire(raw: Mapping[str, Any]) -> Customer:
    """Build a Customer; a null budget reads as 0."""
    return Customer(
        id=raw.get("id"),
        full_name=_text(raw, "fullName"),
        phone=_text(raw, "phone"),
        budget=_number(raw, "budget"),
        customer_type=CustomerType(int(_number(raw, "customerType"))),
        interest_type=InterestType(int(_number(raw, "interestType", InterestType.ALL))),
        notes=_text(raw, "notes"),
        province_preferences_count=int(_number(raw, "provincePreferencesCount")),
        created_at=parse_datetime(raw.get("createdAt")),
    )


def customer_to_wire(
    customer: Customer,
    province_preferences: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Create/update payload for a customer.

    Args:
        customer: Record to send.
        province_preferences: ``[{"provinceId": ..., "districtIds": [...]}]``.
    """
    payload: Dict[str, Any] = {
        "fullName": customer.full_name,
        "phone": customer.phone,
        "budget": customer.budget or 0,
        "notes": customer.notes,
        "interestType": int(customer.interest_type),
        "customerType": int(customer.customer_type),
        "provincePreferences": province_preferences or [],
    }
    if customer.id is not None:
        payload["id"] = customer.id
    return payload


def validate_customer(customer: Customer) -> None:
    errors: Dict[str, str] = {}
    if not customer.full_name or not customer.full_name.strip():
        errors["full_name"] = "required"
    if not customer.phone or not customer.phone.strip():
        errors["phone"] = "required"
    if customer.budget is not None and customer.budget < 0:
        errors["budget"] = "must be zero or more"
    if errors:
        raise ValidationError("Invalid customer", errors=errors)


# =============================================================================
# Users
# =============================================================================


def user_from_wire(raw: Mapping[str, Any]) -> User:
    return User(
        id=str(raw.get("id")),
        username=_text(raw, "username") or _text(raw, "userName"),
        email=_text(raw, "email"),
        role=raw.get("role") or UserRole.USER.value,
        lockout_end=raw.get("lockoutEnd") or None,
        is_online=raw.get("isOnline"),
        created_at=parse_datetime(raw.get("createdAt")),
        last_login_at=parse_datetime(raw.get("lastLoginAt")),
        last_activity_at=parse_datetime(raw.get("lastActivityAt")),
        last_login_ip=raw.get("lastLoginIp"),
    )


def online_user_from_wire(raw: Mapping[str, Any]) -> User:
    """Online-users endpoint records use different key names and are active by definition."""
    return User(
        id=str(raw.get("userId") or raw.get("id")),
        username=_text(raw, "userName") or _text(raw, "username"),
        email=_text(raw, "email"),
        role=raw.get("role") or UserRole.USER.value,
        lockout_end=None,
        is_online=True,
        last_login_at=parse_datetime(raw.get("lastLoginDate")),
        last_activity_at=parse_datetime(raw.get("lastActivityDate")),
        last_login_ip=raw.get("lastLoginIp"),
    )


def user_to_wire(user: User) -> Dict[str, Any]:
    """Update payload; lock state and password have their own endpoints."""
    return {
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }


# =============================================================================
# Locations
# =============================================================================


def neighborhood_from_wire(raw: Mapping[str, Any], district_id: Optional[int] = None) -> Neighborhood:
    return Neighborhood(
        id=raw.get("id"),
        name=_text(raw, "name"),
        district_id=raw.get("districtId", district_id),
    )


def district_from_wire(raw: Mapping[str, Any], province_id: Optional[int] = None) -> District:
    district_id = raw.get("id")
    return District(
        id=district_id,
        name=_text(raw, "name"),
        province_id=raw.get("provinceId", province_id),
        neighborhoods=[neighborhood_from_wire(n, district_id) for n in raw.get("neighborhoods") or []],
    )


def province_from_wire(raw: Mapping[str, Any]) -> Province:
    province_id = raw.get("id")
    return Province(
        id=province_id,
        name=_text(raw, "name"),
        districts=[district_from_wire(d, province_id) for d in raw.get("districts") or []],
    )


__all__ = [
    "parse_property_type",
    "property_from_wire",
    "property_to_wire",
    "validate_property",
    "price_history_from_wire",
    "sale_from_wire",
    "sale_to_wire",
    "validate_sale",
    "statistics_from_wire",
    "customer_from_wire",
    "customer_to_wire",
    "validate_customer",
    "user_from_wire",
    "online_user_from_wire",
    "user_to_wire",
    "neighborhood_from_wire",
    "district_from_wire",
    "province_from_wire",
]
