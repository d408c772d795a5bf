"""Enumerations and in-memory entity records for the back office.

Records here hold canonical values only: statuses are enum members, never
raw wire integers or localized strings. Conversion from and to the wire
format lives in ``emlak_office.domain.wire``.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from emlak_office.domain.property_schema import VariantAttributes


# =============================================================================
# Enums
# =============================================================================


class PropertyType(enum.IntEnum):
    """Property variant discriminant (wire value is the ordinal)."""

    LAND = 0
    FIELD = 1
    APARTMENT = 2
    COMMERCIAL = 3
    SHARED_PARCEL = 4


class PropertyStatus(str, enum.Enum):
    """Canonical listing status of a property."""

    FOR_SALE = "ForSale"
    FOR_RENT = "ForRent"
    FOR_SALE_OR_RENT = "ForSaleOrRent"
    RESERVED = "Reserved"
    SOLD = "Sold"
    RENTED = "Rented"


class SaleStatus(enum.IntEnum):
    """Sale status; the wire value is the same small integer on read and write."""

    COMPLETED = 1
    PENDING = 2
    CANCELLED = 3
    POSTPONED = 4


class CustomerType(enum.IntEnum):
    BUYER = 0
    SELLER = 1
    BUYER_AND_SELLER = 2


class InterestType(enum.IntEnum):
    """What a customer is looking for, grouped by property category."""

    # Land
    LAND = 0
    INDUSTRIAL_LAND = 1
    FARM_LAND = 2
    LAND_SHARE = 3
    # Field
    FIELD = 4
    VINEYARD = 5
    ORCHARD = 6
    FIELD_SHARE = 7
    # Apartment
    APARTMENT = 8
    APARTMENT_FOR_RENT = 9
    # Commercial
    COMMERCIAL = 10
    COMMERCIAL_FOR_RENT = 11
    # Any
    ALL = 12


class UserRole(str, enum.Enum):
    ADMIN = "Admin"
    USER = "User"


# -----------------------------------------------------------------------------
# Closed enumerations used inside type-specific property attributes
# -----------------------------------------------------------------------------


class ZoningStatus(enum.IntEnum):
    EXISTS = 0  # Var
    NONE = 1  # Yok
    UNKNOWN = 2  # Belirsiz


class LandType(enum.IntEnum):
    PLOT = 0  # Arsa
    INDUSTRIAL = 1  # Sanayi
    FARM = 2  # Çiftlik
    UNKNOWN = 3


class FieldType(enum.IntEnum):
    FIELD = 0  # Tarla
    VINEYARD = 1  # Bağ
    ORCHARD = 2  # Bahçe
    UNKNOWN = 3


class HeatingType(enum.IntEnum):
    CENTRAL = 0
    CENTRAL_METERED = 1
    RADIATOR = 2
    COMBI_BOILER = 3
    ELECTRIC = 4
    STOVE = 5
    AIR_CONDITIONER = 6
    UNDERFLOOR = 7
    NONE = 8
    UNKNOWN = 9


class ElevatorType(enum.IntEnum):
    EXISTS = 0
    NONE = 1
    UNKNOWN = 2


class ParkingType(enum.IntEnum):
    OPEN = 0  # VarAçık
    CLOSED = 1  # VarKapalı
    NONE = 2
    UNKNOWN = 3


class FurnishingStatus(enum.IntEnum):
    FURNISHED = 0
    UNFURNISHED = 1
    PARTLY_FURNISHED = 2
    UNKNOWN = 3


class WorkplaceType(enum.IntEnum):
    FOR_SALE = 0
    FOR_RENT = 1
    TRANSFER_FOR_RENT = 2  # DevrenKiralık
    TRANSFER_FOR_SALE = 3  # DevrenSatılık
    UNKNOWN = 4


class MezzanineStatus(enum.IntEnum):
    EXISTS = 0
    NONE = 1
    UNKNOWN = 2


class BasementStatus(enum.IntEnum):
    EXISTS = 0
    NONE = 1
    UNKNOWN = 2


class UsageStatus(enum.IntEnum):
    VACANT = 0  # Boş
    OCCUPIED = 1  # Dolu
    TENANTED = 2  # DoluKiracılı
    UNKNOWN = 3


# =============================================================================
# Entity records
# =============================================================================


def compute_commission_rate(sale_price: float, commission: float) -> float:
    """Commission as a percentage of the sale price, rounded to one decimal."""
    if not sale_price or sale_price <= 0 or commission < 0:
        return 0.0
    return round(commission / sale_price * 100, 1)


@dataclass
class Property:
    """A listing; ``attributes`` is the variant record chosen by ``property_type``."""

    property_type: PropertyType
    title: str
    status: PropertyStatus
    province_id: int
    district_id: int
    neighborhood_id: int
    customer_id: int
    attributes: "VariantAttributes"
    id: Optional[int] = None
    intermediary_full_name: str = ""
    intermediary_phone: str = ""
    notes: str = ""
    created_at: Optional[datetime] = None

    @property
    def total_price(self) -> Optional[float]:
        return getattr(self.attributes, "total_price", None)

    @property
    def has_shareholder(self) -> Optional[bool]:
        return getattr(self.attributes, "has_shareholder", None)


@dataclass
class Sale:
    """
    A sale or rental of a property.

    ``commission_rate`` and ``net_profit`` are derived on every access and
    cannot be assigned.
    """

    property_id: int
    buyer_customer_id: int
    sale_price: float
    commission: float
    sale_date: Optional[datetime] = None
    status: SaleStatus = SaleStatus.PENDING
    expenses: float = 0.0
    id: Optional[int] = None
    notes: str = ""
    property_title: Optional[str] = None
    property_type: Optional[PropertyType] = None
    buyer_customer_name: Optional[str] = None
    seller_customer_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def commission_rate(self) -> float:
        return compute_commission_rate(self.sale_price, self.commission)

    @property
    def net_profit(self) -> float:
        return self.commission - self.expenses


@dataclass
class Customer:
    full_name: str
    phone: str
    customer_type: CustomerType
    interest_type: InterestType
    budget: float = 0.0
    id: Optional[int] = None
    notes: str = ""
    province_preferences_count: int = 0
    created_at: Optional[datetime] = None

    @property
    def is_buyer(self) -> bool:
        """Buyers and buyer-sellers may be picked as the buyer of a sale."""
        return self.customer_type in (CustomerType.BUYER, CustomerType.BUYER_AND_SELLER)


# Lockout value written optimistically while a lock request is in flight
LOCKOUT_FOREVER = "9999-12-31T23:59:59.9999999+00:00"


@dataclass
class User:
    """
    A back-office account.

    ``is_active`` follows the lockout timestamp; online presence is a
    separate fact reported by the server.
    """

    id: str
    username: str
    email: str
    role: str = UserRole.USER.value
    lockout_end: Optional[str] = None
    is_online: Optional[bool] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return not self.lockout_end


@dataclass
class Neighborhood:
    id: int
    name: str
    district_id: int


@dataclass
class District:
    id: int
    name: str
    province_id: int
    neighborhoods: List[Neighborhood] = field(default_factory=list)


@dataclass
class Province:
    id: int
    name: str
    districts: List[District] = field(default_factory=list)

    def find_district(self, district_id: int) -> Optional[District]:
        return next((d for d in self.districts if d.id == district_id), None)


@dataclass(frozen=True)
class PriceHistoryEntry:
    id: int
    price: float
    date: Optional[datetime]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SaleStatistics:
    total_sales: int = 0
    total_revenue: float = 0.0
    total_commission: float = 0.0
    total_expenses: float = 0.0
    total_net_profit: float = 0.0
    average_sale_price: float = 0.0
    sales_this_month: int = 0
    revenue_this_month: float = 0.0


__all__ = [
    "PropertyType",
    "PropertyStatus",
    "SaleStatus",
    "CustomerType",
    "InterestType",
    "UserRole",
    "ZoningStatus",
    "LandType",
    "FieldType",
    "HeatingType",
    "ElevatorType",
    "ParkingType",
    "FurnishingStatus",
    "WorkplaceType",
    "MezzanineStatus",
    "BasementStatus",
    "UsageStatus",
    "compute_commission_rate",
    "Property",
    "Sale",
    "Customer",
    "User",
    "LOCKOUT_FOREVER",
    "Province",
    "District",
    "Neighborhood",
    "PriceHistoryEntry",
    "SaleStatistics",
]
