"""Property variant registry.

A property's ``typeSpecificProperties`` bag has a different shape for each
``PropertyType``. Each shape is a pydantic record with PascalCase wire
aliases; ``coerce`` turns a loose attribute bag (form input or API payload)
into exactly one of them:

1. keys that belong to another variant are dropped,
2. numeric-looking strings become numbers,
3. known labels of closed enumerations ("Var", "Yok", "Belirsiz", ...)
   become their ordinals,
4. unknown label strings are kept as-is so server-added values survive.

For variants priced per square meter, ``TotalPrice`` is always derived from
``TotalArea`` and ``PricePerSquareMeter`` when both are present.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from emlak_office.core.exceptions import ValidationError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import (
    BasementStatus,
    ElevatorType,
    FieldType,
    FurnishingStatus,
    HeatingType,
    LandType,
    MezzanineStatus,
    ParkingType,
    PropertyType,
    UsageStatus,
    WorkplaceType,
    ZoningStatus,
)
from emlak_office.core.utils import to_number
from emlak_office.domain.status_codec import fold_label

LOGGER = get_logger(__name__)

# Ordinal of a closed enumeration, or an unrecognized label kept verbatim
Ordinal = Union[int, str]


# =============================================================================
# Variant records
# =============================================================================


class _VariantBase(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        validate_assignment=True,
    )


class LandAttributes(_VariantBase):
    """Arsa: a zoned plot."""

    block_number: Optional[str] = Field(None, alias="BlockNumber")
    parcel_number: Optional[str] = Field(None, alias="ParcelNumber")
    total_area: Optional[float] = Field(None, ge=0, alias="TotalArea")
    price_per_square_meter: Optional[float] = Field(None, ge=0, alias="PricePerSquareMeter")
    total_price: Optional[float] = Field(None, ge=0, alias="TotalPrice")
    zoning_status: Optional[Ordinal] = Field(None, alias="ZoningStatus")
    land_type: Optional[Ordinal] = Field(None, alias="LandType")


class FieldAttributes(_VariantBase):
    """Tarla: agricultural land."""

    block_number: Optional[str] = Field(None, alias="BlockNumber")
    parcel_number: Optional[str] = Field(None, alias="ParcelNumber")
    total_area: Optional[float] = Field(None, ge=0, alias="TotalArea")
    price_per_square_meter: Optional[float] = Field(None, ge=0, alias="PricePerSquareMeter")
    total_price: Optional[float] = Field(None, ge=0, alias="TotalPrice")
    road_status: Optional[str] = Field(None, alias="RoadStatus")
    field_type: Optional[Ordinal] = Field(None, alias="FieldType")
    has_shareholder: Optional[bool] = Field(None, alias="HasShareholder")


class ApartmentAttributes(_VariantBase):
    floor: Optional[str] = Field(None, alias="Floor")
    room_count: Optional[int] = Field(None, ge=0, alias="RoomCount")
    bathroom_count: Optional[int] = Field(None, ge=0, alias="BathroomCount")
    balcony_count: Optional[int] = Field(None, ge=0, alias="BalconyCount")
    living_room_count: Optional[int] = Field(None, ge=0, alias="LivingRoomCount")
    parking_count: Optional[int] = Field(None, ge=0, alias="ParkingCount")
    total_area_gross: Optional[float] = Field(None, ge=0, alias="TotalAreaGross")
    total_area_net: Optional[float] = Field(None, ge=0, alias="TotalAreaNet")
    total_price: Optional[float] = Field(None, ge=0, alias="TotalPrice")
    heating_type: Optional[Ordinal] = Field(None, alias="HeatingType")
    elevator_type: Optional[Ordinal] = Field(None, alias="ElevatorType")
    parking_type: Optional[Ordinal] = Field(None, alias="ParkingType")
    furnishing_status: Optional[Ordinal] = Field(None, alias="FornitureStatus")


class CommercialAttributes(_VariantBase):
    workplace_type: Optional[Ordinal] = Field(None, alias="WorkplaceType")
    total_area_gross: Optional[float] = Field(None, ge=0, alias="TotalAreaGross")
    total_area_net: Optional[float] = Field(None, ge=0, alias="TotalAreaNet")
    room_count: Optional[int] = Field(None, ge=0, alias="RoomCount")
    bathroom_count: Optional[int] = Field(None, ge=0, alias="BathroomCount")
    total_price: Optional[float] = Field(None, ge=0, alias="TotalPrice")
    heating_type: Optional[Ordinal] = Field(None, alias="HeatingType")
    mezzanine_status: Optional[Ordinal] = Field(None, alias="MezzanineStatus")
    basement_status: Optional[Ordinal] = Field(None, alias="BasementStatus")
    usage_status: Optional[Ordinal] = Field(None, alias="UsageStatus")


class SharedParcelAttributes(_VariantBase):
    """Hisseli parsel: a fractional share of a parcel."""

    block_number: Optional[str] = Field(None, alias="BlockNumber")
    parcel_number: Optional[str] = Field(None, alias="ParcelNumber")
    total_area: Optional[float] = Field(None, ge=0, alias="TotalArea")
    price_per_square_meter: Optional[float] = Field(None, ge=0, alias="PricePerSquareMeter")
    total_price: Optional[float] = Field(None, ge=0, alias="TotalPrice")
    share_ratio: Optional[float] = Field(None, ge=0, le=1, alias="ShareRatio")


VariantAttributes = Union[
    LandAttributes,
    FieldAttributes,
    ApartmentAttributes,
    CommercialAttributes,
    SharedParcelAttributes,
]

VARIANT_MODELS: Dict[PropertyType, Type[_VariantBase]] = {
    PropertyType.LAND: LandAttributes,
    PropertyType.FIELD: FieldAttributes,
    PropertyType.APARTMENT: ApartmentAttributes,
    PropertyType.COMMERCIAL: CommercialAttributes,
    PropertyType.SHARED_PARCEL: SharedParcelAttributes,
}

# Variants whose TotalPrice is TotalArea x PricePerSquareMeter
PER_AREA_VARIANTS: FrozenSet[PropertyType] = frozenset(
    {PropertyType.LAND, PropertyType.FIELD, PropertyType.SHARED_PARCEL}
)

# Label -> ordinal for every closed enumeration, keyed by wire field name
ORDINAL_LABELS: Dict[str, Dict[str, int]] = {
    "ZoningStatus": {"Var": ZoningStatus.EXISTS, "Yok": ZoningStatus.NONE, "Belirsiz": ZoningStatus.UNKNOWN},
    "LandType": {
        "Arsa": LandType.PLOT,
        "Sanayi": LandType.INDUSTRIAL,
        "Çiftlik": LandType.FARM,
        "Belirsiz": LandType.UNKNOWN,
    },
    "FieldType": {
        "Tarla": FieldType.FIELD,
        "Bağ": FieldType.VINEYARD,
        "Bahçe": FieldType.ORCHARD,
        "Belirsiz": FieldType.UNKNOWN,
    },
    "HeatingType": {
        "Merkezi": HeatingType.CENTRAL,
        "MerkeziPayölçer": HeatingType.CENTRAL_METERED,
        "Kalorifer": HeatingType.RADIATOR,
        "Kombi": HeatingType.COMBI_BOILER,
        "Elektrikli": HeatingType.ELECTRIC,
        "Soba": HeatingType.STOVE,
        "Klima": HeatingType.AIR_CONDITIONER,
        "YerdenIsıtma": HeatingType.UNDERFLOOR,
        "Yok": HeatingType.NONE,
        "Belirsiz": HeatingType.UNKNOWN,
    },
    "ElevatorType": {"Var": ElevatorType.EXISTS, "Yok": ElevatorType.NONE, "Belirsiz": ElevatorType.UNKNOWN},
    "ParkingType": {
        "VarAçık": ParkingType.OPEN,
        "VarKapalı": ParkingType.CLOSED,
        "Yok": ParkingType.NONE,
        "Belirsiz": ParkingType.UNKNOWN,
    },
    "FornitureStatus": {
        "Eşyalı": FurnishingStatus.FURNISHED,
        "Eşyasız": FurnishingStatus.UNFURNISHED,
        "KısmenEşyalı": FurnishingStatus.PARTLY_FURNISHED,
        "Belirsiz": FurnishingStatus.UNKNOWN,
    },
    "WorkplaceType": {
        "Satılık": WorkplaceType.FOR_SALE,
        "Kiralık": WorkplaceType.FOR_RENT,
        "DevrenKiralık": WorkplaceType.TRANSFER_FOR_RENT,
        "DevrenSatılık": WorkplaceType.TRANSFER_FOR_SALE,
        "Belirsiz": WorkplaceType.UNKNOWN,
    },
    "MezzanineStatus": {
        "Var": MezzanineStatus.EXISTS,
        "Yok": MezzanineStatus.NONE,
        "Belirsiz": MezzanineStatus.UNKNOWN,
    },
    "BasementStatus": {
        "Var": BasementStatus.EXISTS,
        "Yok": BasementStatus.NONE,
        "Belirsiz": BasementStatus.UNKNOWN,
    },
    "UsageStatus": {
        "Boş": UsageStatus.VACANT,
        "Dolu": UsageStatus.OCCUPIED,
        "DoluKiracılı": UsageStatus.TENANTED,
        "Belirsiz": UsageStatus.UNKNOWN,
    },
}

_FOLDED_ORDINAL_LABELS: Dict[str, Dict[str, int]] = {
    wire_name: {fold_label(label): int(ordinal) for label, ordinal in labels.items()}
    for wire_name, labels in ORDINAL_LABELS.items()
}

TEXT_FIELDS: FrozenSet[str] = frozenset({"BlockNumber", "ParcelNumber", "Floor", "RoadStatus"})
BOOLEAN_FIELDS: FrozenSet[str] = frozenset({"HasShareholder"})

_TRUE_STRINGS = frozenset({"true", "1", "yes", "evet", "var"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "hayir", "hayır", "yok"})

_INVALID = object()


# =============================================================================
# Registry operations
# =============================================================================


def variant_model(property_type: PropertyType) -> Type[_VariantBase]:
    """Record class for a property type."""
    return VARIANT_MODELS[PropertyType(property_type)]


def attributes_for(property_type: PropertyType) -> FrozenSet[str]:
    """Wire field names owned by a variant."""
    model = variant_model(property_type)
    return frozenset(info.alias or name for name, info in model.model_fields.items())


def has_per_area_pricing(property_type: PropertyType) -> bool:
    return PropertyType(property_type) in PER_AREA_VARIANTS


def _convert_value(wire_name: str, value: Any) -> Any:
    """Coerce one raw value; returns ``_INVALID`` when it cannot be used."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    if wire_name in ORDINAL_LABELS:
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            ordinal = _FOLDED_ORDINAL_LABELS[wire_name].get(fold_label(value))
            if ordinal is not None:
                return ordinal
            number = to_number(value)
            if isinstance(number, int):
                return number
            # Unknown label: keep for forward compatibility
            return value
        number = to_number(value)
        if isinstance(number, float) and number.is_integer():
            return int(number)
        return number if isinstance(number, int) else _INVALID

    if wire_name in BOOLEAN_FIELDS:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return _INVALID

    if wire_name in TEXT_FIELDS:
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    # Everything else is numeric
    number = to_number(value)
    return _INVALID if number is None else number


def recompute_total_price(property_type: PropertyType, values: Dict[str, Any]) -> Dict[str, Any]:
    """Derive TotalPrice in place for per-area variants when both inputs are set."""
    if not has_per_area_pricing(property_type):
        return values
    area = values.get("TotalArea")
    unit_price = values.get("PricePerSquareMeter")
    if area is not None and unit_price is not None:
        values["TotalPrice"] = area * unit_price
    return values


def _describe_errors(exc: PydanticValidationError, model: Type[_VariantBase]) -> Dict[str, str]:
    by_name = {name: info.alias or name for name, info in model.model_fields.items()}
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        key = str(loc[0])
        errors[by_name.get(key, key)] = err.get("msg", "invalid value")
    return errors


def coerce(
    property_type: PropertyType,
    raw: Optional[Mapping[str, Any]],
    strict: bool = False,
) -> VariantAttributes:
    """
    Build the variant record for ``property_type`` from a loose attribute bag.

    Args:
        property_type: Discriminant selecting the variant.
        raw: Attribute bag keyed by PascalCase wire names. Keys owned by other
            variants are dropped.
        strict: Write path. When True, any value that cannot be coerced raises
            ``ValidationError``; when False (read path) the field is dropped and
            logged so one bad record never breaks a listing.

    Returns:
        The coerced variant record.
    """
    model = variant_model(property_type)
    allowed = attributes_for(property_type)
    values: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for key, value in (raw or {}).items():
        if key not in allowed:
            LOGGER.debug(f"Dropping {key} from {PropertyType(property_type).name} attributes")
            continue
        converted = _convert_value(key, value)
        if converted is _INVALID:
            errors[key] = f"cannot interpret {value!r}"
            continue
        if converted is not None:
            values[key] = converted

    recompute_total_price(property_type, values)

    try:
        record = model.model_validate(values)
    except PydanticValidationError as exc:
        errors.update(_describe_errors(exc, model))
        if strict:
            raise ValidationError(
                f"Invalid attributes for {PropertyType(property_type).name}", errors=errors
            ) from exc
        for key in errors:
            values.pop(key, None)
        recompute_total_price(property_type, values)
        record = model.model_validate(values)

    if errors:
        if strict:
            raise ValidationError(
                f"Invalid attributes for {PropertyType(property_type).name}", errors=errors
            )
        LOGGER.warning(
            f"Dropped invalid {PropertyType(property_type).name} attributes: {sorted(errors)}",
            extra={"extra_data": errors},
        )

    return record


def dump_attributes(attributes: VariantAttributes) -> Dict[str, Any]:
    """PascalCase wire dictionary, omitting unset fields."""
    return attributes.model_dump(by_alias=True, exclude_none=True)


def apply_changes(
    property_type: PropertyType,
    current: VariantAttributes,
    changes: Mapping[str, Any],
) -> VariantAttributes:
    """
    Merge an edit into existing attributes and re-derive TotalPrice.

    A manual TotalPrice is only honored for variants without per-area
    pricing (Apartment, Commercial); for the others it is discarded and
    recomputed from area and unit price.
    """
    merged = dump_attributes(current)
    for key, value in changes.items():
        if key == "TotalPrice" and has_per_area_pricing(property_type):
            LOGGER.debug("Ignoring manual TotalPrice on a per-area variant")
            continue
        merged[key] = value
    return coerce(property_type, merged, strict=True)


def variant_of(attributes: VariantAttributes) -> PropertyType:
    """Property type a record belongs to."""
    for property_type, model in VARIANT_MODELS.items():
        if type(attributes) is model:
            return property_type
    raise TypeError(f"Not a variant record: {type(attributes).__name__}")


__all__ = [
    "LandAttributes",
    "FieldAttributes",
    "ApartmentAttributes",
    "CommercialAttributes",
    "SharedParcelAttributes",
    "VariantAttributes",
    "VARIANT_MODELS",
    "PER_AREA_VARIANTS",
    "ORDINAL_LABELS",
    "variant_model",
    "attributes_for",
    "has_per_area_pricing",
    "recompute_total_price",
    "coerce",
    "dump_attributes",
    "apply_changes",
    "variant_of",
]
