"""Status reconciliation between the wire format and canonical enums.

The API stores property status as an ordinal but some endpoints answer with
the Turkish label instead, so a read may carry ``3``, ``"3"`` or
``"Rezerv"`` for the same listing. This module is the only place that
ambiguity is resolved; everything else works with ``PropertyStatus`` and
``SaleStatus`` members. Writes always send the integer.
"""
from __future__ import annotations

import unicodedata
from typing import Any, Dict, Tuple, Union

from emlak_office.core.exceptions import UnknownStatusError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import PropertyStatus, SaleStatus

LOGGER = get_logger(__name__)

RawStatus = Union[int, str, PropertyStatus, SaleStatus, None]

# Wire ordinal of each property status is its position in this tuple
PROPERTY_STATUS_ORDER: Tuple[PropertyStatus, ...] = (
    PropertyStatus.FOR_SALE,
    PropertyStatus.FOR_RENT,
    PropertyStatus.FOR_SALE_OR_RENT,
    PropertyStatus.RESERVED,
    PropertyStatus.SOLD,
    PropertyStatus.RENTED,
)

PROPERTY_STATUS_FALLBACK = PropertyStatus.FOR_SALE

PROPERTY_STATUS_LABELS: Dict[PropertyStatus, str] = {
    PropertyStatus.FOR_SALE: "Satılık",
    PropertyStatus.FOR_RENT: "Kiralık",
    PropertyStatus.FOR_SALE_OR_RENT: "SatılıkKiralık",
    PropertyStatus.RESERVED: "Rezerv",
    PropertyStatus.SOLD: "Satıldı",
    PropertyStatus.RENTED: "Kiralandı",
}

SALE_STATUS_LABELS: Dict[SaleStatus, str] = {
    SaleStatus.COMPLETED: "Tamamlandı",
    SaleStatus.PENDING: "Beklemede",
    SaleStatus.CANCELLED: "İptal Edildi",
    SaleStatus.POSTPONED: "Ertelendi",
}

_TURKISH_FOLD = str.maketrans("çğıöşüÇĞİÖŞÜ", "cgiosuCGIOSU")


def fold_label(text: str) -> str:
    """
    Reduce a label to a comparison key.

    Case, whitespace, separators and Turkish diacritics are ignored, so
    ``"Satılık Kiralık"``, ``"satilikkiralik"`` and ``"SatılıkKiralık"``
    share one key.
    """
    folded = unicodedata.normalize("NFC", text).translate(_TURKISH_FOLD)
    folded = unicodedata.normalize("NFKD", folded)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return "".join(ch for ch in folded.lower() if ch.isalnum())


def _build_lookup(labels: Dict[Any, str], members: Any) -> Dict[str, Any]:
    lookup: Dict[str, Any] = {}
    for member in members:
        lookup[fold_label(member.name)] = member
        if isinstance(member.value, str):
            lookup[fold_label(member.value)] = member
        lookup[fold_label(labels[member])] = member
    return lookup


_PROPERTY_LOOKUP = _build_lookup(PROPERTY_STATUS_LABELS, PropertyStatus)
_SALE_LOOKUP = _build_lookup(SALE_STATUS_LABELS, SaleStatus)


def _as_ordinal(raw: Any) -> Union[int, None]:
    """Integer value of an int or integral numeric string, else None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return int(raw)
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


# =============================================================================
# Property status
# =============================================================================


def normalize_property_status(raw: RawStatus) -> PropertyStatus:
    """
    Map any read-side representation to a ``PropertyStatus``.

    Unrecognized values fall back to ForSale and are logged; a single bad
    record must never break a listing.
    """
    if isinstance(raw, PropertyStatus):
        return raw

    ordinal = _as_ordinal(raw)
    if ordinal is not None:
        if 0 <= ordinal < len(PROPERTY_STATUS_ORDER):
            return PROPERTY_STATUS_ORDER[ordinal]
    elif isinstance(raw, str):
        status = _PROPERTY_LOOKUP.get(fold_label(raw))
        if status is not None:
            return status

    LOGGER.warning(
        f"Unrecognized property status {raw!r}; defaulting to {PROPERTY_STATUS_FALLBACK.value}",
        extra={"extra_data": {"raw_status": repr(raw)}},
    )
    return PROPERTY_STATUS_FALLBACK


def denormalize_property_status(status: PropertyStatus) -> int:
    """Wire ordinal for a canonical property status."""
    return PROPERTY_STATUS_ORDER.index(PropertyStatus(status))


def property_status_label(status: PropertyStatus) -> str:
    """Turkish display label."""
    return PROPERTY_STATUS_LABELS[PropertyStatus(status)]


# =============================================================================
# Sale status
# =============================================================================


def normalize_sale_status(raw: RawStatus) -> SaleStatus:
    """
    Map a read-side sale status to a ``SaleStatus``.

    Raises:
        UnknownStatusError: The value matches no sale status.
    """
    if isinstance(raw, SaleStatus):
        return raw

    ordinal = _as_ordinal(raw)
    if ordinal is not None:
        try:
            return SaleStatus(ordinal)
        except ValueError:
            pass
    elif isinstance(raw, str):
        status = _SALE_LOOKUP.get(fold_label(raw))
        if status is not None:
            return status

    raise UnknownStatusError(
        f"Unrecognized sale status {raw!r}",
        errors={"status": f"expected one of {[s.value for s in SaleStatus]}"},
    )


def denormalize_sale_status(status: SaleStatus) -> int:
    """Wire integer for a sale status."""
    return int(SaleStatus(status))


def sale_status_label(status: SaleStatus) -> str:
    """Turkish display label."""
    return SALE_STATUS_LABELS[SaleStatus(status)]


__all__ = [
    "PROPERTY_STATUS_ORDER",
    "PROPERTY_STATUS_FALLBACK",
    "PROPERTY_STATUS_LABELS",
    "SALE_STATUS_LABELS",
    "fold_label",
    "normalize_property_status",
    "denormalize_property_status",
    "property_status_label",
    "normalize_sale_status",
    "denormalize_sale_status",
    "sale_status_label",
]
