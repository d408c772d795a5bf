"""Domain layer for emlak_office back-office rules.

Pure logic with no I/O: status reconciliation, property variant records,
status lifecycles, client-side querying and wire conversion. Services in
``emlak_office.services`` call into these modules.
"""
from __future__ import annotations

from .status_codec import (
    normalize_property_status,
    denormalize_property_status,
    normalize_sale_status,
    denormalize_sale_status,
    property_status_label,
    sale_status_label,
)
from .property_schema import (
    LandAttributes,
    FieldAttributes,
    ApartmentAttributes,
    CommercialAttributes,
    SharedParcelAttributes,
    VariantAttributes,
    attributes_for,
    coerce,
    apply_changes,
    dump_attributes,
)
from .lifecycle import (
    Transition,
    SyncOutcome,
    change_property_status,
    change_sale_status,
    cancel_sale,
    completion_target,
    requires_property_sync,
)
from .query import SortKey, QueryResult, query
from .listings import (
    PropertyFilters,
    SaleFilters,
    CustomerFilters,
    UserFilters,
    query_properties,
    query_sales,
    query_customers,
    query_users,
)

__all__ = [
    # Status codec
    "normalize_property_status",
    "denormalize_property_status",
    "normalize_sale_status",
    "denormalize_sale_status",
    "property_status_label",
    "sale_status_label",
    # Property schema
    "LandAttributes",
    "FieldAttributes",
    "ApartmentAttributes",
    "CommercialAttributes",
    "SharedParcelAttributes",
    "VariantAttributes",
    "attributes_for",
    "coerce",
    "apply_changes",
    "dump_attributes",
    # Lifecycle
    "Transition",
    "SyncOutcome",
    "change_property_status",
    "change_sale_status",
    "cancel_sale",
    "completion_target",
    "requires_property_sync",
    # Query
    "SortKey",
    "QueryResult",
    "query",
    "PropertyFilters",
    "SaleFilters",
    "CustomerFilters",
    "UserFilters",
    "query_properties",
    "query_sales",
    "query_customers",
    "query_users",
]
