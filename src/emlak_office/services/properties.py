"""Property service."""
from __future__ import annotations

from typing import List, Optional, Sequence

from emlak_office.core.exceptions import EmlakOfficeError, ImmutableFieldError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import Customer, PriceHistoryEntry, Property, PropertyStatus
from emlak_office.domain.lifecycle import change_property_status
from emlak_office.domain.listings import PropertyFilters, query_properties
from emlak_office.domain.property_schema import coerce, dump_attributes
from emlak_office.domain.query import QueryResult, SortKey, sort_items
from emlak_office.domain.status_codec import denormalize_property_status
from emlak_office.domain.wire import (
    price_history_from_wire,
    property_from_wire,
    property_to_wire,
    validate_property,
)
from emlak_office.services.api_client import ApiClient, Endpoints
from emlak_office.services.base import EntityService
from emlak_office.services.customers import CustomerService
from emlak_office.services.entity_cache import EntityCache, EntityKind

LOGGER = get_logger(__name__)


class PropertyService(EntityService):
    """CRUD, status changes and list queries for properties."""

    kind = EntityKind.PROPERTIES
    label = "property"

    def __init__(
        self,
        client: ApiClient,
        cache: EntityCache,
        customers: Optional[CustomerService] = None,
    ) -> None:
        super().__init__(client, cache)
        self.customers = customers

    def _load_all(self) -> List[Property]:
        return self._fetch_list(Endpoints.PROPERTIES, property_from_wire)

    def list_properties(self) -> List[Property]:
        return self.list_all()

    def get_property(self, property_id: int) -> Property:
        """
        Raises:
            NotFoundError: No property with this id.
        """
        return self._fetch_item(Endpoints.property(property_id), property_from_wire)

    def _prepare(self, prop: Property) -> None:
        # Re-coerce strictly so derived TotalPrice is current and bad values are rejected
        prop.attributes = coerce(prop.property_type, dump_attributes(prop.attributes), strict=True)
        validate_property(prop)

    def create_property(self, prop: Property) -> Property:
        """
        Create a property.

        Raises:
            ValidationError: Missing fields, bad ids or invalid attributes.
        """
        self._prepare(prop)
        response = self.client.post(Endpoints.PROPERTIES, json=property_to_wire(prop))
        self.invalidate()
        LOGGER.info(f"Created {prop.property_type.name} property '{prop.title}'")
        return self._parse_write_response(response, property_from_wire, prop)

    def update_property(self, prop: Property, original: Optional[Property] = None) -> Property:
        """
        Save an edited property.

        Args:
            prop: Edited record; must carry an id.
            original: Record as it was loaded. Fetched when not given.

        Raises:
            ImmutableFieldError: The edit changes ``property_type``.
            ValidationError: The record is invalid.
        """
        if prop.id is None:
            raise ValueError("Cannot update a property without an id")
        if original is None:
            original = self.get_property(prop.id)
        if original.property_type != prop.property_type:
            raise ImmutableFieldError(
                f"Property {prop.id} type cannot change from "
                f"{original.property_type.name} to {prop.property_type.name}",
                errors={"property_type": "immutable after creation"},
            )
        self._prepare(prop)
        response = self.client.put(Endpoints.property(prop.id), json=property_to_wire(prop))
        self.invalidate()
        return self._parse_write_response(response, property_from_wire, prop)

    def delete_property(self, property_id: int) -> None:
        self.client.delete(Endpoints.property(property_id))
        self.invalidate()
        LOGGER.info(f"Deleted property {property_id}")

    def change_status(self, property_id: int, status: PropertyStatus) -> Optional[Property]:
        """
        Set a property's status.

        Uses the dedicated status endpoint and falls back to a full update
        of the current record when that endpoint fails.

        Returns:
            The updated record when the API returns one.
        """
        status = PropertyStatus(status)
        try:
            response = self.client.patch(
                Endpoints.property_status(property_id),
                json={"status": denormalize_property_status(status)},
            )
        except EmlakOfficeError as e:
            LOGGER.info(f"Status endpoint failed for property {property_id} ({e}); sending full update")
            current = self.get_property(property_id)
            change_property_status(current, status)
            return self.update_property(current, original=current)

        self.invalidate()
        LOGGER.info(f"Property {property_id} status set to {status.value}")
        return self._parse_write_response(response, property_from_wire, None)

    def get_price_history(self, property_id: int) -> List[PriceHistoryEntry]:
        """Price history, most recent first; empty on any error."""
        try:
            entries = self._fetch_list(Endpoints.price_history(property_id), price_history_from_wire)
        except EmlakOfficeError as e:
            LOGGER.warning(f"Price history unavailable for property {property_id}: {e}")
            return []
        return sort_items(entries, [SortKey(lambda entry: entry.date, descending=True)])

    def query(
        self,
        filters: Optional[PropertyFilters] = None,
        customers: Optional[Sequence[Customer]] = None,
    ) -> QueryResult[Property]:
        """Filter the cached properties; owner names come from the customer cache."""
        if customers is None:
            customers = self.customers.list_customers() if self.customers is not None else []
        return query_properties(self.list_properties(), filters, customers)


__all__ = ["PropertyService"]
