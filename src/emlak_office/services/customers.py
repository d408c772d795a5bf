"""Customer service."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import Customer
from emlak_office.domain.listings import CustomerFilters, query_customers
from emlak_office.domain.query import QueryResult
from emlak_office.domain.wire import customer_from_wire, customer_to_wire, validate_customer
from emlak_office.services.api_client import Endpoints
from emlak_office.services.base import EntityService
from emlak_office.services.entity_cache import EntityKind

LOGGER = get_logger(__name__)


class CustomerService(EntityService):
    """CRUD and list queries for customers."""

    kind = EntityKind.CUSTOMERS
    label = "customer"

    def _load_all(self) -> List[Customer]:
        return self._fetch_list(Endpoints.CUSTOMERS, customer_from_wire)

    def list_customers(self) -> List[Customer]:
        return self.list_all()

    def list_buyers(self) -> List[Customer]:
        """Customers that can be picked as the buyer of a sale."""
        return [c for c in self.list_customers() if c.is_buyer]

    def get_customer(self, customer_id: int) -> Customer:
        """
        Raises:
            NotFoundError: No customer with this id.
        """
        return self._fetch_item(Endpoints.customer(customer_id), customer_from_wire)

    def create_customer(
        self,
        customer: Customer,
        province_preferences: Optional[List[Dict[str, Any]]] = None,
    ) -> Customer:
        """
        Create a customer.

        Raises:
            ValidationError: Required fields are missing or the budget is negative.
        """
        validate_customer(customer)
        response = self.client.post(Endpoints.CUSTOMERS, json=customer_to_wire(customer, province_preferences))
        self.invalidate()
        LOGGER.info(f"Created customer {customer.full_name}")
        return self._parse_write_response(response, customer_from_wire, customer)

    def update_customer(
        self,
        customer: Customer,
        province_preferences: Optional[List[Dict[str, Any]]] = None,
    ) -> Customer:
        if customer.id is None:
            raise ValueError("Cannot update a customer without an id")
        validate_customer(customer)
        response = self.client.put(
            Endpoints.customer(customer.id),
            json=customer_to_wire(customer, province_preferences),
        )
        self.invalidate()
        return self._parse_write_response(response, customer_from_wire, customer)

    def delete_customer(self, customer_id: int) -> None:
        self.client.delete(Endpoints.customer(customer_id))
        self.invalidate()
        LOGGER.info(f"Deleted customer {customer_id}")

    def query(self, filters: Optional[CustomerFilters] = None) -> QueryResult[Customer]:
        return query_customers(self.list_customers(), filters)


__all__ = ["CustomerService"]
