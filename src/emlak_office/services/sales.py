"""Sale service and the sale-completion property sync."""
from __future__ import annotations

import dataclasses
from typing import List, Optional

from emlak_office.core.exceptions import EmlakOfficeError, SyncError, UnknownStatusError
from emlak_office.core.logging_config import get_context_logger, get_logger
from emlak_office.core.models import Sale, SaleStatistics, SaleStatus
from emlak_office.domain.lifecycle import (
    SyncOutcome,
    cancel_sale,
    plan_property_sync,
    requires_property_sync,
)
from emlak_office.domain.listings import SaleFilters, query_sales
from emlak_office.domain.query import QueryResult
from emlak_office.domain.wire import sale_from_wire, sale_to_wire, statistics_from_wire, validate_sale
from emlak_office.services.api_client import ApiClient, Endpoints, unwrap_item
from emlak_office.services.base import EntityService
from emlak_office.services.entity_cache import EntityCache, EntityKind
from emlak_office.services.properties import PropertyService
from emlak_office.services.side_effects import AfterCommitQueue, TaskOutcome

LOGGER = get_logger(__name__)

SYNC_TASK_NAME = "sale_completion_sync"


class SaleService(EntityService):
    """
    CRUD and list queries for sales.

    Writing a sale whose status moves into Completed also moves the sold
    property to Sold or Rented. That follow-up runs after the sale write
    and before the call returns; if it fails the sale write still counts
    as successful and the failure is only logged and published on the
    after-commit queue.
    """

    kind = EntityKind.SALES
    label = "sale"

    def __init__(
        self,
        client: ApiClient,
        cache: EntityCache,
        properties: PropertyService,
        after_commit: Optional[AfterCommitQueue] = None,
    ) -> None:
        super().__init__(client, cache)
        self.properties = properties
        self.after_commit = after_commit or AfterCommitQueue()
        self.last_follow_ups: List[TaskOutcome] = []

    def _load_all(self) -> List[Sale]:
        return self._fetch_list(Endpoints.SALES, sale_from_wire)

    def list_sales(self) -> List[Sale]:
        return self.list_all()

    def get_sale(self, sale_id: int) -> Sale:
        """
        Raises:
            NotFoundError: No sale with this id.
            UnknownStatusError: The stored status is not recognized.
        """
        return self._fetch_item(Endpoints.sale(sale_id), sale_from_wire)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_sale(self, sale: Sale) -> Sale:
        """
        Create a sale; a sale created as Completed syncs its property.

        Raises:
            ValidationError: Bad ids or negative amounts.
        """
        validate_sale(sale)
        response = self.client.post(Endpoints.SALES, json=sale_to_wire(sale))
        self.invalidate()
        created = self._parse_write_response(response, sale_from_wire, sale)
        LOGGER.info(f"Created sale for property {sale.property_id} ({sale.status.name})")

        if requires_property_sync(None, sale.status):
            self._schedule_sync(sale, created)
        self._run_follow_ups()
        return created

    def update_sale(self, sale: Sale) -> Sale:
        """
        Save an edited sale.

        The stored sale is read first so the property sync only fires on a
        transition into Completed, never on re-saving a completed sale.
        """
        if sale.id is None:
            raise ValueError("Cannot update a sale without an id")
        validate_sale(sale)
        previous = self._stored_status(sale.id)

        response = self.client.put(Endpoints.sale(sale.id), json=sale_to_wire(sale))
        self.invalidate()
        updated = self._parse_write_response(response, sale_from_wire, sale)

        if requires_property_sync(previous, sale.status):
            self._schedule_sync(sale, updated)
        self._run_follow_ups()
        return updated

    def cancel(self, sale_id: int) -> Sale:
        """
        Cancel a sale from any state.

        An already cancelled sale is returned as-is without a write.
        """
        sale = self.get_sale(sale_id)
        transition = cancel_sale(sale)
        if not transition.changed:
            return sale

        response = self.client.put(Endpoints.sale(sale_id), json=sale_to_wire(sale))
        self.invalidate()
        self.cache.invalidate(EntityKind.PROPERTIES)
        LOGGER.info(f"Cancelled sale {sale_id} (was {transition.previous.name})")
        return self._parse_write_response(response, sale_from_wire, sale)

    def delete_sale(self, sale_id: int) -> None:
        self.client.delete(Endpoints.sale(sale_id))
        self.invalidate()
        LOGGER.info(f"Deleted sale {sale_id}")

    # -------------------------------------------------------------------------
    # Property sync
    # -------------------------------------------------------------------------

    def _stored_status(self, sale_id: int) -> Optional[SaleStatus]:
        """Status currently stored for a sale; None when it is not recognized."""
        try:
            return self.get_sale(sale_id).status
        except UnknownStatusError as e:
            LOGGER.warning(f"Sale {sale_id} has an unrecognized stored status ({e}); treating the edit as new")
            return None

    def _schedule_sync(self, written: Sale, echoed: Sale) -> None:
        # Property id comes from the caller's record; write echoes may omit it
        target = dataclasses.replace(written, id=echoed.id if echoed.id is not None else written.id)
        self.after_commit.enqueue(SYNC_TASK_NAME, lambda: self.sync_property(target))

    def _run_follow_ups(self) -> None:
        self.last_follow_ups = self.after_commit.run_pending()

    def sync_property(self, sale: Sale) -> SyncOutcome:
        """
        Apply the completion rule to the sale's property.

        Raises:
            SyncError: The property could not be read or updated.
        """
        log = get_context_logger(__name__, entity_kind="property", entity_id=sale.property_id)
        try:
            prop = self.properties.get_property(sale.property_id)
            outcome = plan_property_sync(sale, prop)
            if outcome.applied:
                self.properties.change_status(sale.property_id, outcome.new_status)
                log.info(
                    f"Sale {sale.id} completed: property {sale.property_id} "
                    f"{outcome.previous_status.value} -> {outcome.new_status.value}"
                )
            else:
                log.debug(f"Property {sale.property_id} left as {outcome.previous_status.value}")
            return outcome
        except EmlakOfficeError as e:
            raise SyncError(f"Property {sale.property_id} sync after sale {sale.id} failed: {e}") from e
        finally:
            self.cache.invalidate(EntityKind.PROPERTIES)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_sales_by_property(self, property_id: int) -> List[Sale]:
        """Sales of one property; empty on any error."""
        try:
            return self._fetch_list(Endpoints.sales_by_property(property_id), sale_from_wire)
        except EmlakOfficeError as e:
            LOGGER.warning(f"Sales for property {property_id} unavailable: {e}")
            return []

    def can_sell_property(self, property_id: int) -> bool:
        """Whether the API allows a new sale of this property; False on any error."""
        try:
            data = unwrap_item(self.client.get(Endpoints.can_sell(property_id)))
        except EmlakOfficeError as e:
            LOGGER.warning(f"Can-sell check failed for property {property_id}: {e}")
            return False
        if isinstance(data, dict):
            return bool(data.get("canSell", False))
        return bool(data)

    def get_statistics(self) -> SaleStatistics:
        """Office-wide sale totals; all zeros when the endpoint fails or answers oddly."""
        return self._fetch_statistics(Endpoints.SALE_STATISTICS, "Sale")

    def get_my_statistics(self) -> SaleStatistics:
        """Totals for the signed-in user's own sales; zeros on failure."""
        return self._fetch_statistics(Endpoints.MY_SALE_STATISTICS, "Own sale")

    def _fetch_statistics(self, path: str, label: str) -> SaleStatistics:
        try:
            data = unwrap_item(self.client.get(path))
        except EmlakOfficeError as e:
            LOGGER.warning(f"{label} statistics unavailable: {e}")
            return SaleStatistics()
        if not isinstance(data, dict) or "totalSales" not in data:
            LOGGER.warning(f"Unexpected {label.lower()} statistics payload; using defaults")
            return SaleStatistics()
        return statistics_from_wire(data)

    def query(self, filters: Optional[SaleFilters] = None) -> QueryResult[Sale]:
        return query_sales(self.list_sales(), filters)


__all__ = ["SYNC_TASK_NAME", "SaleService"]
