"""Property and sale status lifecycles.

Neither machine forbids any edit-driven transition. The one automatic rule
couples them: when a sale moves *into* Completed, its property becomes
Rented (if it was offered for rent) or Sold (if it was offered for sale).
The rule fires once per qualifying transition; re-saving an already
completed sale does not re-apply it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import Property, PropertyStatus, Sale, SaleStatus
from emlak_office.core.utils import utcnow

LOGGER = get_logger(__name__)

# Property status a completed sale moves a listing to
COMPLETION_TARGETS: Dict[PropertyStatus, PropertyStatus] = {
    PropertyStatus.FOR_RENT: PropertyStatus.RENTED,
    PropertyStatus.FOR_SALE_OR_RENT: PropertyStatus.RENTED,
    PropertyStatus.FOR_SALE: PropertyStatus.SOLD,
}


@dataclass
class Transition:
    """Result of a requested status change."""

    previous: Any
    current: Any
    changed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previous": getattr(self.previous, "name", self.previous),
            "current": getattr(self.current, "name", self.current),
            "changed": self.changed,
        }


@dataclass
class SyncOutcome:
    """One run of the sale-completion rule against a property."""

    sale_id: Optional[int]
    property_id: int
    outcome: str  # applied | skipped | failed
    previous_status: Optional[PropertyStatus] = None
    new_status: Optional[PropertyStatus] = None
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=utcnow)

    @property
    def applied(self) -> bool:
        return self.outcome == "applied"

    @property
    def failed(self) -> bool:
        return self.outcome == "failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sale_id": self.sale_id,
            "property_id": self.property_id,
            "outcome": self.outcome,
            "previous_status": self.previous_status.value if self.previous_status else None,
            "new_status": self.new_status.value if self.new_status else None,
            "error": self.error,
            "finished_at": self.finished_at.isoformat(),
        }


# =============================================================================
# Property machine
# =============================================================================


def change_property_status(prop: Property, status: PropertyStatus) -> Transition:
    """Set any status on a property (edits are unrestricted)."""
    previous = prop.status
    prop.status = PropertyStatus(status)
    return Transition(previous=previous, current=prop.status, changed=previous != prop.status)


def completion_target(status: PropertyStatus) -> Optional[PropertyStatus]:
    """
    Status a property takes when one of its sales completes.

    Returns None for Reserved, Sold and Rented, which are left alone.
    """
    return COMPLETION_TARGETS.get(PropertyStatus(status))


# =============================================================================
# Sale machine
# =============================================================================


def change_sale_status(sale: Sale, status: SaleStatus) -> Transition:
    """Set any status on a sale (edits are unrestricted)."""
    previous = sale.status
    sale.status = SaleStatus(status)
    return Transition(previous=previous, current=sale.status, changed=previous != sale.status)


def cancel_sale(sale: Sale) -> Transition:
    """
    Force a sale to Cancelled from any state.

    Cancelling an already cancelled sale reports ``changed=False`` so the
    caller can skip the write.
    """
    if sale.status == SaleStatus.CANCELLED:
        LOGGER.debug(f"Sale {sale.id} already cancelled")
        return Transition(previous=sale.status, current=sale.status, changed=False)
    return change_sale_status(sale, SaleStatus.CANCELLED)


def requires_property_sync(previous: Optional[SaleStatus], new: SaleStatus) -> bool:
    """
    Check whether a sale write triggers the property completion rule.

    Args:
        previous: Status before the write, or None when the sale is new.
        new: Status being written.

    Returns:
        True only on a transition into Completed.
    """
    if SaleStatus(new) != SaleStatus.COMPLETED:
        return False
    return previous is None or SaleStatus(previous) != SaleStatus.COMPLETED


def plan_property_sync(sale: Sale, prop: Property) -> SyncOutcome:
    """
    Work out what the completion rule does to ``prop`` without applying it.

    The returned outcome is "applied" when a status change is needed (with
    ``new_status`` set) and "skipped" otherwise.
    """
    target = completion_target(prop.status)
    if target is None:
        return SyncOutcome(
            sale_id=sale.id,
            property_id=prop.id if prop.id is not None else sale.property_id,
            outcome="skipped",
            previous_status=prop.status,
        )
    return SyncOutcome(
        sale_id=sale.id,
        property_id=prop.id if prop.id is not None else sale.property_id,
        outcome="applied",
        previous_status=prop.status,
        new_status=target,
    )


__all__ = [
    "COMPLETION_TARGETS",
    "Transition",
    "SyncOutcome",
    "change_property_status",
    "completion_target",
    "change_sale_status",
    "cancel_sale",
    "requires_property_sync",
    "plan_property_sync",
]
