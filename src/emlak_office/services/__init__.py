"""REST-backed services for the back office.

Each entity service reads whole collections through the session's
EntityCache, returns an empty list when a list read fails, and invalidates
its cache kind after every successful write. Sale writes that complete a
sale also sync the sold property through the after-commit queue.
"""
from __future__ import annotations

from .retry import build_retrying, call_with_retry
from .api_client import ApiClient, Endpoints, unwrap_collection, unwrap_item
from .entity_cache import EntityCache, EntityKind
from .side_effects import AfterCommitQueue, TaskOutcome
from .customers import CustomerService
from .properties import PropertyService
from .sales import SaleService
from .users import UserService
from .locations import LocationService
from .session import BackOfficeSession

__all__ = [
    # Transport
    "build_retrying",
    "call_with_retry",
    "ApiClient",
    "Endpoints",
    "unwrap_collection",
    "unwrap_item",
    # Cache
    "EntityCache",
    "EntityKind",
    # Follow-up tasks
    "AfterCommitQueue",
    "TaskOutcome",
    # Entity services
    "CustomerService",
    "PropertyService",
    "SaleService",
    "UserService",
    "LocationService",
    "BackOfficeSession",
]
