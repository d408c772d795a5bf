"""Composition root for one operator session."""
from __future__ import annotations

from typing import Any, Optional

import httpx

from emlak_office.core.config import Settings, get_settings
from emlak_office.core.logging_config import configure_logging, get_logger
from emlak_office.scheduler.presence import PresencePoller
from emlak_office.services.api_client import ApiClient
from emlak_office.services.customers import CustomerService
from emlak_office.services.entity_cache import EntityCache
from emlak_office.services.locations import LocationService
from emlak_office.services.properties import PropertyService
from emlak_office.services.sales import SaleService
from emlak_office.services.side_effects import AfterCommitQueue
from emlak_office.services.users import UserService

LOGGER = get_logger(__name__)


class BackOfficeSession:
    """
    Everything one operator needs: client, cache, follow-up queue, services.

    Use as a context manager so the HTTP client and presence poller are
    released on exit.

    Example:
        with BackOfficeSession(token=token) as session:
            page = session.properties.query(PropertyFilters(search="deniz"))
    """

    def __init__(
        self,
        token: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
        client: Optional[ApiClient] = None,
        setup_logs: bool = False,
    ):
        """
        Build the session.

        Args:
            token: Bearer token (falls back to API_TOKEN).
            settings: Settings to use (defaults to get_settings()).
            transport: Custom httpx transport for the client.
            client: Pre-built client; overrides token and transport.
            setup_logs: Configure root logging from LOG_LEVEL and LOG_FORMAT.
        """
        self.settings = settings or get_settings()
        if setup_logs:
            configure_logging(self.settings)
        self.client = client or ApiClient(token=token, transport=transport, settings=self.settings)
        self.cache = EntityCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self.after_commit = AfterCommitQueue()

        self.customers = CustomerService(self.client, self.cache)
        self.properties = PropertyService(self.client, self.cache, customers=self.customers)
        self.sales = SaleService(self.client, self.cache, self.properties, self.after_commit)
        self.users = UserService(self.client, self.cache)
        self.locations = LocationService(self.client, self.cache)

        self.presence = PresencePoller(self.users, self.settings.presence_poll_seconds)

    def start_presence_polling(self) -> None:
        """Start online-user polling if enabled in settings."""
        if self.settings.is_presence_polling_enabled():
            self.presence.start()
        else:
            LOGGER.debug("Presence polling disabled")

    def refresh(self) -> None:
        """Drop every cached collection."""
        self.cache.invalidate_all()

    def close(self) -> None:
        self.presence.stop()
        self.client.close()

    def __enter__(self) -> "BackOfficeSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


__all__ = ["BackOfficeSession"]
