"""Core module exports."""
from __future__ import annotations

from emlak_office.core.config import Settings, get_settings, reload_settings
from emlak_office.core.exceptions import (
    # Base
    EmlakOfficeError,
    # Configuration
    ConfigurationError,
    # Transport
    TransportError,
    ApiError,
    NotFoundError,
    # Validation
    ValidationError,
    UnknownStatusError,
    ImmutableFieldError,
    # Synchronization
    SyncError,
)
from emlak_office.core.logging_config import (
    setup_logging,
    configure_logging,
    get_logger,
    get_context_logger,
    log_external_call,
    JSONFormatter,
    ContextLogger,
)
from emlak_office.core.models import (
    Customer,
    CustomerType,
    InterestType,
    Property,
    PropertyStatus,
    PropertyType,
    Sale,
    SaleStatus,
    User,
    UserRole,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reload_settings",
    # Models
    "Customer",
    "CustomerType",
    "InterestType",
    "Property",
    "PropertyStatus",
    "PropertyType",
    "Sale",
    "SaleStatus",
    "User",
    "UserRole",
    # Exceptions
    "EmlakOfficeError",
    "ConfigurationError",
    "TransportError",
    "ApiError",
    "NotFoundError",
    "ValidationError",
    "UnknownStatusError",
    "ImmutableFieldError",
    "SyncError",
    # Logging
    "setup_logging",
    "configure_logging",
    "get_logger",
    "get_context_logger",
    "log_external_call",
    "JSONFormatter",
    "ContextLogger",
]
