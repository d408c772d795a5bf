"""Custom exceptions for the emlak back-office client."""
from __future__ import annotations

from typing import Any, Dict, Optional


class EmlakOfficeError(Exception):
    """Base exception for all application errors."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(EmlakOfficeError):
    """Raised when required configuration is missing or invalid."""

    pass


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(EmlakOfficeError):
    """Raised when the API cannot be reached (connection failure, timeout)."""

    pass


class ApiError(EmlakOfficeError):
    """Raised when the API answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class NotFoundError(ApiError):
    """Raised when the requested record does not exist (HTTP 404)."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(EmlakOfficeError):
    """Raised when a write payload fails validation."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})


class UnknownStatusError(ValidationError):
    """Raised when a status value cannot be mapped to a canonical status."""

    pass


class ImmutableFieldError(ValidationError):
    """Raised when an edit tries to change a field fixed at creation."""

    pass


# =============================================================================
# Synchronization Errors
# =============================================================================


class SyncError(EmlakOfficeError):
    """Raised inside a best-effort follow-up task (never reaches the caller)."""

    pass


__all__ = [
    # Base
    "EmlakOfficeError",
    # Configuration
    "ConfigurationError",
    # Transport
    "TransportError",
    "ApiError",
    "NotFoundError",
    # Validation
    "ValidationError",
    "UnknownStatusError",
    "ImmutableFieldError",
    # Synchronization
    "SyncError",
]
