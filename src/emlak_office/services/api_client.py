"""HTTP client for the back-office REST API.

Every endpoint may answer with a bare JSON value or an envelope
``{"success": bool, "data": ..., "message": str}``; ``unwrap_collection``
and ``unwrap_item`` accept both. Transport failures surface as
``TransportError`` and HTTP error statuses as ``ApiError``.
"""
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx

from emlak_office.core.config import Settings, get_settings
from emlak_office.core.exceptions import ApiError, ConfigurationError, NotFoundError, TransportError
from emlak_office.core.logging_config import get_logger, log_external_call
from emlak_office.services.retry import build_retrying, call_with_retry

LOGGER = get_logger(__name__)

SERVICE_NAME = "backoffice_api"


class Endpoints:
    """Paths relative to the API base URL."""

    CUSTOMERS = "/Customer"
    PROPERTIES = "/Property"
    PROVINCES = "/Province"
    DISTRICTS = "/District"
    NEIGHBORHOODS = "/Neighborhood"
    SALES = "/sale"
    SALE_STATISTICS = "/sale/statistics"
    MY_SALE_STATISTICS = "/sale/my-statistics"
    USERS = "/admin/users"
    ONLINE_USERS = "/UserActivity/online-users"
    CHANGE_OWN_PASSWORD = "/auth/change-password"

    @staticmethod
    def customer(customer_id: int) -> str:
        return f"/Customer/{customer_id}"

    @staticmethod
    def property(property_id: int) -> str:
        return f"/Property/{property_id}"

    @staticmethod
    def property_status(property_id: int) -> str:
        return f"/Property/{property_id}/status"

    @staticmethod
    def price_history(property_id: int) -> str:
        return f"/Property/{property_id}/price-history"

    @staticmethod
    def sale(sale_id: int) -> str:
        return f"/sale/{sale_id}"

    @staticmethod
    def sales_by_property(property_id: int) -> str:
        return f"/sale/property/{property_id}"

    @staticmethod
    def can_sell(property_id: int) -> str:
        return f"/sale/can-sell/{property_id}"

    @staticmethod
    def user(user_id: str) -> str:
        return f"/admin/users/{user_id}"

    @staticmethod
    def user_role(user_id: str) -> str:
        return f"/admin/users/{user_id}/role"

    @staticmethod
    def user_password(user_id: str) -> str:
        return f"/admin/users/{user_id}/password"

    @staticmethod
    def user_lock(user_id: str) -> str:
        return f"/admin/users/{user_id}/lock"


# =============================================================================
# Envelope handling
# =============================================================================


def _is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and (
        "success" in payload or "message" in payload or isinstance(payload["data"], list)
    )


def unwrap_item(payload: Any) -> Any:
    """
    Return the record inside an envelope, or the payload itself.

    Raises:
        ApiError: The envelope reports ``success: false``.
    """
    if _is_envelope(payload):
        if payload.get("success") is False:
            raise ApiError(payload.get("message") or "Request was not successful", payload=payload)
        return payload.get("data")
    return payload


def unwrap_collection(payload: Any) -> List[Any]:
    """
    Return the list of records from a bare array or an envelope.

    Raises:
        ApiError: The envelope reports failure or the payload holds no list.
    """
    data = unwrap_item(payload)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    raise ApiError(f"Expected a list, got {type(data).__name__}", payload=payload)


# =============================================================================
# Client
# =============================================================================


class ApiClient:
    """Thin wrapper over ``httpx.Client`` with auth, logging and read retries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root (uses settings if not provided).
            token: Bearer token sent with every request.
            timeout: Per-request timeout in seconds.
            max_retries: Attempts for GET requests.
            backoff_seconds: Exponential backoff multiplier between GET attempts.
            transport: Custom httpx transport (tests use ``httpx.MockTransport``).
            settings: Settings to read defaults from.
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        if not self.base_url:
            raise ConfigurationError("API_BASE_URL is not configured")
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._transport = transport
        self._retrying = build_retrying(
            max_attempts=max_retries if max_retries is not None else settings.api_max_retries,
            backoff_seconds=(
                backoff_seconds if backoff_seconds is not None else settings.api_retry_backoff_seconds
            ),
        )
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        start_time = time.perf_counter()
        success = False
        status_code: Optional[int] = None
        error: Optional[str] = None

        try:
            response = self._get_client().request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(),
            )
            status_code = response.status_code

            if response.is_error:
                payload = _safe_json(response)
                message = _error_message(payload) or f"{method} {path} returned {status_code}"
                error = message
                if status_code == 404:
                    raise NotFoundError(message, status_code=status_code, payload=payload)
                raise ApiError(message, status_code=status_code, payload=payload)

            success = True
            return _safe_json(response)

        except httpx.TimeoutException as e:
            error = "timeout"
            raise TransportError(f"Timeout during {method} {path}: {e}") from e
        except httpx.TransportError as e:
            error = type(e).__name__
            raise TransportError(f"Connection error during {method} {path}: {e}") from e

        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log_external_call(
                LOGGER,
                service=SERVICE_NAME,
                operation=f"{method} {path}",
                success=success,
                duration_ms=duration_ms,
                status_code=status_code,
                error=error,
            )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET with retries on transport errors."""
        return call_with_retry(lambda: self._send("GET", path, params=params), self._retrying)

    def post(self, path: str, json: Any = None) -> Any:
        return self._send("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self._send("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        return self._send("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self._send("DELETE", path)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def _safe_json(response: httpx.Response) -> Any:
    """Parsed body, the raw text when it is not JSON, or None when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("message", "title", "error"):
            if payload.get(key):
                return str(payload[key])
    if isinstance(payload, str) and payload.strip():
        return payload.strip()[:200]
    return None


__all__ = [
    "SERVICE_NAME",
    "Endpoints",
    "ApiClient",
    "unwrap_item",
    "unwrap_collection",
]
