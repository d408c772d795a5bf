"""Pytest configuration and fixtures."""
from __future__ import annotations

import copy
import json
import os
import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Set test environment
os.environ["API_BASE_URL"] = "https://emlak.test/api"
os.environ["API_TOKEN"] = "test-token"
os.environ["API_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["API_MAX_RETRIES"] = "3"
os.environ["ENVIRONMENT"] = "test"
os.environ["ENABLE_PRESENCE_POLLING"] = "false"
os.environ.pop("CACHE_TTL_SECONDS", None)

from emlak_office.core.config import Settings, reload_settings
from emlak_office.services.api_client import ApiClient
from emlak_office.services.entity_cache import EntityCache
from emlak_office.services.session import BackOfficeSession

API_PREFIX = "/api"


# =============================================================================
# Sample API records
# =============================================================================


CUSTOMERS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "fullName": "Ayşe Yılmaz",
        "phone": "05321234567",
        "budget": 100000,
        "notes": "Kadıköy tarafında daire arıyor",
        "customerType": 0,
        "interestType": 8,
        "provincePreferencesCount": 1,
        "createdAt": "2024-01-05T09:30:00Z",
    },
    {
        "id": 2,
        "fullName": "Mehmet Demir",
        "phone": "05559876543",
        "budget": None,
        "notes": "",
        "customerType": 1,
        "interestType": 0,
        "provincePreferencesCount": 0,
        "createdAt": "2024-01-06T10:00:00Z",
    },
    {
        "id": 3,
        "fullName": "Zeynep Kaya",
        "phone": "05441112233",
        "budget": 250000,
        "notes": "Yatırımcı",
        "customerType": 2,
        "interestType": 4,
        "provincePreferencesCount": 2,
        "createdAt": "2024-02-01T12:00:00Z",
    },
]

PROPERTIES: List[Dict[str, Any]] = [
    {
        "id": 10,
        "propertyType": 0,
        "title": "Deniz manzaralı arsa",
        "status": 0,
        "provinceId": 34,
        "districtId": 1,
        "neighborhoodId": 5,
        "customerId": 2,
        "intermediaryFullName": "Ali Emlak",
        "intermediaryPhone": "05001112233",
        "notes": "",
        "typeSpecificProperties": {
            "BlockNumber": "101",
            "ParcelNumber": "7",
            "TotalArea": "500",
            "PricePerSquareMeter": "1200",
            "ZoningStatus": "Var",
            "LandType": "Arsa",
        },
        "createdAt": "2024-01-10T08:00:00Z",
    },
    {
        "id": 11,
        "propertyType": 2,
        "title": "Merkezde 3+1 daire",
        "status": "Kiralık",
        "provinceId": 34,
        "districtId": 1,
        "neighborhoodId": 5,
        "customerId": 2,
        "intermediaryFullName": "",
        "intermediaryPhone": "",
        "notes": "Metroya yakın",
        "typeSpecificProperties": {
            "Floor": 3,
            "RoomCount": "3",
            "TotalPrice": 15000,
            "HeatingType": "Kombi",
            "ElevatorType": "Var",
        },
        "createdAt": "2024-01-11T08:00:00Z",
    },
    {
        "id": 12,
        "propertyType": 1,
        "title": "Bağ evi tarlası",
        "status": 3,
        "provinceId": 35,
        "districtId": 2,
        "neighborhoodId": 8,
        "customerId": 3,
        "intermediaryFullName": "",
        "intermediaryPhone": "",
        "notes": "",
        "typeSpecificProperties": {
            "TotalArea": 1000,
            "PricePerSquareMeter": 50,
            "HasShareholder": "true",
            "FieldType": "Bağ",
            "RoadStatus": "Var",
        },
        "createdAt": "2024-01-12T08:00:00Z",
    },
    {
        "id": 13,
        "propertyType": 3,
        "title": "Cadde üstü dükkan",
        "status": 4,
        "provinceId": 34,
        "districtId": 2,
        "neighborhoodId": 9,
        "customerId": 3,
        "intermediaryFullName": "",
        "intermediaryPhone": "",
        "notes": "",
        "typeSpecificProperties": {
            "WorkplaceType": "Satılık",
            "TotalPrice": 2000000,
            "UsageStatus": "Boş",
        },
        "createdAt": "2024-01-13T08:00:00Z",
    },
    {
        "id": 14,
        "propertyType": 4,
        "title": "Hisseli parsel",
        "status": 2,
        "provinceId": 34,
        "districtId": 1,
        "neighborhoodId": 5,
        "customerId": 1,
        "intermediaryFullName": "",
        "intermediaryPhone": "",
        "notes": "",
        "typeSpecificProperties": {
            "TotalArea": 2000,
            "PricePerSquareMeter": 100,
            "ShareRatio": 0.25,
        },
        "createdAt": "2024-01-14T08:00:00Z",
    },
]

SALES: List[Dict[str, Any]] = [
    {
        "id": 100,
        "propertyId": 10,
        "propertyTitle": "Deniz manzaralı arsa",
        "buyerCustomerId": 1,
        "buyerCustomerName": "Ayşe Yılmaz",
        "sellerCustomerName": "Mehmet Demir",
        "salePrice": 600000,
        "commission": 18000,
        "expenses": 3000,
        "commissionRate": 99.9,
        "netProfit": 1,
        "saleDate": "2024-03-10T00:00:00Z",
        "status": 2,
        "notes": "",
        "createdBy": "admin",
        "property": {"id": 10, "title": "Deniz manzaralı arsa", "propertyType": 0},
    },
    {
        "id": 101,
        "propertyId": 11,
        "propertyTitle": "Merkezde 3+1 daire",
        "buyerCustomerId": 3,
        "buyerCustomerName": "Zeynep Kaya",
        "sellerCustomerName": "Mehmet Demir",
        "salePrice": 15000,
        "commission": 1500,
        "expenses": 0,
        "saleDate": "2024-04-02T00:00:00Z",
        "status": 1,
        "notes": "",
        "createdBy": "admin",
        "property": {"id": 11, "title": "Merkezde 3+1 daire", "propertyType": 2},
    },
]

USERS: List[Dict[str, Any]] = [
    {
        "id": "u-1",
        "username": "admin",
        "email": "admin@emlak.test",
        "role": "Admin",
        "lockoutEnd": None,
        "createdAt": "2023-12-01T00:00:00Z",
    },
    {
        "id": "u-2",
        "username": "danisman",
        "email": "danisman@emlak.test",
        "role": "User",
        "lockoutEnd": "2099-01-01T00:00:00+00:00",
        "createdAt": "2023-12-02T00:00:00Z",
    },
]

ONLINE_USERS: List[Dict[str, Any]] = [
    {
        "userId": "u-1",
        "userName": "admin",
        "email": "admin@emlak.test",
        "role": "Admin",
        "lastLoginDate": "2024-05-01T08:00:00Z",
        "lastActivityDate": "2024-05-01T08:05:00Z",
        "lastLoginIp": "10.0.0.1",
    },
]

PROVINCES: List[Dict[str, Any]] = [
    {
        "id": 34,
        "name": "İstanbul",
        "districts": [
            {"id": 1, "name": "Kadıköy", "neighborhoods": [{"id": 5, "name": "Moda"}]},
        ],
    },
    {"id": 35, "name": "İzmir", "districts": []},
]

DISTRICTS: Dict[int, List[Dict[str, Any]]] = {
    34: [
        {"id": 1, "name": "Kadıköy", "provinceId": 34},
        {"id": 2, "name": "Beşiktaş", "provinceId": 34},
    ],
    35: [{"id": 3, "name": "Urla", "provinceId": 35}],
}

NEIGHBORHOODS: Dict[int, List[Dict[str, Any]]] = {
    1: [{"id": 5, "name": "Moda", "districtId": 1}, {"id": 6, "name": "Fenerbahçe", "districtId": 1}],
}

PRICE_HISTORY: Dict[int, List[Dict[str, Any]]] = {
    10: [
        {"id": 1, "price": 550000, "date": "2024-01-10T00:00:00Z", "createdAt": "2024-01-10T00:00:00Z"},
        {"id": 2, "price": 600000, "date": "2024-02-20T00:00:00Z", "createdAt": "2024-02-20T00:00:00Z"},
    ],
}

STATISTICS: Dict[str, Any] = {
    "totalSales": 2,
    "totalRevenue": 615000,
    "totalCommission": 19500,
    "totalExpenses": 3000,
    "totalNetProfit": 16500,
    "averageSalePrice": 307500,
    "salesThisMonth": 1,
    "revenueThisMonth": 15000,
}


# =============================================================================
# In-memory API
# =============================================================================


Failure = Union[int, Callable[[httpx.Request], Exception]]


class FakeBackend:
    """
    In-memory stand-in for the REST API, served through httpx.MockTransport.

    ``calls`` records every request as ``(method, path, body)``. ``fail``
    makes a route answer with an HTTP error status or raise a transport
    error, optionally only for the first ``times`` requests. Setting
    ``write_echo`` to a tuple of keys trims create/update responses to those
    keys, as some API versions answer writes with a partial record.
    """

    def __init__(self, envelope: bool = False) -> None:
        self.envelope = envelope
        self.customers = {r["id"]: copy.deepcopy(r) for r in CUSTOMERS}
        self.properties = {r["id"]: copy.deepcopy(r) for r in PROPERTIES}
        self.sales = {r["id"]: copy.deepcopy(r) for r in SALES}
        self.users = {r["id"]: copy.deepcopy(r) for r in USERS}
        self.online_users = copy.deepcopy(ONLINE_USERS)
        self.provinces = copy.deepcopy(PROVINCES)
        self.districts = copy.deepcopy(DISTRICTS)
        self.neighborhoods = copy.deepcopy(NEIGHBORHOODS)
        self.price_history = copy.deepcopy(PRICE_HISTORY)
        self.statistics = copy.deepcopy(STATISTICS)
        self.my_statistics: Dict[str, Any] = {**STATISTICS, "totalSales": 1, "totalRevenue": 600000}
        self.can_sell: Dict[int, bool] = {10: True}
        self.calls: List[Tuple[str, str, Any]] = []
        self._failures: Dict[Tuple[str, str], List[Any]] = {}
        self._next_id = 1000
        self.write_echo: Optional[Tuple[str, ...]] = None

    # -------------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------------

    def fail(self, method: str, path: str, failure: Failure = 500, times: Optional[int] = None) -> None:
        """Make ``method path`` fail (every time, or only ``times`` times)."""
        self._failures[(method, path)] = [failure, times]

    def calls_to(self, method: str, path: Optional[str] = None) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == method and (path is None or c[1] == path)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # -------------------------------------------------------------------------
    # Handler
    # -------------------------------------------------------------------------

    def _respond(self, data: Any, status_code: int = 200) -> httpx.Response:
        if self.envelope:
            return httpx.Response(status_code, json={"success": True, "message": "", "data": data})
        return httpx.Response(status_code, json=data)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))

        failure = self._failures.get((request.method, path))
        if failure is not None:
            kind, times = failure
            if times is None or times > 0:
                if times is not None:
                    failure[1] = times - 1
                if isinstance(kind, int):
                    return httpx.Response(kind, json={"message": f"simulated {kind}"})
                raise kind(request)

        return self._route(request, path, body)

    def _echo(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if self.write_echo is None:
            return record
        return {k: v for k, v in record.items() if k in self.write_echo}

    def _crud(self, store: Dict[Any, Dict[str, Any]], method: str, key: Any, body: Any) -> httpx.Response:
        if key is None:
            if method == "GET":
                return self._respond(list(store.values()))
            if method == "POST":
                record = dict(body or {})
                record["id"] = self._new_id()
                store[record["id"]] = record
                return self._respond(self._echo(record), 201)
        else:
            if key not in store:
                return httpx.Response(404, json={"message": "not found"})
            if method == "GET":
                return self._respond(store[key])
            if method == "PUT":
                store[key].update(body or {})
                store[key]["id"] = key
                return self._respond(self._echo(store[key]))
            if method == "DELETE":
                del store[key]
                return httpx.Response(204)
        return httpx.Response(405)

    def _route(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        method = request.method
        params = request.url.params

        if path == "/Customer":
            return self._crud(self.customers, method, None, body)
        if m := re.fullmatch(r"/Customer/(\d+)", path):
            return self._crud(self.customers, method, int(m.group(1)), body)

        if path == "/Property":
            return self._crud(self.properties, method, None, body)
        if m := re.fullmatch(r"/Property/(\d+)/status", path):
            prop = self.properties.get(int(m.group(1)))
            if prop is None:
                return httpx.Response(404)
            prop["status"] = body["status"]
            return self._respond(prop)
        if m := re.fullmatch(r"/Property/(\d+)/price-history", path):
            return self._respond(self.price_history.get(int(m.group(1)), []))
        if m := re.fullmatch(r"/Property/(\d+)", path):
            return self._crud(self.properties, method, int(m.group(1)), body)

        if path == "/sale/statistics":
            return self._respond(self.statistics)
        if path == "/sale/my-statistics":
            return self._respond(self.my_statistics)
        if m := re.fullmatch(r"/sale/can-sell/(\d+)", path):
            return httpx.Response(200, json={"canSell": self.can_sell.get(int(m.group(1)), False)})
        if m := re.fullmatch(r"/sale/property/(\d+)", path):
            property_id = int(m.group(1))
            return self._respond([s for s in self.sales.values() if s["propertyId"] == property_id])
        if path == "/sale":
            return self._crud(self.sales, method, None, body)
        if m := re.fullmatch(r"/sale/(\d+)", path):
            return self._crud(self.sales, method, int(m.group(1)), body)

        if path == "/admin/users":
            if method == "POST":
                record = {k: v for k, v in (body or {}).items() if "assword" not in k}
                record["id"] = f"u-{self._new_id()}"
                record["lockoutEnd"] = None
                self.users[record["id"]] = record
                return self._respond(record, 201)
            return self._crud(self.users, method, None, body)
        if m := re.fullmatch(r"/admin/users/([\w-]+)/role", path):
            user = self.users[m.group(1)]
            user["role"] = body
            return self._respond(user)
        if m := re.fullmatch(r"/admin/users/([\w-]+)/password", path):
            return httpx.Response(204)
        if m := re.fullmatch(r"/admin/users/([\w-]+)/lock", path):
            user = self.users[m.group(1)]
            user["lockoutEnd"] = "9999-12-31T23:59:59+00:00" if body else None
            return self._respond(user)
        if m := re.fullmatch(r"/admin/users/([\w-]+)", path):
            return self._crud(self.users, method, m.group(1), body)

        if path == "/auth/change-password":
            return self._respond({"message": "Password changed"})

        if path == "/UserActivity/online-users":
            return self._respond(self.online_users)

        if path == "/Province":
            return self._respond(self.provinces)
        if path == "/District":
            return self._respond(self.districts.get(int(params["provinceId"]), []))
        if path == "/Neighborhood":
            return self._respond(self.neighborhoods.get(int(params["districtId"]), []))

        return httpx.Response(404, json={"message": f"no route for {method} {path}"})


def connect_error(request: httpx.Request) -> Exception:
    """Failure factory simulating an unreachable server."""
    return httpx.ConnectError("connection refused", request=request)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Fresh settings built from the test environment."""
    return reload_settings()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend, settings) -> ApiClient:
    api_client = ApiClient(transport=backend.transport, settings=settings, backoff_seconds=0)
    yield api_client
    api_client.close()


@pytest.fixture
def cache() -> EntityCache:
    return EntityCache()


@pytest.fixture
def session(client, settings) -> BackOfficeSession:
    back_office = BackOfficeSession(settings=settings, client=client)
    yield back_office
    back_office.close()
