"""Shared plumbing for entity services."""
from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, TypeVar

from emlak_office.core.exceptions import EmlakOfficeError
from emlak_office.core.logging_config import get_logger
from emlak_office.services.api_client import ApiClient, unwrap_collection, unwrap_item
from emlak_office.services.entity_cache import EntityCache, EntityKind

LOGGER = get_logger(__name__)

T = TypeVar("T")


def parse_records(
    records: List[Any],
    parser: Callable[[Mapping[str, Any]], T],
    label: str,
) -> List[T]:
    """
    Parse API records, skipping any that cannot be read.

    A single malformed record is logged and left out so the rest of the
    list still renders.
    """
    parsed: List[T] = []
    for raw in records:
        if not isinstance(raw, Mapping):
            LOGGER.warning(f"Skipping non-object {label} record: {raw!r}")
            continue
        try:
            parsed.append(parser(raw))
        except (EmlakOfficeError, KeyError, TypeError, ValueError) as e:
            LOGGER.warning(f"Skipping unreadable {label} record {raw.get('id')}: {e}")
    return parsed


class EntityService:
    """Base for services backed by one cached collection."""

    kind: EntityKind
    label: str = "entity"

    def __init__(self, client: ApiClient, cache: EntityCache) -> None:
        self.client = client
        self.cache = cache
        cache.register_loader(self.kind, self._load_all)

    def _load_all(self) -> List[Any]:
        raise NotImplementedError

    def _fetch_list(
        self,
        path: str,
        parser: Callable[[Mapping[str, Any]], T],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[T]:
        payload = self.client.get(path, params=dict(params) if params else None)
        return parse_records(unwrap_collection(payload), parser, self.label)

    def _fetch_item(self, path: str, parser: Callable[[Mapping[str, Any]], T]) -> T:
        return parser(unwrap_item(self.client.get(path)))

    def _parse_write_response(self, payload: Any, parser: Callable[[Mapping[str, Any]], T], fallback: T) -> T:
        """Record echoed by a write, or ``fallback`` when the API returns none."""
        data = unwrap_item(payload)
        if isinstance(data, Mapping) and data.get("id") is not None:
            try:
                return parser(data)
            except (EmlakOfficeError, KeyError, TypeError, ValueError) as e:
                LOGGER.warning(f"Could not read {self.label} write response: {e}")
        return fallback

    def list_all(self) -> List[Any]:
        """
        Full collection through the cache.

        Transport and API errors are logged and an empty list is returned.
        """
        try:
            return self.cache.get_all(self.kind)
        except EmlakOfficeError as e:
            LOGGER.error(f"Failed to load {self.kind.value}: {e}")
            return []

    def invalidate(self) -> None:
        self.cache.invalidate(self.kind)


__all__ = [
    "parse_records",
    "EntityService",
]
