"""Read-only access to the province / district / neighborhood tree."""
from __future__ import annotations

from typing import Dict, List, Optional

from emlak_office.core.exceptions import EmlakOfficeError
from emlak_office.core.logging_config import get_logger
from emlak_office.core.models import District, Neighborhood, Province
from emlak_office.domain.wire import district_from_wire, neighborhood_from_wire, province_from_wire
from emlak_office.services.api_client import Endpoints
from emlak_office.services.base import EntityService
from emlak_office.services.entity_cache import EntityKind

LOGGER = get_logger(__name__)


class LocationService(EntityService):
    """Provinces are cached; districts and neighborhoods are fetched per parent."""

    kind = EntityKind.LOCATIONS
    label = "location"

    def _load_all(self) -> List[Province]:
        return self._fetch_list(Endpoints.PROVINCES, province_from_wire)

    def get_provinces(self) -> List[Province]:
        return self.list_all()

    def get_province(self, province_id: int) -> Optional[Province]:
        return next((p for p in self.get_provinces() if p.id == province_id), None)

    def get_districts(self, province_id: int) -> List[District]:
        """Districts of a province; empty on any error."""
        try:
            return self._fetch_list(
                Endpoints.DISTRICTS,
                lambda raw: district_from_wire(raw, province_id),
                params={"provinceId": province_id},
            )
        except EmlakOfficeError as e:
            LOGGER.warning(f"Districts of province {province_id} unavailable: {e}")
            return []

    def get_neighborhoods(self, district_id: int) -> List[Neighborhood]:
        """Neighborhoods of a district; empty on any error."""
        try:
            return self._fetch_list(
                Endpoints.NEIGHBORHOODS,
                lambda raw: neighborhood_from_wire(raw, district_id),
                params={"districtId": district_id},
            )
        except EmlakOfficeError as e:
            LOGGER.warning(f"Neighborhoods of district {district_id} unavailable: {e}")
            return []

    def location_names(self, province_id: int, district_id: int) -> Dict[str, str]:
        """Display names for a province and district, blank where unknown."""
        province = self.get_province(province_id)
        district = province.find_district(district_id) if province else None
        if province is not None and district is None:
            district = next((d for d in self.get_districts(province_id) if d.id == district_id), None)
        return {
            "province": province.name if province else "",
            "district": district.name if district else "",
        }


__all__ = ["LocationService"]
