import logging
from typing import Any, Dict, List

import requests

from app.services.errors import GeocodingUnavailable
from .base import GeocodeCandidate, GeocodingProvider

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodingProvider):
    """
    OpenStreetMap Nominatim forward-geocoding provider.

    - No API key required.
    - Includes a User-Agent header as required by Nominatim usage policy.
    - Asks for two matches so ambiguous queries can be detected.
    """

    BASE_URL = "https://nominatim.openstreetmap.org/search"
    PREMISE_CATEGORIES = {"building", "amenity", "shop", "office", "tourism", "leisure"}

    def __init__(self, country: str = "US", timeout: float = 3.0, user_agent: str = "area-watch/1.0"):
        self.country = country.upper()
        self.timeout = timeout
        self.user_agent = user_agent

    def geocode(self, address: str) -> List[GeocodeCandidate]:
        params = {
            "q": address,
            "format": "jsonv2",
            "addressdetails": 1,
            "limit": 2,
            "countrycodes": self.country.lower(),
        }
        headers = {"User-Agent": self.user_agent}
        try:
            resp = requests.get(self.BASE_URL, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise GeocodingUnavailable(f"Nominatim request failed: {e}", cause=e)

        if resp.status_code != 200:
            raise GeocodingUnavailable(f"Nominatim geocoding failed with status {resp.status_code}")

        return [self._to_candidate(item) for item in resp.json() or []]

    def _to_candidate(self, item: Dict[str, Any]) -> GeocodeCandidate:
        address = item.get("address") or {}
        category = item.get("category") or item.get("class")

        if address.get("house_number"):
            precision = "street_address"
        elif category == "highway" or item.get("addresstype") == "road":
            precision = "route"
        elif category in self.PREMISE_CATEGORIES:
            precision = "premise"
        else:
            precision = item.get("addresstype") or item.get("type") or "unknown"

        return GeocodeCandidate(
            formatted_address=item.get("display_name"),
            lat=float(item["lat"]),
            lng=float(item["lon"]),
            country_code=address.get("country_code"),
            precision=precision,
            provider="nominatim",
        )
