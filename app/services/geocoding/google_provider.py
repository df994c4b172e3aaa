import logging
from typing import Any, Dict, List

import requests

from app.services.errors import GeocodingUnavailable
from .base import GeocodeCandidate, GeocodingProvider, PRECISE_TYPES

logger = logging.getLogger(__name__)


class GoogleMapsProvider(GeocodingProvider):
    """
    Google Maps forward-geocoding provider.

    - Used when GEOCODING_PROVIDER=google and GOOGLE_MAPS_API_KEY is set.
    - Biases and restricts results to the configured country.
    - ZERO_RESULTS is "no match"; every other non-OK status is an outage.
    """

    BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: str, country: str = "US", timeout: float = 3.0):
        self.api_key = api_key
        self.country = country.upper()
        self.timeout = timeout

    def geocode(self, address: str) -> List[GeocodeCandidate]:
        params = {
            "address": address,
            "key": self.api_key,
            "components": f"country:{self.country}",
            "region": self.country.lower(),
        }
        try:
            resp = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise GeocodingUnavailable(f"Google geocoding request failed: {e}", cause=e)

        if resp.status_code != 200:
            raise GeocodingUnavailable(f"Google geocoding failed with HTTP status {resp.status_code}")

        data: Dict[str, Any] = resp.json()
        api_status = data.get("status")
        if api_status == "ZERO_RESULTS":
            return []
        if api_status != "OK":
            raise GeocodingUnavailable(
                f"Google geocoding returned status {api_status}: {data.get('error_message', '')}"
            )

        return [self._to_candidate(result) for result in data.get("results") or []]

    def _to_candidate(self, result: Dict[str, Any]) -> GeocodeCandidate:
        components = result.get("address_components") or []
        country_code = None
        for component in components:
            if "country" in component.get("types", []):
                country_code = component.get("short_name")
                break

        types = result.get("types") or []
        precision = next((t for t in types if t in PRECISE_TYPES), types[0] if types else "unknown")
        # A lone component ("United States") is never a usable location
        if len(components) < 2:
            precision = "country"

        location = (result.get("geometry") or {}).get("location") or {}
        return GeocodeCandidate(
            formatted_address=result.get("formatted_address"),
            lat=location.get("lat"),
            lng=location.get("lng"),
            country_code=country_code,
            precision=precision,
            provider="google",
        )
