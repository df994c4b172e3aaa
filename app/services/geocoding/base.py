from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# Result types precise enough to pin a sighting on the map.
# Anything coarser (locality, administrative area, postal code, country) is rejected.
PRECISE_TYPES = {
    "street_address",
    "route",
    "intersection",
    "premise",
    "subpremise",
    "establishment",
    "point_of_interest",
}


class GeocodeCandidate:
    """One match returned by a provider, before the rejection policy runs."""

    def __init__(
        self,
        formatted_address: Optional[str],
        lat: float,
        lng: float,
        country_code: Optional[str],
        precision: str,
        provider: str,
    ):
        self.formatted_address = formatted_address
        self.lat = lat
        self.lng = lng
        self.country_code = (country_code or "").upper() or None
        self.precision = precision
        self.provider = provider

    @property
    def is_precise(self) -> bool:
        return self.precision in PRECISE_TYPES

    def __repr__(self) -> str:
        return f"GeocodeCandidate({self.formatted_address!r}, {self.country_code}, {self.precision})"


class GeocodeResult:
    """Accepted geocode: normalized address plus coordinates."""

    def __init__(self, formatted_address: str, lat: float, lng: float):
        self.formatted_address = formatted_address
        self.lat = lat
        self.lng = lng

    def to_dict(self) -> Dict:
        return {"formatted_address": self.formatted_address, "lat": self.lat, "lng": self.lng}


class GeocodingProvider(ABC):
    """
    Abstract forward-geocoding provider.

    Contract:
    - Input: free-text address
    - Output: list of GeocodeCandidate (empty when nothing matches)
    - MUST raise GeocodingUnavailable on timeouts, transport errors and
      provider-side failures; "no match" is never an exception.
    - Implementations should enforce a network timeout.
    """

    @abstractmethod
    def geocode(self, address: str) -> List[GeocodeCandidate]:
        raise NotImplementedError
