"""
Geocode Validator - turns free-text addresses into a precise, in-country
location or a validation failure.

Rejection policy (all surface as AddressNotFound):
- no match
- every match outside the supported country
- every match coarser than street / intersection / premise level
- more than one distinct acceptable match (ambiguous query)

Provider outages surface as GeocodingUnavailable, never as "not found".
"""

import logging
from typing import Optional

from app.core.settings import settings
from app.services.errors import AddressNotFound, GeocodingUnavailable
from app.services.geocoding.base import GeocodeResult, GeocodingProvider

logger = logging.getLogger(__name__)


class GeocodeValidator:
    def __init__(self, provider: GeocodingProvider, country: str = "US"):
        self.provider = provider
        self.country = country.upper()

    def validate(self, address: str) -> GeocodeResult:
        """
        Resolve an address.

        Returns:
            GeocodeResult with the provider's normalized address

        Raises:
            AddressNotFound: Address rejected by the policy above
            GeocodingUnavailable: Provider timed out or failed
        """
        try:
            candidates = self.provider.geocode(address)
        except GeocodingUnavailable:
            raise
        except Exception as e:
            raise GeocodingUnavailable(f"Geocoding provider error: {e}", cause=e)

        accepted = [
            c for c in candidates
            if c.formatted_address
            and c.lat is not None
            and c.lng is not None
            and c.country_code == self.country
            and c.is_precise
        ]

        if not accepted:
            logger.info(f"Geocode rejected: {len(candidates)} candidate(s), none precise inside {self.country}")
            raise AddressNotFound()

        distinct = {c.formatted_address.strip().lower() for c in accepted}
        if len(distinct) > 1:
            logger.info(f"Geocode rejected: ambiguous address with {len(distinct)} distinct matches")
            raise AddressNotFound()

        best = accepted[0]
        return GeocodeResult(best.formatted_address.strip(), float(best.lat), float(best.lng))


_validator: Optional[GeocodeValidator] = None


def get_geocode_validator() -> GeocodeValidator:
    global _validator
    if _validator is None:
        from app.services.geocoding.resolver import get_geocoding_provider

        _validator = GeocodeValidator(get_geocoding_provider(), country=settings.GEOCODING_COUNTRY)
    return _validator
