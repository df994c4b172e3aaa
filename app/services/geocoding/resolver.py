import logging
from typing import Optional

from app.core.settings import settings
from .base import GeocodingProvider
from .google_provider import GoogleMapsProvider
from .mock_provider import StaticGeocodingProvider
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[GeocodingProvider] = None


def get_geocoding_provider() -> GeocodingProvider:
    """
    Resolve the active geocoding provider based on settings.

    Rules:
    - USE_MOCK_DB=true: offline static provider that echoes addresses.
    - GEOCODING_PROVIDER='google' AND GOOGLE_MAPS_API_KEY set: Google.
    - Otherwise: Nominatim (no API key required).
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    country = settings.GEOCODING_COUNTRY
    timeout = settings.GEOCODING_TIMEOUT_SECONDS

    if settings.USE_MOCK_DB:
        _provider_instance = StaticGeocodingProvider(country=country, echo_unknown=True)
        logger.info("Geocoding provider initialized: static (mock mode)")
        return _provider_instance

    provider_name = (settings.GEOCODING_PROVIDER or "nominatim").lower()
    if provider_name == "google":
        if settings.GOOGLE_MAPS_API_KEY:
            _provider_instance = GoogleMapsProvider(settings.GOOGLE_MAPS_API_KEY, country=country, timeout=timeout)
            logger.info("Geocoding provider initialized: google")
            return _provider_instance
        logger.warning("⚠️ GEOCODING_PROVIDER=google but GOOGLE_MAPS_API_KEY is not set. Falling back to Nominatim.")

    _provider_instance = NominatimProvider(country=country, timeout=timeout)
    logger.info("Geocoding provider initialized: nominatim")
    return _provider_instance
