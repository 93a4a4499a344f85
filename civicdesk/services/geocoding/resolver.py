import logging
from typing import Optional

from civicdesk.core.settings import settings
from .base import GeocodingProvider
from .nominatim_provider import NominatimProvider
from .opencage_provider import OpenCageProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[GeocodingProvider] = None


def get_geocoding_provider() -> GeocodingProvider:
    """
    Resolve the active geocoding provider based on settings.

    Rules:
    - Default: Nominatim (no API key required, no DigiPin).
    - If GEOCODING_PROVIDER='opencage' AND OPENCAGE_API_KEY is set: OpenCage.
    - Never raises upstream exceptions.
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    provider_name = (settings.GEOCODING_PROVIDER or "nominatim").lower()
    timeout = settings.GEOCODING_TIMEOUT_SECONDS

    if provider_name == "opencage":
        if settings.OPENCAGE_API_KEY:
            _provider_instance = OpenCageProvider(api_key=settings.OPENCAGE_API_KEY, timeout=timeout)
            logger.info("Geocoding provider initialized: opencage")
            return _provider_instance
        logger.warning("GEOCODING_PROVIDER=opencage but OPENCAGE_API_KEY is not set. Falling back to Nominatim.")

    _provider_instance = NominatimProvider(timeout=timeout)
    logger.info("Geocoding provider initialized: nominatim")
    return _provider_instance
