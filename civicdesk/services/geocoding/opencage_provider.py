from typing import Any, Dict, Optional
import logging

import requests

from .base import GeocodingProvider, ReverseGeocode

logger = logging.getLogger(__name__)


class OpenCageProvider(GeocodingProvider):
    """
    OpenCage geocoder. For Indian coordinates the result annotations carry
    the DIGIPIN site code, which is why ticket locations prefer it.
    """

    name = "opencage"
    BASE_URL = "https://api.opencagedata.com/geocode/v1/json"

    def __init__(self, api_key: Optional[str], timeout: float = 3.0):
        self.api_key = api_key
        self.timeout = timeout

    def reverse_geocode(self, lat: float, lng: float) -> ReverseGeocode:
        if not self.api_key:
            logger.info("OpenCage lookup skipped: no API key configured")
            return self.empty(lat, lng)

        params = {"q": f"{lat},{lng}", "key": self.api_key, "no_annotations": 0, "limit": 1}
        try:
            resp = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
            if resp.status_code != 200:
                logger.warning(f"OpenCage returned {resp.status_code} for ({lat}, {lng})")
                return self.empty(lat, lng)
            data: Dict[str, Any] = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"OpenCage lookup failed for ({lat}, {lng}): {e}")
            return self.empty(lat, lng)

        results = data.get("results") or []
        if not results:
            return self.empty(lat, lng)

        place = results[0]
        components = place.get("components") or {}
        annotations = place.get("annotations") or {}
        return ReverseGeocode(
            lat=lat,
            lng=lng,
            address=place.get("formatted") or "",
            locality=(
                components.get("suburb")
                or components.get("neighbourhood")
                or components.get("city_district")
            ),
            digi_pin=annotations.get("DIGIPIN") or "",
            provider=self.name,
        )
