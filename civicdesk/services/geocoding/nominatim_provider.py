from typing import Any, Dict
import logging

import requests

from .base import GeocodingProvider, ReverseGeocode

logger = logging.getLogger(__name__)

LOCALITY_FIELDS = ("suburb", "neighbourhood", "quarter", "village", "town")


class NominatimProvider(GeocodingProvider):
    """
    OpenStreetMap Nominatim. No API key, no DigiPin.

    Nominatim's usage policy requires an identifying User-Agent.
    """

    name = "nominatim"
    BASE_URL = "https://nominatim.openstreetmap.org/reverse"

    def __init__(self, user_agent: str = "civicdesk/0.1", timeout: float = 3.0):
        self.user_agent = user_agent
        self.timeout = timeout

    def reverse_geocode(self, lat: float, lng: float) -> ReverseGeocode:
        params = {"lat": lat, "lon": lng, "format": "json", "addressdetails": 1}
        try:
            resp = requests.get(
                self.BASE_URL,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            if resp.status_code != 200:
                logger.warning(f"Nominatim returned {resp.status_code} for ({lat}, {lng})")
                return self.empty(lat, lng)
            data: Dict[str, Any] = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Nominatim lookup failed for ({lat}, {lng}): {e}")
            return self.empty(lat, lng)

        parts = data.get("address") or {}
        return ReverseGeocode(
            lat=lat,
            lng=lng,
            address=data.get("display_name") or "",
            locality=next((parts[f] for f in LOCALITY_FIELDS if parts.get(f)), None),
            provider=self.name,
        )
