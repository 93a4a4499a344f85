"""
Reverse geocoding for the ticket wizard.

Providers turn a coordinate into the address and DigiPin a client pre-fills
into a ticket's location. Results are advisory: the citizen can edit them
before submitting.
"""

from abc import ABC, abstractmethod
from typing import Optional
import logging

from civicdesk.models.base import CamelModel

logger = logging.getLogger(__name__)


class ReverseGeocode(CamelModel):
    lat: float
    lng: float
    address: str = ""
    locality: Optional[str] = None
    digi_pin: str = ""
    provider: str

    @property
    def found(self) -> bool:
        return bool(self.address)


class GeocodingProvider(ABC):
    """
    Contract:
    - reverse_geocode() never raises; lookup failures return an empty
      ReverseGeocode (blank address and DigiPin) tagged with the provider.
    - Network calls use the GEOCODING_TIMEOUT_SECONDS timeout.
    """

    name = "unknown"

    @abstractmethod
    def reverse_geocode(self, lat: float, lng: float) -> ReverseGeocode:
        raise NotImplementedError

    def empty(self, lat: float, lng: float) -> ReverseGeocode:
        return ReverseGeocode(lat=lat, lng=lng, provider=self.name)
