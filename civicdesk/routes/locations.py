"""
Location endpoints - reverse geocoding for the ticket wizard.

Wraps the configured geocoding provider so browser clients don't need
provider API keys. Failures come back as empty fields, never as errors.
"""

from fastapi import APIRouter, Depends, Query

from civicdesk.services.geocoding.base import GeocodingProvider
from civicdesk.services.geocoding.resolver import get_geocoding_provider

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("/reverse")
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    provider: GeocodingProvider = Depends(get_geocoding_provider),
):
    """Address, locality and DigiPin for a coordinate."""
    return provider.reverse_geocode(lat, lng).to_json_dict()
