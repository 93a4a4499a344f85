import pytest
import requests

from civicdesk.services.geocoding import nominatim_provider, opencage_provider
from civicdesk.services.geocoding.nominatim_provider import NominatimProvider
from civicdesk.services.geocoding.opencage_provider import OpenCageProvider


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _patch_get(monkeypatch, module, response=None, error=None):
    calls = []

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(module.requests, "get", fake_get)
    return calls


def test_nominatim_parses_address(monkeypatch):
    payload = {
        "display_name": "Janpath, New Delhi, Delhi, India",
        "address": {"neighbourhood": "Connaught Place", "city": "New Delhi"},
    }
    calls = _patch_get(monkeypatch, nominatim_provider, FakeResponse(200, payload))

    result = NominatimProvider(timeout=2.0).reverse_geocode(28.6, 77.2)

    assert result.address == "Janpath, New Delhi, Delhi, India"
    assert result.locality == "Connaught Place"
    assert result.digi_pin == ""
    assert result.provider == "nominatim"
    assert calls[0]["params"]["lat"] == 28.6
    assert calls[0]["params"]["lon"] == 77.2
    assert calls[0]["timeout"] == 2.0
    assert "User-Agent" in calls[0]["headers"]


@pytest.mark.parametrize("response,error", [
    (FakeResponse(503), None),
    (FakeResponse(200, None), None),
    (None, requests.Timeout("slow")),
])
def test_nominatim_failures_return_empty(monkeypatch, response, error):
    _patch_get(monkeypatch, nominatim_provider, response, error)

    result = NominatimProvider().reverse_geocode(28.6, 77.2)

    assert result.found is False
    assert result.address == ""
    assert (result.lat, result.lng, result.provider) == (28.6, 77.2, "nominatim")


def test_opencage_returns_digipin(monkeypatch):
    payload = {"results": [{
        "formatted": "Janpath, New Delhi",
        "components": {"suburb": "Connaught Place"},
        "annotations": {"DIGIPIN": "39J-438-TJC7"},
    }]}
    calls = _patch_get(monkeypatch, opencage_provider, FakeResponse(200, payload))

    result = OpenCageProvider("key").reverse_geocode(28.6, 77.2)

    assert result.digi_pin == "39J-438-TJC7"
    assert result.locality == "Connaught Place"
    assert calls[0]["params"]["q"] == "28.6,77.2"


def test_opencage_without_key_skips_network(monkeypatch):
    calls = _patch_get(monkeypatch, opencage_provider, FakeResponse(200, {}))

    result = OpenCageProvider(None).reverse_geocode(28.6, 77.2)

    assert calls == []
    assert result.provider == "opencage"
    assert result.digi_pin == ""


def test_opencage_no_results(monkeypatch):
    _patch_get(monkeypatch, opencage_provider, FakeResponse(200, {"results": []}))

    assert OpenCageProvider("key").reverse_geocode(0.0, 0.0).found is False
