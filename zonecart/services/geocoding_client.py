# zonecart/services/geocoding_client.py
import requests

from zonecart.domain.schemas import GeocodedAddress
from zonecart.utils.retry import http_retry
from zonecart.utils.settings import GEOCODER_URL, GEOCODER_API_KEY, GEOCODER_TIMEOUT_SECONDS
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


def _component(components: list[dict], kind: str) -> str | None:
    for c in components or []:
        if kind in (c.get("types") or []):
            return c.get("long_name")
    return None


def to_geocoded_address(result: dict) -> GeocodedAddress:
    """Pierwszy wynik Google Geocoding -> GeocodedAddress."""
    components = result.get("address_components") or []
    street = " ".join(p for p in (_component(components, "street_number"), _component(components, "route")) if p)
    location = (result.get("geometry") or {}).get("location") or {}

    return GeocodedAddress(
        address=street or result.get("formatted_address"),
        city=_component(components, "locality") or _component(components, "administrative_area_level_2"),
        state=_component(components, "administrative_area_level_1"),
        country=_component(components, "country"),
        postal_code=_component(components, "postal_code"),
        latitude=location.get("lat"),
        longitude=location.get("lng"),
    )


class GeocodingClient:
    """
    Klient geocodera (format odpowiedzi Google Geocoding API).
    Zwraca None gdy brak wyniku, wyjatki requests po wyczerpaniu retry leca dalej.
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float | None = None):
        self.base_url = base_url or GEOCODER_URL
        self.api_key = api_key if api_key is not None else GEOCODER_API_KEY
        self.timeout = timeout or GEOCODER_TIMEOUT_SECONDS

    def geocode(self, line: str) -> GeocodedAddress | None:
        if not line:
            return None
        return self._first_result({"address": line})

    def reverse_geocode(self, lat: float, lng: float) -> GeocodedAddress | None:
        return self._first_result({"latlng": f"{lat},{lng}"})

    def _first_result(self, params: dict) -> GeocodedAddress | None:
        if not self.api_key:
            logger.warning("Geocoder API key not configured")
            return None

        data = self._get({**params, "key": self.api_key})
        if data is None:
            return None

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.info(f"Geocoder returned status {data.get('status')} for {params}")
            return None
        return to_geocoded_address(results[0])

    @http_retry()
    def _get(self, params: dict) -> dict | None:
        logger.info(f"GeocodingClient GET {self.base_url}")
        resp = requests.get(self.base_url, params=params, timeout=self.timeout)
        if resp.status_code >= 500:
            # 5xx ponawiamy
            resp.raise_for_status()
        if not resp.ok:
            return None
        return resp.json()
