# zonecart/services/location_normalizer.py
from requests import RequestException

from zonecart.domain.errors import GeocodeFailure, ValidationError
from zonecart.domain.schemas import AddressFragments, GeocodedAddress, LocationIn, LocationOut
from zonecart.services.geocoding_client import GeocodingClient
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)

_FIELDS = ("address", "city", "state", "country", "postal_code")


class LocationNormalizer:
    """
    Adres -> wspolrzedne albo wspolrzedne -> adres przez zewnetrzny geocoder.

    Timeout / blad sieci / brak wyniku = GeocodeFailure, wolajacy traktuje to
    jako "nie da sie ustalic strefy", a nie blad serwera.
    """

    def __init__(self, client: GeocodingClient):
        self.client = client

    def geocode(self, fragments: AddressFragments) -> GeocodedAddress:
        try:
            result = self.client.geocode(fragments.as_line())
        except RequestException as e:
            logger.error(f"Geocoding failed for '{fragments.as_line()}': {e}")
            raise GeocodeFailure("Geocoder niedostepny, sprobuj ponownie") from e

        if result is None or result.latitude is None or result.longitude is None:
            raise GeocodeFailure("Nie udalo sie zgeokodowac adresu")
        return result

    def reverse_geocode(self, lat: float, lng: float) -> GeocodedAddress:
        try:
            result = self.client.reverse_geocode(lat, lng)
        except RequestException as e:
            logger.error(f"Reverse geocoding failed for ({lat}, {lng}): {e}")
            raise GeocodeFailure("Geocoder niedostepny, sprobuj ponownie") from e

        if result is None:
            raise GeocodeFailure("Nie udalo sie ustalic adresu dla wspolrzednych")
        return result

    def normalize(self, payload: LocationIn) -> LocationOut:
        """
        Uzupelnia brakujace pola:
        - brak wspolrzednych -> geocode (wynik nadpisuje, puste pola zostaja z wejscia)
        - sa wspolrzedne, brak address/city/country -> reverse geocode, tylko luki
          (porazka reverse jest tolerowana, same wspolrzedne wystarcza do strefy)
        """
        if not payload.has_any() and not payload.has_coordinates():
            raise ValidationError("Wymagany adres albo wspolrzedne")

        values = {f: getattr(payload, f) for f in _FIELDS}

        if not payload.has_coordinates():
            geocoded = self.geocode(payload)
            for f in _FIELDS:
                values[f] = getattr(geocoded, f) or values[f]
            return LocationOut(**values, latitude=geocoded.latitude, longitude=geocoded.longitude)

        if not values["address"] or not values["city"] or not values["country"]:
            try:
                reverse = self.reverse_geocode(payload.lat, payload.lng)
            except GeocodeFailure as e:
                logger.warning(f"Reverse geocode skipped: {e}")
            else:
                for f in _FIELDS:
                    values[f] = values[f] or getattr(reverse, f)

        return LocationOut(**values, latitude=payload.lat, longitude=payload.lng)
