# zonecart/api/deps.py
from fastapi import Depends

from zonecart.services.geocoding_client import GeocodingClient
from zonecart.services.location_normalizer import LocationNormalizer
from zonecart.services.lock_service import LockService

# jeden klient redisa na proces (pool polaczen)
_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_geocoding_client() -> GeocodingClient:
    return GeocodingClient()


def get_normalizer(client: GeocodingClient = Depends(get_geocoding_client)) -> LocationNormalizer:
    return LocationNormalizer(client)
