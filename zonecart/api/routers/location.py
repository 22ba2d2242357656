# zonecart/api/routers/location.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zonecart.api.deps import get_lock_service, get_normalizer
from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.schemas import LocationCheckOut, LocationCommitOut, LocationIn, ZoneCheckIn, ZoneResult
from zonecart.services.location_normalizer import LocationNormalizer
from zonecart.services.location_service import LocationService
from zonecart.services.lock_service import LockService
from zonecart.services.zone_resolver import ZoneResolver

router = APIRouter(tags=["location"])


def get_service(
    db: Session = Depends(get_db),
    normalizer: LocationNormalizer = Depends(get_normalizer),
    lock_service: LockService = Depends(get_lock_service),
):
    return LocationService(db, normalizer, lock_service)


@router.post("/zone/check", response_model=ZoneResult)
def check_zone(payload: ZoneCheckIn, db: Session = Depends(get_db)):
    """Sama strefa dla punktu, bez geokodowania i bez zapisu."""
    return ZoneResolver(db).resolve(payload.lat, payload.lng)


@router.post("/location/check", response_model=LocationCheckOut)
def check_location(payload: LocationIn, svc: LocationService = Depends(get_service)):
    """Dry run: co by sie stalo ze strefa, nic nie zapisuje."""
    try:
        return svc.check_location(payload)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/location", response_model=LocationCommitOut)
def commit_location(payload: LocationIn, svc: LocationService = Depends(get_service)):
    """
    Zapis lokalizacji: koszyk i user dostaja nowa strefe,
    pozycje spoza sklepow strefy sa usuwane (removed_items).
    """
    try:
        return svc.commit_location(payload)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
