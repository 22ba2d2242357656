# zonecart/api/routers/admin_zones.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zonecart.api.deps import get_lock_service
from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.schemas import ZoneDetailOut, ZoneIn, ZoneOut, ZoneSaveOut, ZoneStoreIn, ZoneUpdateIn
from zonecart.services.lock_service import LockService
from zonecart.services.zone_service import ZoneService

router = APIRouter(prefix="/admin/zones", tags=["admin"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return ZoneService(db, lock_service)


@router.get("/", response_model=List[ZoneOut])
def list_zones(svc: ZoneService = Depends(get_service)):
    return svc.list_zones()


@router.post("/", response_model=ZoneSaveOut, status_code=201)
def create_zone(payload: ZoneIn, svc: ZoneService = Depends(get_service)):
    try:
        return svc.create_zone(payload)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/{zone_id}", response_model=ZoneDetailOut)
def get_zone(zone_id: int, svc: ZoneService = Depends(get_service)):
    try:
        return svc.get_zone_detail(zone_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.put("/{zone_id}", response_model=ZoneSaveOut)
def update_zone(zone_id: int, payload: ZoneUpdateIn, svc: ZoneService = Depends(get_service)):
    """Nowy poligon odpala sweep przynaleznosci (inline albo jako task)."""
    try:
        return svc.update_zone(zone_id, payload)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.delete("/{zone_id}")
def delete_zone(zone_id: int, svc: ZoneService = Depends(get_service)):
    try:
        return svc.delete_zone(zone_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/{zone_id}/stores")
def add_store(zone_id: int, payload: ZoneStoreIn, svc: ZoneService = Depends(get_service)):
    try:
        return svc.add_store(zone_id, payload.store_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.delete("/{zone_id}/stores/{store_id}")
def remove_store(zone_id: int, store_id: int, svc: ZoneService = Depends(get_service)):
    try:
        return svc.remove_store(zone_id, store_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
