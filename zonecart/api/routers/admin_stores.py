# zonecart/api/routers/admin_stores.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.schemas import OfferIn, OfferOut, StoreIn, StoreOut
from zonecart.services.catalog_service import CatalogService

router = APIRouter(prefix="/admin/stores", tags=["admin"])


@router.get("/", response_model=List[StoreOut])
def list_stores(db: Session = Depends(get_db)):
    return CatalogService(db).list_stores()


@router.post("/", response_model=StoreOut, status_code=201)
def create_store(payload: StoreIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_store(payload)


@router.post("/{store_id}/offers", response_model=OfferOut)
def upsert_offer(store_id: int, payload: OfferIn, db: Session = Depends(get_db)):
    """Dodaje albo aktualizuje oferte sklepu (cena, stan)."""
    try:
        return CatalogService(db).upsert_offer(store_id, payload)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
