# zonecart/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from zonecart.api.errors import DOMAIN_ERRORS, http_error
from zonecart.data.database import get_db
from zonecart.domain.schemas import OfferOut, ProductListOut
from zonecart.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=ProductListOut)
def list_products(zone_id: int | None = Query(None, gt=0), db: Session = Depends(get_db)):
    """Produkty dostepne w strefie, cena = najnizsza oferta w strefie. Bez strefy pusto."""
    return CatalogService(db).list_products_in_zone(zone_id)


@router.get("/{product_id}/offers", response_model=List[OfferOut])
def list_offers(
    product_id: int,
    zone_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).list_offers(product_id, zone_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
