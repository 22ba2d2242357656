# zonecart/services/catalog_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from zonecart.data.models.store import StoreModel, OfferModel
from zonecart.domain.errors import NotFoundError
from zonecart.domain.schemas import StoreIn, OfferIn
from zonecart.repos.store_repo import StoreRepo
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


def offer_to_dict(offer: OfferModel) -> Dict[str, Any]:
    return {
        "id": offer.id,
        "store_id": offer.store_id,
        "store_name": offer.store.name if offer.store else None,
        "product_id": offer.product_id,
        "price": offer.price,
        "stock": offer.stock,
    }


class CatalogService:
    """
    Widok katalogu przez pryzmat strefy: tylko oferty sklepow z rosteru,
    cena produktu = najnizsza cena w strefie.
    """

    def __init__(self, db: Session):
        self.stores = StoreRepo(db)
        self.zones = ZoneRepo(db)

    #query
    def list_products_in_zone(self, zone_id: int | None) -> Dict[str, Any]:
        if zone_id is None:
            return {"products": [], "total": 0}

        roster = self.zones.list_store_ids_in_zone(zone_id)
        products = []
        for product in self.stores.list_products_offered_by(roster):
            if product.is_expired():
                continue
            offers = self.stores.list_offers_in_stores(product.id, roster)
            products.append(
                {
                    "id": product.id,
                    "name": product.name,
                    "description": product.description,
                    "min_price": min((o.price for o in offers), default=Decimal("0.00")),
                    "offers": [offer_to_dict(o) for o in offers],
                }
            )
        return {"products": products, "total": len(products)}

    def list_offers(self, product_id: int, zone_id: int | None) -> list[Dict[str, Any]]:
        if not self.stores.get_product(product_id):
            raise NotFoundError("Produkt nie istnieje")
        if zone_id is None:
            return []
        roster = self.zones.list_store_ids_in_zone(zone_id)
        return [offer_to_dict(o) for o in self.stores.list_offers_in_stores(product_id, roster)]

    # =====================================================
    # admin: sklepy i oferty
    # =====================================================
    def list_stores(self) -> list[StoreModel]:
        return self.stores.list_all_stores()

    def create_store(self, payload: StoreIn) -> StoreModel:
        translations = {k.lower(): v.strip() for k, v in (payload.translations or {}).items() if v and v.strip()}
        translations.setdefault("en", payload.name.strip())

        store = self.stores.create_store(
            StoreModel(
                name=payload.name.strip(),
                name_translations=translations,
                address=payload.address,
                city=payload.city,
                latitude=payload.latitude,
                longitude=payload.longitude,
            )
        )
        logger.info(f"Store {store.id} '{store.name}' created")
        return store

    def upsert_offer(self, store_id: int, payload: OfferIn) -> Dict[str, Any]:
        if not self.stores.get_store(store_id):
            raise NotFoundError("Sklep nie istnieje")
        if not self.stores.get_product(payload.product_id):
            raise NotFoundError("Produkt nie istnieje")

        offer = self.stores.get_offer(store_id, payload.product_id)
        if offer is None:
            offer = OfferModel(store_id=store_id, product_id=payload.product_id)
        # zmiana ceny nie dotyka pozycji w koszykach (snapshot)
        offer.price = payload.price
        offer.stock = payload.stock

        saved = self.stores.save_offer(offer)
        logger.info(f"Offer {saved.id}: store {store_id} product {payload.product_id} price {saved.price}")
        return offer_to_dict(saved)
