# zonecart/repos/store_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from zonecart.data.models.store import StoreModel, OfferModel
from zonecart.data.models.product import ProductModel


class StoreRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_all_stores(self) -> list[StoreModel]:
        return list(self.db.execute(select(StoreModel).order_by(StoreModel.id)).scalars())

    def get_store(self, store_id: int) -> StoreModel | None:
        return self.db.get(StoreModel, store_id)

    def create_store(self, store: StoreModel) -> StoreModel:
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_offer(self, store_id: int, product_id: int) -> OfferModel | None:
        return self.db.execute(
            select(OfferModel).where(
                OfferModel.store_id == store_id,
                OfferModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def save_offer(self, offer: OfferModel) -> OfferModel:
        self.db.add(offer)
        self.db.commit()
        self.db.refresh(offer)
        return offer

    def list_offers_in_stores(self, product_id: int, store_ids: set[int]) -> list[OfferModel]:
        """Oferty produktu od podanych sklepow, od najtanszej."""
        if not store_ids:
            return []
        return list(
            self.db.execute(
                select(OfferModel)
                .options(joinedload(OfferModel.store))
                .where(
                    OfferModel.product_id == product_id,
                    OfferModel.store_id.in_(store_ids),
                )
                .order_by(OfferModel.price, OfferModel.id)
            ).scalars()
        )

    def list_products_offered_by(self, store_ids: set[int]) -> list[ProductModel]:
        if not store_ids:
            return []
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.offers.any(OfferModel.store_id.in_(store_ids)))
                .order_by(ProductModel.id)
            ).scalars()
        )
