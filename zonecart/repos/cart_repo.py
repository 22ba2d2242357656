# zonecart/repos/cart_repo.py
from sqlalchemy import select, update, delete, or_, and_
from sqlalchemy.orm import Session, joinedload

from zonecart.data.models.cart import CartModel
from zonecart.data.models.cart_item import CartItemModel
from zonecart.data.models.store import OfferModel
from zonecart.domain.enums import CartStatus


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # CARTS
    # =====================================================
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_shopping_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id, CartModel.status == CartStatus.SHOPPING)
            .order_by(CartModel.created_at.desc(), CartModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_open_cart_by_user(self, user_id: int) -> CartModel | None:
        """Najnowszy niezamkniety koszyk usera (shopping / pending_payment / paid / shipping)."""
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id, CartModel.status.in_(CartStatus.open_statuses()))
            .order_by(CartModel.created_at.desc(), CartModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_shopping_cart(self, cart_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.id == cart_id, CartModel.status == CartStatus.SHOPPING)
        ).scalar_one_or_none()

    def list_other_shopping_carts(self, user_id: int, exclude_cart_id: int) -> list[CartModel]:
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.user_id == user_id,
                    CartModel.status == CartStatus.SHOPPING,
                    CartModel.id != exclude_cart_id,
                )
            ).scalars()
        )

    def list_open_carts_by_zone_or_with_coordinates(self, zone_id: int) -> list[CartModel]:
        return list(
            self.db.execute(
                select(CartModel)
                .where(
                    CartModel.status.in_(CartStatus.open_statuses()),
                    or_(
                        CartModel.zone_id == zone_id,
                        and_(CartModel.latitude.is_not(None), CartModel.longitude.is_not(None)),
                    ),
                )
                .order_by(CartModel.id)
            ).scalars()
        )

    def count_carts_by_user(self, user_ids: list[int]) -> list[tuple[int, CartStatus]]:
        if not user_ids:
            return []
        rows = self.db.execute(
            select(CartModel.user_id, CartModel.status).where(CartModel.user_id.in_(user_ids))
        )
        return [(r[0], r[1]) for r in rows]

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        """
        Optimistic locking: UPDATE ... SET version = old + 1 WHERE id = ? AND version = old.
        0 zmienionych wierszy = ktos inny zapisal koszyk w miedzyczasie.
        """
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data, version=old_version + 1)
        )
        return result.rowcount

    def update_cart_zone_and_location(
        self,
        cart_id: int,
        old_version: int,
        zone_id: int | None,
        location: dict | None = None,
    ) -> int:
        data = dict(location or {})
        data["zone_id"] = zone_id
        return self.update_cart_version(cart_id, old_version, data)

    def clear_zone(self, zone_id: int) -> int:
        """Zamkniete koszyki trzymaja zone_id tylko historycznie, przy usuwaniu strefy czyscimy."""
        result = self.db.execute(update(CartModel).where(CartModel.zone_id == zone_id).values(zone_id=None))
        return result.rowcount

    # =====================================================
    # ITEMS
    # =====================================================
    def list_cart_items_with_store(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .options(
                    joinedload(CartItemModel.offer).joinedload(OfferModel.store),
                    joinedload(CartItemModel.product),
                )
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> None:
        self.db.add(item)

    def delete_cart_item(self, cart_id: int, product_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        )
        return result.rowcount

    def delete_cart_items(self, ids: list[int]) -> int:
        if not ids:
            return 0
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.id.in_(ids)))
        return result.rowcount

    def delete_items_outside_stores(self, cart_id: int, store_ids: set[int]) -> int:
        """
        Usuwa pozycje ktorych oferta nie pochodzi z podanych sklepow.
        Zbior ofert liczony w samym DELETE, wiec pozycja dodana w miedzyczasie
        tez jest sprawdzana.
        """
        if not store_ids:
            return self.delete_all_items(cart_id)

        allowed_offers = select(OfferModel.id).where(OfferModel.store_id.in_(store_ids))
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.offer_id.not_in(allowed_offers),
            )
        )
        return result.rowcount

    def delete_all_items(self, cart_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
