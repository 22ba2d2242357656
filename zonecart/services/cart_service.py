# zonecart/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from zonecart.data.models.cart import CartModel
from zonecart.data.models.cart_item import CartItemModel
from zonecart.domain.enums import CartStatus
from zonecart.domain.errors import ValidationError, NotFoundError, ConcurrencyConflict
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.store_repo import StoreRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove) modyfikuja stan
    query (get) tylko odczyt

    Pozycja zawsze bierze najtansza oferte sposrod sklepow strefy koszyka.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.stores = StoreRepo(db)
        self.users = UserRepo(db)
        self.zones = ZoneRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int | None, cart_id: int | None) -> Dict[str, Any]:
        cart = self._get_or_create_cart(user_id, cart_id, open_only=True)
        return self._to_dict(cart)

    #commands
    def add_product(
        self,
        user_id: int | None,
        cart_id: int | None,
        product_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Ilosc musi byc wieksza niz 0")

        cart = self._get_or_create_cart(user_id, cart_id, open_only=False)

        if cart.zone_id is None:
            raise ValidationError("Ustaw adres dostawy w obslugiwanej strefie")

        product = self.stores.get_product(product_id)
        if not product:
            raise NotFoundError("Produkt nie istnieje")
        if product.is_expired():
            raise ValidationError("Produkt nie jest juz dostepny")

        roster = self.zones.list_store_ids_in_zone(cart.zone_id)
        offers = self.stores.list_offers_in_stores(product_id, roster)
        if not offers:
            raise ValidationError("Produkt niedostepny w Twojej strefie")
        best = offers[0]

        existing_item = self.repo.get_cart_item(cart.id, product_id)
        if existing_item:
            logger.info(
                f"Produkt {product_id} juz jest w koszyku, zwiekszam ilosc "
                f"z {existing_item.quantity} do {existing_item.quantity + quantity}"
            )
            # cena zostaje z momentu dodania
            existing_item.quantity += quantity
        else:
            logger.info(f"Dodaje produkt {product_id} (oferta {best.id}) do koszyka {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    offer_id=best.id,
                    quantity=quantity,
                    price=best.price,
                )
            )

        self._bump_version(cart)
        return self._to_dict(cart)

    def update_quantity(
        self,
        user_id: int | None,
        cart_id: int | None,
        product_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        cart = self._get_shopping_cart(user_id, cart_id)

        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise NotFoundError("Pozycja nie istnieje")

        if quantity <= 0:
            self.repo.delete_cart_item(cart.id, product_id)
        else:
            item.quantity = quantity

        self._bump_version(cart)
        return self._to_dict(cart)

    def remove_product(self, user_id: int | None, cart_id: int | None, product_id: int) -> Dict[str, Any]:
        cart = self._get_shopping_cart(user_id, cart_id)

        logger.info(f"Usuwanie produktu {product_id} z koszyka {cart.id}")
        self.repo.delete_cart_item(cart.id, product_id)

        self._bump_version(cart)
        return self._to_dict(cart)

    # =====================================================
    # helpers
    # =====================================================
    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking, zmiana lokalizacji w miedzyczasie = konflikt
        rowcount = self.repo.update_cart_version(cart_id=cart.id, old_version=cart.version, new_data={})
        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            )
        self.repo.commit()

    def _get_shopping_cart(self, user_id: int | None, cart_id: int | None) -> CartModel:
        cart = None
        if user_id:
            cart = self.repo.get_shopping_cart_by_user(user_id)
        elif cart_id:
            cart = self.repo.get_shopping_cart(cart_id)
            if cart and cart.user_id is not None:
                raise PermissionError("Brak dostepu do koszyka")

        if not cart:
            raise NotFoundError("Koszyk nie istnieje")
        return cart

    def _get_or_create_cart(self, user_id: int | None, cart_id: int | None, open_only: bool) -> CartModel:
        """
        open_only=True: tez pending_payment / paid (podglad), False: tylko shopping.
        Nowy koszyk dostaje zapisany adres i strefe usera.
        """
        user = None
        cart = None

        if user_id:
            user = self.users.get_user(user_id)
            if not user:
                raise NotFoundError("Uzytkownik nie istnieje")
            if open_only:
                cart = self.repo.get_open_cart_by_user(user_id)
            else:
                cart = self.repo.get_shopping_cart_by_user(user_id)
        elif cart_id:
            cart = self.repo.get_cart(cart_id)
            if cart and cart.user_id is not None:
                raise PermissionError("Brak dostepu do koszyka")
            if cart and not (cart.status.is_open if open_only else cart.status.is_mutable):
                cart = None

        if cart:
            return cart

        new_cart = CartModel(user_id=user_id, status=CartStatus.SHOPPING, version=1)
        if user is not None:
            for field, value in user.location_dict().items():
                setattr(new_cart, field, value)
            new_cart.zone_id = user.zone_id

        created = self.repo.create_cart(new_cart)
        logger.info(f"Utworzono nowy koszyk {created.id} (user {user_id}, strefa {created.zone_id})")
        return created

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.list_cart_items_with_store(cart.id)
        total = sum((i.price * i.quantity for i in items), Decimal("0.00"))

        #dict przeksztalcany w jsona
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status.value,
            "zone_id": cart.zone_id,
            "location": cart.location_dict(),
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "product_name": i.product.name if i.product else None,
                    "offer_id": i.offer_id,
                    "store_id": i.offer.store_id if i.offer else None,
                    "store_name": i.offer.store.name if i.offer and i.offer.store else None,
                    "quantity": i.quantity,
                    "price": i.price,
                }
                for i in items
            ],
            "total": total,
        }
