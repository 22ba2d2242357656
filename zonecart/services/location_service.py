# zonecart/services/location_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from zonecart.data.models.cart import CartModel
from zonecart.data.models.user import UserModel
from zonecart.domain.enums import CartStatus
from zonecart.domain.errors import NotFoundError, ConcurrencyConflict
from zonecart.domain.schemas import LocationIn
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.services.cart_zone_guard import CartZoneGuard
from zonecart.services.location_normalizer import LocationNormalizer
from zonecart.services.lock_service import LockService
from zonecart.services.notification_service import NotificationService
from zonecart.services.zone_resolver import ZoneResolver
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


class LocationService:
    """
    Use case'y lokalizacji kupujacego:
    check (dry run, bez zapisu) i commit (zapis + przyciecie koszyka).
    """

    def __init__(
        self,
        db: Session,
        normalizer: LocationNormalizer,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.carts = CartRepo(db)
        self.users = UserRepo(db)
        self.normalizer = normalizer
        self.resolver = ZoneResolver(db)
        self.guard = CartZoneGuard(db, lock_service, self.resolver)
        self.notification_service = notification_service or NotificationService()

    #query
    def check_location(self, payload: LocationIn) -> Dict[str, Any]:
        location = self.normalizer.normalize(payload)
        new_zone = self.resolver.resolve(location.latitude, location.longitude)

        current_zone_id = None
        if payload.user_id:
            user = self.users.get_user(payload.user_id)
            current_zone_id = user.zone_id if user else None

        if current_zone_id is None and payload.cart_id:
            cart = self.carts.get_shopping_cart(payload.cart_id)
            current_zone_id = cart.zone_id if cart else None

        return {
            "location": location,
            "new_zone": new_zone,
            "current_zone_id": current_zone_id,
            "zone_changed": current_zone_id != new_zone.zone_id,
        }

    #command
    def commit_location(self, payload: LocationIn) -> Dict[str, Any]:
        user = None
        if payload.user_id:
            user = self.users.get_user(payload.user_id)
            if not user:
                raise NotFoundError("Uzytkownik nie istnieje")

        location = self.normalizer.normalize(payload)
        cart = self._find_or_create_cart(user, payload.cart_id)

        # konflikt tutaj = 409, profil i pozostale koszyki nietkniete
        zone, removed = self.guard.update_location(cart, location)

        skipped = []
        if user:
            self.users.update_user_location(user.id, location.model_dump(), zone.zone_id)
            self.users.commit()

            # pozostale koszyki w trakcie zakupow dostaja ta sama lokalizacje,
            # kazdy we wlasnej transakcji; zajety koszyk zostaje przy starej strefie
            for other in self.carts.list_other_shopping_carts(user.id, cart.id):
                try:
                    _, other_removed = self.guard.update_location(other, location)
                except ConcurrencyConflict as e:
                    logger.warning(f"Cart {other.id} of user {user.id} skipped on location change: {e}")
                    skipped.append(other.id)
                    continue
                removed += other_removed

        logger.info(f"Location committed for cart {cart.id}: zone={zone.zone_id}, removed={removed}")
        self.notification_service.send_cart_pruned_notification(cart.id, removed)

        return {
            "cart_id": cart.id,
            "location": location,
            "zone": zone,
            "removed_items": removed,
            "skipped_cart_ids": skipped,
        }

    def _find_or_create_cart(self, user: UserModel | None, cart_id: int | None) -> CartModel:
        cart = self.carts.get_shopping_cart_by_user(user.id) if user else None

        if cart is None and cart_id:
            cart = self.carts.get_shopping_cart(cart_id)
            if cart is not None and cart.user_id is not None and (user is None or cart.user_id != user.id):
                raise PermissionError("Brak dostepu do koszyka")

        if cart is None:
            cart = self.carts.create_cart(
                CartModel(user_id=user.id if user else None, status=CartStatus.SHOPPING, version=1)
            )
            logger.info(f"Utworzono nowy koszyk {cart.id}")
            return cart

        if user and cart.user_id is None:
            # koszyk anonimowy przechodzi na zalogowanego usera
            rowcount = self.carts.update_cart_version(cart.id, cart.version, {"user_id": user.id})
            if rowcount == 0:
                self.carts.rollback()
                raise ConcurrencyConflict("Konflikt wspolbieznosci - koszyk zostal zmodyfikowany")
            self.carts.commit()
            logger.info(f"Anonymous cart {cart.id} attached to user {user.id}")

        return cart
