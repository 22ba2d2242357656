# zonecart/services/cart_zone_guard.py
from sqlalchemy.orm import Session

from zonecart.data.models.cart import CartModel
from zonecart.domain.errors import CheckoutConflict, ConcurrencyConflict
from zonecart.domain.schemas import LocationOut, ZoneResult
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.services.lock_service import LockService
from zonecart.services.zone_resolver import ZoneResolver
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


class CartZoneGuard:
    """
    Pilnuje zeby koszyk zawieral tylko pozycje ze sklepow jego strefy.

    - update_location: nowa strefa + przyciecie pozycji (jedna transakcja)
    - enforce_for_checkout: ponowna walidacja przed utworzeniem zamowienia
    - prune_for_zone: samo przyciecie, uzywane tez przez sweep strefy

    Koszyk bez strefy nie moze miec zadnych pozycji.
    """

    def __init__(self, db: Session, lock_service: LockService, resolver: ZoneResolver | None = None):
        self.db = db
        self.carts = CartRepo(db)
        self.zones = ZoneRepo(db)
        self.lock_service = lock_service
        self.resolver = resolver or ZoneResolver(db)

    def prune_to_roster(self, cart_id: int, allowed_store_ids: set[int]) -> int:
        """Bez commita. Pusty roster = usun wszystko."""
        removed = self.carts.delete_items_outside_stores(cart_id, allowed_store_ids)
        if removed:
            logger.info(f"Removed {removed} items outside zone roster from cart {cart_id}")
        return removed

    def prune_for_zone(self, cart_id: int, zone_id: int | None, roster: set[int] | None = None) -> int:
        if zone_id is None:
            removed = self.carts.delete_all_items(cart_id)
            if removed:
                logger.info(f"Cart {cart_id} has no zone, removed all {removed} items")
            return removed

        if roster is None:
            roster = self.zones.list_store_ids_in_zone(zone_id)
        return self.prune_to_roster(cart_id, roster)

    # =====================================================
    # (a) zmiana lokalizacji
    # =====================================================
    def update_location(self, cart: CartModel, location: LocationOut) -> tuple[ZoneResult, int]:
        """
        Ustala strefe dla nowych wspolrzednych, zapisuje ja z adresem na koszyku
        i usuwa pozycje spoza rosteru strefy. Zwraca (strefa, liczba usunietych).
        """
        with self.lock_service.cart_lock(cart.id):
            self.db.refresh(cart)
            zone = self.resolver.resolve(location.latitude, location.longitude)

            rowcount = self.carts.update_cart_zone_and_location(
                cart_id=cart.id,
                old_version=cart.version,
                zone_id=zone.zone_id,
                location=location.model_dump(),
            )
            if rowcount == 0:
                self.carts.rollback()
                raise ConcurrencyConflict(
                    "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
                )

            try:
                removed = self.prune_for_zone(cart.id, zone.zone_id)
                self.carts.commit()
            except Exception as e:
                logger.error(f"Location update of cart {cart.id} failed: {e}")
                self.carts.rollback()
                raise

        logger.info(
            f"Cart {cart.id} moved to zone {zone.zone_id} "
            f"({location.latitude}, {location.longitude}), removed {removed} items"
        )
        return zone, removed

    # =====================================================
    # (b) checkout
    # =====================================================
    def validate_for_checkout(self, cart: CartModel) -> tuple[list, str | None]:
        """Pozycje ktore nie przejda checkoutu (roster czytany na nowo) + komunikat."""
        items = self.carts.list_cart_items_with_store(cart.id)

        if cart.zone_id is None:
            return items, "Ustaw adres dostawy w obslugiwanej strefie"

        roster = self.zones.list_store_ids_in_zone(cart.zone_id)
        offenders = [i for i in items if i.offer is None or i.offer.store_id not in roster]
        if not roster:
            return offenders, "Brak sklepow w tej strefie, wybierz inny adres"
        if offenders:
            return offenders, "Czesc produktow usunieto, nie sa dostepne w Twojej strefie"
        return [], None

    def enforce_for_checkout(self, cart: CartModel) -> None:
        """
        Wywolywane pod lockiem koszyka. Jesli strefa pusta / bez sklepow albo
        jakas pozycja jest spoza rosteru: usuwa winowajcow, commituje usuniecie
        i rzuca CheckoutConflict. Nic nie rzuca = mozna tworzyc zamowienie.
        """
        offenders, message = self.validate_for_checkout(cart)
        if not offenders:
            return

        removed = [describe_item(i) for i in offenders]
        self.carts.delete_cart_items([i.id for i in offenders])
        rowcount = self.carts.update_cart_version(cart.id, cart.version, {})
        if rowcount == 0:
            self.carts.rollback()
            raise ConcurrencyConflict("Konflikt wspolbieznosci - koszyk zostal zmodyfikowany")
        self.carts.commit()

        logger.info(f"Checkout of cart {cart.id} aborted, removed {len(removed)} items outside zone {cart.zone_id}")
        raise CheckoutConflict(message, removed_items=removed, reason="zone")


def describe_item(item) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "name": item.product.name if item.product else None,
        "store_id": item.offer.store_id if item.offer else None,
        "quantity": item.quantity,
    }
