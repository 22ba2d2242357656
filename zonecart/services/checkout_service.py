# zonecart/services/checkout_service.py
import secrets
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any

from sqlalchemy.orm import Session

from zonecart.data.models.order import OrderModel, OrderItemModel
from zonecart.domain.enums import CartStatus, OrderStatus
from zonecart.domain.errors import ValidationError, NotFoundError, CheckoutConflict, ConcurrencyConflict
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.order_repo import OrderRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.services.cart_zone_guard import CartZoneGuard, describe_item
from zonecart.services.lock_service import LockService
from zonecart.services.notification_service import NotificationService
from zonecart.utils.settings import GST_RATE, QST_RATE
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)

_CENT = Decimal("0.01")
_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(value: int) -> str:
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = _BASE36[rem] + out
    return out or "0"


def generate_order_number() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"SE-{_base36(int(time.time() * 1000))}-{suffix}"


def generate_payment_code() -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8))


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


class CheckoutService:
    """
    Checkout: ponowna walidacja koszyka wzgledem strefy, potem zamowienie.

    Zamowienie + koszyk COMPLETED w jednej transakcji, nie ma stanu
    "zamowienie bez zamknietego koszyka" ani odwrotnie.
    """

    def __init__(self, db: Session, lock_service: LockService, notification_service: NotificationService | None = None):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.users = UserRepo(db)
        self.lock_service = lock_service
        self.guard = CartZoneGuard(db, lock_service)
        self.notification_service = notification_service or NotificationService()

    def checkout(self, user_id: int) -> Dict[str, Any]:
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("Uzytkownik nie istnieje")

        cart = self.carts.get_shopping_cart_by_user(user_id)
        if not cart:
            raise ValidationError("Koszyk jest pusty")

        with self.lock_service.cart_lock(cart.id):
            # stan po wzieciu locka, nie z przed
            self.db.refresh(cart)
            if cart.status is not CartStatus.SHOPPING:
                raise ValidationError("Koszyk nie jest aktywny")

            items = self.carts.list_cart_items_with_store(cart.id)
            if not items:
                raise ValidationError("Koszyk jest pusty")

            self._remove_expired(cart, items)
            self.guard.enforce_for_checkout(cart)

            order = self._create_order(cart, items, user_id)

        logger.info(f"Order {order.id} ({order.order_number}) created from cart {cart.id}, total {order.total}")
        self.notification_service.send_order_notification(
            user_id, order.order_number, order.payment_code, str(order.total)
        )

        return order_to_dict(order)

    def _remove_expired(self, cart, items) -> None:
        expired = [i for i in items if i.product is not None and i.product.is_expired()]
        if not expired:
            return

        removed = [describe_item(i) for i in expired]
        self.carts.delete_cart_items([i.id for i in expired])
        rowcount = self.carts.update_cart_version(cart.id, cart.version, {})
        if rowcount == 0:
            self.carts.rollback()
            raise ConcurrencyConflict("Konflikt wspolbieznosci - koszyk zostal zmodyfikowany")
        self.carts.commit()

        logger.info(f"Checkout of cart {cart.id} aborted, {len(removed)} expired items removed")
        raise CheckoutConflict(
            "Czesc produktow wygasla i zostala usunieta z koszyka",
            removed_items=removed,
            reason="expired",
        )

    def _create_order(self, cart, items, user_id: int) -> OrderModel:
        subtotal = _money(sum((i.price * i.quantity for i in items), Decimal("0.00")))
        gst = _money(subtotal * Decimal(str(GST_RATE)))
        qst = _money(subtotal * Decimal(str(QST_RATE)))

        order = OrderModel(
            order_number=generate_order_number(),
            payment_code=generate_payment_code(),
            cart_id=cart.id,
            user_id=user_id,
            zone_id=cart.zone_id,
            status=OrderStatus.PENDING_PAYMENT.value,
            subtotal=subtotal,
            gst=gst,
            qst=qst,
            total=subtotal + gst + qst,
            shipping_address=cart.address or "",
            shipping_city=cart.city or "",
            shipping_state=cart.state or "",
            shipping_postal_code=cart.postal_code or "",
            shipping_country=cart.country or "",
            items=[
                OrderItemModel(
                    product_id=i.product_id,
                    offer_id=i.offer_id,
                    store_name=i.offer.store.name if i.offer and i.offer.store else None,
                    quantity=i.quantity,
                    price=i.price,
                )
                for i in items
            ],
        )

        try:
            self.orders.add_order(order)

            rowcount = self.carts.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={"status": CartStatus.COMPLETED},
            )
            if rowcount == 0:
                raise ConcurrencyConflict(
                    "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
                )

            # profil usera dostaje adres z ktorego zamowiono
            self.users.update_user_location(user_id, cart.location_dict(), cart.zone_id)
            self.db.commit()
        except Exception as e:
            logger.error(f"Checkout of cart {cart.id} failed, rolled back: {e}")
            self.db.rollback()
            raise

        return order


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "payment_code": order.payment_code,
        "cart_id": order.cart_id,
        "user_id": order.user_id,
        "zone_id": order.zone_id,
        "status": order.status,
        "subtotal": order.subtotal,
        "gst": order.gst,
        "qst": order.qst,
        "total": order.total,
        "items": [
            {
                "product_id": i.product_id,
                "offer_id": i.offer_id,
                "store_name": i.store_name,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ],
        "created_at": order.created_at,
    }


class OrderService:
    """Zamowienia klienta: odczyt i anulowanie przed platnoscia."""

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        return order_to_dict(self._get_owned(order_id, user_id))

    def list_orders(self, user_id: int) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders_by_user(user_id)]

    #command
    def cancel_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        order = self._get_owned(order_id, user_id)

        if order.status != OrderStatus.PENDING_PAYMENT:
            raise ValidationError("Zamowienia nie mozna anulowac")

        rowcount = self.repo.update_order_status(order.id, OrderStatus.PENDING_PAYMENT.value, OrderStatus.CANCELLED.value)
        if rowcount == 0:
            # oplacone albo anulowane rownolegle
            self.repo.rollback()
            raise ConcurrencyConflict("Status zamowienia zmienil sie, odswiez i sprobuj ponownie")
        self.repo.commit()

        logger.info(f"Order {order.id} ({order.order_number}) cancelled by user {user_id}")
        return order_to_dict(self.repo.get_order(order.id))

    def _get_owned(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError("Zamowienie nie istnieje")

        if order.user_id != user_id:
            raise PermissionError("Brak dostepu do zamowienia")

        return order
