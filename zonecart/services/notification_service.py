# zonecart/services/notification_service.py
from zonecart.celery_worker import celery_app
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia dla klienta, wysylane przez Celery.

    - zamowienie czeka na platnosc (numer zamowienia + kod platnosci)
    - koszyk stracil pozycje po zmianie strefy dostawy
    """

    @staticmethod
    def send_order_notification(user_id: int, order_number: str, payment_code: str, total: str):
        send_order_notification_task.delay(user_id, order_number, payment_code, total)

    @staticmethod
    def send_cart_pruned_notification(cart_id: int, removed_items: int):
        if removed_items > 0:
            send_cart_pruned_notification_task.delay(cart_id, removed_items)


@celery_app.task(name="zonecart.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_number: str, payment_code: str, total: str):
    # sam kanal wysylki (mail/sms) jest poza systemem
    logger.info(
        f"[NOTIFICATION] User {user_id}: order {order_number} awaits payment of {total}, "
        f"payment code {payment_code}"
    )
    return {"user_id": user_id, "order_number": order_number, "status": "sent"}


@celery_app.task(name="zonecart.services.notification_service.send_cart_pruned_notification_task")
def send_cart_pruned_notification_task(cart_id: int, removed_items: int):
    logger.info(f"[NOTIFICATION] Cart {cart_id}: {removed_items} items removed, no longer deliverable in zone")
    return {"cart_id": cart_id, "removed_items": removed_items, "status": "sent"}
