# zonecart/domain/enums.py
from enum import Enum


class CartStatus(str, Enum):
    SHOPPING = "shopping"
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    SHIPPING = "shipping"
    COMPLETED = "completed"
    DELIVERED = "delivered"

    @property
    def is_open(self) -> bool:
        """Koszyk jeszcze podlega strefie (nie zamkniety / nie dostarczony)."""
        return self not in (CartStatus.COMPLETED, CartStatus.DELIVERED)

    @property
    def is_mutable(self) -> bool:
        """Tylko w SHOPPING mozna zmieniac pozycje."""
        return self is CartStatus.SHOPPING

    @classmethod
    def open_statuses(cls) -> list["CartStatus"]:
        return [s for s in cls if s.is_open]


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    CANCELLED = "cancelled"
