#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w Base.metadata

from zonecart.data.models.zone import ZoneModel, ZoneStoreModel
from zonecart.data.models.store import StoreModel, OfferModel
from zonecart.data.models.product import ProductModel
from zonecart.data.models.user import UserModel
from zonecart.data.models.cart import CartModel
from zonecart.data.models.cart_item import CartItemModel
from zonecart.data.models.order import OrderModel, OrderItemModel

__all__ = [
    "ZoneModel",
    "ZoneStoreModel",
    "StoreModel",
    "OfferModel",
    "ProductModel",
    "UserModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
