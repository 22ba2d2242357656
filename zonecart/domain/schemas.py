# zonecart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Dict
from decimal import Decimal
from datetime import datetime


# =====================================================
# LOCATION / ZONE
# =====================================================
class AddressFragments(BaseModel):
    """Czesciowy adres, kazde pole opcjonalne."""

    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None

    def has_any(self) -> bool:
        return any(getattr(self, f) for f in ("address", "city", "state", "country", "postal_code"))

    def as_line(self) -> str:
        parts = [self.address, self.city, self.state, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)


class GeocodedAddress(AddressFragments):
    """Wynik z geocodera (adres znormalizowany + wspolrzedne)."""

    latitude: float | None = None
    longitude: float | None = None


class LocationIn(AddressFragments):
    """Schema dla sprawdzenia / zapisania lokalizacji."""

    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    cart_id: int | None = Field(None, gt=0, description="Koszyk anonimowy")
    user_id: int | None = Field(None, gt=0, description="Zalogowany uzytkownik")

    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


class LocationOut(AddressFragments):
    latitude: float
    longitude: float


class ZoneResult(BaseModel):
    """Wynik rozwiazania strefy. in_zone=False to poprawny wynik, nie blad."""

    in_zone: bool
    zone_id: int | None = None
    zone_name: str | None = None

    @classmethod
    def none(cls) -> "ZoneResult":
        return cls(in_zone=False)


class ZoneCheckIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class LocationCheckOut(BaseModel):
    location: LocationOut
    new_zone: ZoneResult
    current_zone_id: int | None = None
    zone_changed: bool


class LocationCommitOut(BaseModel):
    cart_id: int
    location: LocationOut
    zone: ZoneResult
    removed_items: int
    skipped_cart_ids: List[int] = Field(default_factory=list, description="Inne koszyki usera, ktorych nie udalo sie przeniesc (zajete)")


# =====================================================
# CART
# =====================================================
class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")
    user_id: int | None = Field(None, gt=0)
    cart_id: int | None = Field(None, gt=0)


class ItemUpdateIn(BaseModel):
    """Zmiana ilosci; quantity <= 0 usuwa pozycje."""

    product_id: int = Field(..., gt=0)
    quantity: int
    user_id: int | None = Field(None, gt=0)
    cart_id: int | None = Field(None, gt=0)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str | None = None
    offer_id: int
    store_id: int | None = None
    store_name: str | None = None
    quantity: int
    price: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    user_id: int | None = None
    status: str
    zone_id: int | None = None
    location: Dict[str, str | float | None]
    items: List[CartItemOut]
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# CHECKOUT / ORDERS
# =====================================================
class CheckoutIn(BaseModel):
    user_id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")


class OrderItemOut(BaseModel):
    product_id: int
    offer_id: int | None = None
    store_name: str | None = None
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    order_number: str
    payment_code: str
    cart_id: int
    user_id: int
    zone_id: int | None = None
    status: str
    subtotal: Decimal
    gst: Decimal
    qst: Decimal
    total: Decimal
    items: List[OrderItemOut]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# ADMIN: ZONES / STORES
# =====================================================
class ZoneIn(BaseModel):
    name: str | None = Field(None, max_length=200)
    translations: Dict[str, str] | None = None
    coordinates: List[Dict[str, float]] | None = None

    @model_validator(mode="after")
    def _needs_name(self):
        if not self.name and not (self.translations or {}).get("en"):
            self.name = "New Zone"
        return self


class ZoneUpdateIn(BaseModel):
    name: str | None = Field(None, max_length=200)
    translations: Dict[str, str] | None = None
    coordinates: List[Dict[str, float]] | None = None


class ZoneOut(BaseModel):
    id: int
    name: str
    name_translations: Dict[str, str]
    coordinates: List[Dict[str, float]]
    store_ids: List[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ZoneStoreIn(BaseModel):
    store_id: int = Field(..., gt=0)


class ZoneSyncReportOut(BaseModel):
    zone_id: int
    users_assigned: int
    users_cleared: int
    carts_assigned: int
    carts_cleared: int
    items_removed: int
    failures: List[str]


class ZoneSaveOut(BaseModel):
    zone: ZoneOut
    sync: ZoneSyncReportOut | None = None
    sync_task_id: str | None = None


class ZoneStoreRow(BaseModel):
    id: int
    name: str
    latitude: float
    longitude: float
    address: str | None = None
    city: str | None = None
    in_zone: bool


class ZoneUserRow(BaseModel):
    id: int
    name: str
    email: str | None = None
    city: str | None = None
    open_carts: int
    completed_carts: int


class ZoneDetailOut(BaseModel):
    zone: ZoneOut
    stores: List[ZoneStoreRow]
    users: List[ZoneUserRow]


class StoreIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    translations: Dict[str, str] | None = None
    address: str | None = None
    city: str | None = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class StoreOut(BaseModel):
    id: int
    name: str
    name_translations: Dict[str, str]
    address: str | None = None
    city: str | None = None
    latitude: float
    longitude: float

    model_config = ConfigDict(from_attributes=True)


class OfferIn(BaseModel):
    product_id: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)


class OfferOut(BaseModel):
    id: int
    store_id: int
    store_name: str | None = None
    product_id: int
    price: Decimal
    stock: int


class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    min_price: Decimal
    offers: List[OfferOut]


class ProductListOut(BaseModel):
    products: List[ProductOut]
    total: int


# =====================================================
# USERS
# =====================================================
class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str | None = None


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    email: str | None = None
    zone_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None

    model_config = ConfigDict(from_attributes=True)
