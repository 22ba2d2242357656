"""Pytest fixtures for zonecart tests."""

import os

# przed importem zonecart: settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["ZONE_SYNC_ASYNC"] = "false"
os.environ["GEOCODER_API_KEY"] = "test-key"

from datetime import datetime, timezone, timedelta
from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient

from zonecart.api.deps import get_geocoding_client, get_lock_service
from zonecart.celery_worker import celery_app
from zonecart.data.database import Base, SessionLocal, engine
from zonecart.data.models import (
    CartItemModel,
    CartModel,
    OfferModel,
    ProductModel,
    StoreModel,
    UserModel,
    ZoneModel,
    ZoneStoreModel,
)
from zonecart.domain.enums import CartStatus
from zonecart.domain.schemas import GeocodedAddress
from zonecart.services.lock_service import LockService

celery_app.conf.task_always_eager = True

# kwadrat ~ Montreal, (lat, lng)
SQUARE = [(45.0, -74.0), (45.0, -73.0), (46.0, -73.0), (46.0, -74.0)]
INSIDE = (45.5, -73.5)
OUTSIDE = (40.0, -70.0)


class FakeRedisClient:
    """SET NX EX + eval skryptu zwalniajacego, bez serwera."""

    def __init__(self):
        self.data = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.data:
            return None
        self.data[name] = value
        return True

    def eval(self, script, numkeys, key, token):
        if self.data.get(key) == token:
            del self.data[key]
            return 1
        return 0


class StubGeocoder:
    """Zamiast GeocodingClient: adresy z tablicy, reverse zwraca stale miasto."""

    def __init__(self):
        self.places = {}
        self.error = None
        self.calls = []

    def add(self, line, lat, lng, **fields):
        self.places[line] = GeocodedAddress(latitude=lat, longitude=lng, **fields)

    def geocode(self, line):
        self.calls.append(("geocode", line))
        if self.error:
            raise self.error
        return self.places.get(line)

    def reverse_geocode(self, lat, lng):
        self.calls.append(("reverse", lat, lng))
        if self.error:
            raise self.error
        return GeocodedAddress(address="1 Test St", city="Montreal", country="Canada", latitude=lat, longitude=lng)


class Factory:
    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def zone(self, name="Montreal", coords=SQUARE, store_ids=(), created_at=None):
        zone = ZoneModel(
            name=name,
            name_translations={"en": name},
            coordinates=[{"lat": lat, "lng": lng} for lat, lng in coords],
        )
        if created_at is not None:
            zone.created_at = created_at
        self.db.add(zone)
        self.db.flush()
        for store_id in store_ids:
            self.db.add(ZoneStoreModel(zone_id=zone.id, store_id=store_id))
        self.db.commit()
        self.db.refresh(zone)
        return zone

    def store(self, name="Store", lat=45.5, lng=-73.5):
        return self._save(StoreModel(name=name, name_translations={"en": name}, latitude=lat, longitude=lng))

    def product(self, name="Coffee", valid_until=None):
        return self._save(ProductModel(name=name, valid_until=valid_until))

    def expired_product(self, name="Bagels"):
        return self.product(name, valid_until=datetime.now(timezone.utc) - timedelta(days=1))

    def offer(self, store, product, price="10.00", stock=5):
        return self._save(OfferModel(store_id=store.id, product_id=product.id, price=Decimal(price), stock=stock))

    def user(self, user_id=1, zone_id=None, point=None, name="Alice"):
        user = UserModel(id=user_id, name=name, email=f"user{user_id}@example.com", zone_id=zone_id)
        if point:
            user.latitude, user.longitude = point
        return self._save(user)

    def cart(self, user_id=None, zone_id=None, point=None, status=CartStatus.SHOPPING):
        cart = CartModel(user_id=user_id, zone_id=zone_id, status=status, version=1)
        if point:
            cart.latitude, cart.longitude = point
        return self._save(cart)

    def item(self, cart, offer, quantity=1):
        return self._save(
            CartItemModel(
                cart_id=cart.id,
                product_id=offer.product_id,
                offer_id=offer.id,
                quantity=quantity,
                price=offer.price,
            )
        )

    def item_count(self, cart_id):
        self.db.expire_all()
        return self.db.query(CartItemModel).filter(CartItemModel.cart_id == cart_id).count()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def redis_client():
    return FakeRedisClient()


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def geocoder():
    return StubGeocoder()


@pytest.fixture
def api_client(db, lock_service, geocoder):
    from zonecart.main import app

    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_geocoding_client] = lambda: geocoder
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def geocoder_down(geocoder):
    geocoder.error = requests.ConnectionError("geocoder timeout")
    return geocoder
