"""Tests for checkout and order queries."""

import re
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tests.conftest import INSIDE
from zonecart.data.models import CartModel, OrderModel, ZoneStoreModel
from zonecart.domain.enums import CartStatus
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.order_repo import OrderRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.services.checkout_service import CheckoutService, generate_order_number, generate_payment_code
from zonecart.services.lock_service import cart_lock_key


@pytest.fixture
def shop(factory):
    roster_store = factory.store("Plateau")
    foreign_store = factory.store("Quebec", lat=46.8, lng=-71.2)
    zone = factory.zone("Montreal", store_ids=[roster_store.id])
    user = factory.user(1, zone_id=zone.id, point=INSIDE)
    cart = factory.cart(user_id=user.id, zone_id=zone.id, point=INSIDE)
    return {
        "zone": zone,
        "user": user,
        "cart": cart,
        "roster_store": roster_store,
        "roster_offer": factory.offer(roster_store, factory.product("Coffee"), "10.00"),
        "foreign_offer": factory.offer(foreign_store, factory.product("Syrup"), "12.99"),
    }


def _order_count(db):
    db.expire_all()
    return db.query(OrderModel).count()


class TestCheckout:
    def test_creates_order_with_taxes(self, api_client, db, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"], quantity=2)

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["subtotal"]) == Decimal("20.00")
        assert Decimal(data["gst"]) == Decimal("1.00")
        assert Decimal(data["qst"]) == Decimal("2.00")
        assert Decimal(data["total"]) == Decimal("23.00")
        assert data["zone_id"] == shop["zone"].id
        assert data["status"] == "pending_payment"
        assert len(data["items"]) == 1
        assert data["items"][0]["store_name"] == "Plateau"

        db.expire_all()
        assert db.get(CartModel, shop["cart"].id).status is CartStatus.COMPLETED

    def test_item_outside_zone_aborts_then_retry_succeeds(self, api_client, db, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        foreign = factory.item(shop["cart"], shop["foreign_offer"])

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["requires_confirmation"] is True
        assert [i["id"] for i in detail["removed_items"]] == [foreign.id]
        assert _order_count(db) == 0
        assert factory.item_count(shop["cart"].id) == 1

        retry = api_client.post("/checkout/", json={"user_id": 1})
        assert retry.status_code == 201
        assert _order_count(db) == 1

    def test_cart_without_zone_is_emptied(self, api_client, db, factory, shop):
        cart = shop["cart"]
        factory.item(cart, shop["roster_offer"])
        db.execute(CartModel.__table__.update().where(CartModel.id == cart.id).values(zone_id=None))
        db.commit()

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409
        assert len(response.json()["detail"]["removed_items"]) == 1
        assert factory.item_count(cart.id) == 0
        assert _order_count(db) == 0

    def test_zone_without_stores_is_conflict(self, api_client, db, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        # roster zmieniony bez sweepa, checkout musi to wykryc sam
        db.execute(ZoneStoreModel.__table__.delete().where(ZoneStoreModel.zone_id == shop["zone"].id))
        db.commit()

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409
        assert factory.item_count(shop["cart"].id) == 0
        assert _order_count(db) == 0

    def test_roster_removal_sweeps_cart(self, api_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])

        response = api_client.delete(f"/admin/zones/{shop['zone'].id}/stores/{shop['roster_store'].id}")

        assert response.status_code == 200
        assert response.json()["sync"]["items_removed"] == 1
        assert api_client.post("/checkout/", json={"user_id": 1}).status_code == 400

    def test_expired_product_removed(self, api_client, db, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        stale = factory.offer(shop["roster_store"], factory.expired_product(), "3.00")
        factory.item(shop["cart"], stale)

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "expired"
        assert factory.item_count(shop["cart"].id) == 1
        assert _order_count(db) == 0

    def test_empty_cart(self, api_client, shop):
        response = api_client.post("/checkout/", json={"user_id": 1})
        assert response.status_code == 400

    def test_unknown_user(self, api_client, shop):
        response = api_client.post("/checkout/", json={"user_id": 99})
        assert response.status_code == 404

    def test_locked_cart(self, api_client, redis_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        redis_client.data[cart_lock_key(shop["cart"].id)] = "location-update"

        response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409

    def test_second_checkout_has_no_cart(self, api_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        assert api_client.post("/checkout/", json={"user_id": 1}).status_code == 201
        assert api_client.post("/checkout/", json={"user_id": 1}).status_code == 400

    def test_order_and_cart_completion_fail_together(self, api_client, db, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])

        with patch.object(CartRepo, "update_cart_version", return_value=0):
            response = api_client.post("/checkout/", json={"user_id": 1})

        assert response.status_code == 409
        assert _order_count(db) == 0
        assert db.get(CartModel, shop["cart"].id).status is CartStatus.SHOPPING

    def test_failure_after_order_flush_rolls_back(self, db, factory, lock_service, redis_client, shop):
        factory.item(shop["cart"], shop["roster_offer"])

        with patch.object(UserRepo, "update_user_location", side_effect=SQLAlchemyError("db down")):
            with pytest.raises(SQLAlchemyError):
                CheckoutService(db, lock_service, MagicMock()).checkout(1)

        assert _order_count(db) == 0
        assert db.get(CartModel, shop["cart"].id).status is CartStatus.SHOPPING
        assert factory.item_count(shop["cart"].id) == 1
        assert cart_lock_key(shop["cart"].id) not in redis_client.data


class TestOrderCodes:
    def test_order_number_format(self):
        assert re.fullmatch(r"SE-[0-9A-Z]+-[0-9A-Z]{4}", generate_order_number())

    def test_payment_code(self):
        code = generate_payment_code()
        assert len(code) == 8
        assert "0" not in code and "O" not in code


class TestOrders:
    def test_list_and_get(self, api_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        order = api_client.post("/checkout/", json={"user_id": 1}).json()

        listing = api_client.get("/orders/", params={"user_id": 1})
        assert [o["id"] for o in listing.json()] == [order["id"]]

        detail = api_client.get(f"/orders/{order['id']}", params={"user_id": 1})
        assert detail.status_code == 200
        assert detail.json()["order_number"] == order["order_number"]

    def test_other_users_order_forbidden(self, api_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        order = api_client.post("/checkout/", json={"user_id": 1}).json()

        response = api_client.get(f"/orders/{order['id']}", params={"user_id": 2})
        assert response.status_code == 403

    def test_missing_order(self, api_client, shop):
        response = api_client.get("/orders/12345", params={"user_id": 1})
        assert response.status_code == 404


class TestCancelOrder:
    @pytest.fixture
    def order(self, api_client, factory, shop):
        factory.item(shop["cart"], shop["roster_offer"])
        return api_client.post("/checkout/", json={"user_id": 1}).json()

    def test_cancel_pending_order(self, api_client, order):
        response = api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 1})

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert api_client.get(f"/orders/{order['id']}", params={"user_id": 1}).json()["status"] == "cancelled"

    def test_cancel_twice_rejected(self, api_client, order):
        api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 1})

        response = api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 1})

        assert response.status_code == 400

    def test_paid_order_cannot_be_cancelled(self, api_client, db, order):
        db.execute(OrderModel.__table__.update().where(OrderModel.id == order["id"]).values(status="paid"))
        db.commit()

        response = api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 1})

        assert response.status_code == 400

    def test_status_changed_concurrently(self, api_client, order):
        with patch.object(OrderRepo, "update_order_status", return_value=0):
            response = api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 1})

        assert response.status_code == 409
        assert api_client.get(f"/orders/{order['id']}", params={"user_id": 1}).json()["status"] == "pending_payment"

    def test_other_user_cannot_cancel(self, api_client, order):
        response = api_client.post(f"/orders/{order['id']}/cancel", params={"user_id": 2})
        assert response.status_code == 403

    def test_missing_order(self, api_client, shop):
        response = api_client.post("/orders/12345/cancel", params={"user_id": 1})
        assert response.status_code == 404
