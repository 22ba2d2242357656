"""Tests for zone membership sweeps."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tests.conftest import INSIDE, OUTSIDE, SQUARE
from zonecart.data.models import CartModel, UserModel
from zonecart.domain.enums import CartStatus
from zonecart.domain.errors import ConcurrencyConflict, NotFoundError
from zonecart.services.lock_service import zone_sync_lock_key
from zonecart.services.zone_resolver import ZoneResolver
from zonecart.services.zone_sync import (
    CartChange,
    Member,
    RivalZone,
    UserChange,
    ZoneMembershipSynchronizer,
    ZoneSyncReport,
    plan_zone_sync,
)

SMALL = [(45.4, -73.6), (45.4, -73.4), (45.6, -73.4), (45.6, -73.6)]


class TestPlanZoneSync:
    def test_users_assigned_cleared_and_untouched(self):
        users = [
            Member(1, None, *INSIDE),
            Member(2, 7, *OUTSIDE),
            Member(3, None, None, None),
            Member(4, 7, *INSIDE),
            Member(5, 9, *OUTSIDE),
        ]
        plan = plan_zone_sync(7, SQUARE, users, [])
        assert plan.users == [UserChange(1, None, 7), UserChange(2, 7, None)]

    def test_user_in_other_zone_moves_when_inside(self):
        plan = plan_zone_sync(7, SQUARE, [Member(1, 9, *INSIDE)], [])
        assert plan.users == [UserChange(1, 9, 7)]

    def test_carts_inside_always_planned_for_roster_check(self):
        carts = [Member(10, 7, *INSIDE, version=3), Member(11, None, *INSIDE, version=1)]
        plan = plan_zone_sync(7, SQUARE, [], carts)
        assert plan.carts == [CartChange(10, 3, 7, 7), CartChange(11, 1, None, 7)]
        assert plan.carts[0].zone_changed is False
        assert plan.carts[1].zone_changed is True

    def test_cart_outside_cleared_only_if_assigned(self):
        carts = [Member(10, 7, *OUTSIDE), Member(11, None, *OUTSIDE), Member(12, 9, *OUTSIDE)]
        plan = plan_zone_sync(7, SQUARE, [], carts)
        assert plan.carts == [CartChange(10, 0, 7, None)]

    def test_no_coverage_clears_everyone_in_zone(self):
        plan = plan_zone_sync(7, [(45.0, -74.0), (46.0, -73.0)], [Member(1, 7, *INSIDE)], [Member(10, 7, *INSIDE)])
        assert plan.covered is False
        assert plan.users == [UserChange(1, 7, None)]
        assert plan.carts == [CartChange(10, 0, 7, None)]

    def test_smaller_overlapping_zone_wins_shared_points(self):
        rival = RivalZone(9, tuple(SMALL), (0.04, 0, 9))
        users = [Member(1, 9, *INSIDE), Member(2, None, *INSIDE)]
        carts = [Member(10, 9, *INSIDE, version=2), Member(11, None, *INSIDE)]

        plan = plan_zone_sync(7, SQUARE, users, carts, rank=(1.0, 0, 7), rivals=[rival])

        assert plan.users == [UserChange(2, None, 9)]
        assert plan.carts == [CartChange(11, 0, None, 9)]

    def test_member_handed_to_winning_overlapping_zone(self):
        rival = RivalZone(9, tuple(SMALL), (0.04, 0, 9))
        plan = plan_zone_sync(
            7, SQUARE, [Member(1, 7, *INSIDE)], [Member(10, 7, *INSIDE)], rank=(1.0, 0, 7), rivals=[rival]
        )
        assert plan.users == [UserChange(1, 7, 9)]
        assert plan.carts == [CartChange(10, 0, 7, 9)]

    def test_larger_overlapping_zone_loses(self):
        rival = RivalZone(9, tuple(SMALL), (5.0, 0, 9))
        plan = plan_zone_sync(7, SQUARE, [Member(1, 9, *INSIDE)], [], rank=(1.0, 0, 7), rivals=[rival])
        assert plan.users == [UserChange(1, 9, 7)]


@pytest.fixture
def world(factory):
    """Strefa z jednym sklepem w rosterze i drugim poza nim."""
    inside_store = factory.store("Plateau")
    other_store = factory.store("Elsewhere", lat=40.0, lng=-70.0)
    product = factory.product("Coffee")
    zone = factory.zone("Montreal", store_ids=[inside_store.id])
    return {
        "zone": zone,
        "roster_offer": factory.offer(inside_store, product, "10.00"),
        "other_offer": factory.offer(other_store, factory.product("Tea"), "5.00"),
    }


class TestZoneMembershipSynchronizer:
    def test_sweep_updates_users(self, db, factory, lock_service, world):
        zone = world["zone"]
        newcomer = factory.user(1, point=INSIDE)
        leaver = factory.user(2, zone_id=zone.id, point=OUTSIDE)
        no_coords = factory.user(3)

        report = ZoneMembershipSynchronizer(db, lock_service).sync(zone.id)

        db.expire_all()
        assert db.get(UserModel, newcomer.id).zone_id == zone.id
        assert db.get(UserModel, leaver.id).zone_id is None
        assert db.get(UserModel, no_coords.id).zone_id is None
        assert report.users_assigned == 1
        assert report.users_cleared == 1
        assert report.failures == []

    def test_sweep_prunes_cart_to_roster(self, db, factory, lock_service, world):
        zone = world["zone"]
        cart = factory.cart(zone_id=zone.id, point=INSIDE)
        factory.item(cart, world["roster_offer"])
        factory.item(cart, world["other_offer"])

        report = ZoneMembershipSynchronizer(db, lock_service).sync(zone.id)

        assert report.items_removed == 1
        assert factory.item_count(cart.id) == 1
        # strefa bez zmian, ale przyciecie podbija wersje
        assert db.get(CartModel, cart.id).version == 2

    def test_sweep_assigns_cart_entering_zone(self, db, factory, lock_service, world):
        cart = factory.cart(point=INSIDE)

        report = ZoneMembershipSynchronizer(db, lock_service).sync(world["zone"].id)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id == world["zone"].id
        assert report.carts_assigned == 1

    def test_cart_leaving_zone_loses_zone_and_items(self, db, factory, lock_service, world):
        zone = world["zone"]
        cart = factory.cart(zone_id=zone.id, point=OUTSIDE)
        factory.item(cart, world["roster_offer"])

        report = ZoneMembershipSynchronizer(db, lock_service).sync(zone.id)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id is None
        assert factory.item_count(cart.id) == 0
        assert report.carts_cleared == 1
        assert report.items_removed == 1

    def test_closed_carts_are_not_touched(self, db, factory, lock_service, world):
        zone = world["zone"]
        cart = factory.cart(zone_id=zone.id, point=OUTSIDE, status=CartStatus.COMPLETED)
        factory.item(cart, world["other_offer"])

        ZoneMembershipSynchronizer(db, lock_service).sync(zone.id)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id == zone.id
        assert factory.item_count(cart.id) == 1

    def test_second_sweep_is_noop(self, db, factory, lock_service, world):
        zone = world["zone"]
        factory.user(1, point=INSIDE)
        cart = factory.cart(point=INSIDE)
        factory.item(cart, world["roster_offer"])
        synchronizer = ZoneMembershipSynchronizer(db, lock_service)

        synchronizer.sync(zone.id)
        report = synchronizer.sync(zone.id)

        assert report.as_dict() == ZoneSyncReport(zone_id=zone.id).as_dict()

    def test_failure_of_one_user_does_not_stop_sweep(self, db, factory, lock_service, world, monkeypatch):
        zone = world["zone"]
        factory.user(1, point=INSIDE)
        factory.user(2, point=INSIDE)
        synchronizer = ZoneMembershipSynchronizer(db, lock_service)
        original = synchronizer.users.update_user_zone

        def flaky(user_id, zone_id, expected_zone_id):
            if user_id == 1:
                raise SQLAlchemyError("database is locked")
            return original(user_id, zone_id, expected_zone_id)

        monkeypatch.setattr(synchronizer.users, "update_user_zone", flaky)
        report = synchronizer.sync(zone.id)

        db.expire_all()
        assert db.get(UserModel, 1).zone_id is None
        assert db.get(UserModel, 2).zone_id == zone.id
        assert report.users_assigned == 1
        assert len(report.failures) == 1
        assert report.failures[0].startswith("user 1")

    def test_stale_cart_version_skipped_and_rolled_back(self, db, factory, lock_service, world):
        zone = world["zone"]
        cart = factory.cart(point=INSIDE)
        factory.item(cart, world["other_offer"])
        synchronizer = ZoneMembershipSynchronizer(db, lock_service)
        report = ZoneSyncReport(zone_id=zone.id)

        synchronizer._apply_cart(CartChange(cart.id, 99, None, zone.id), {world["roster_offer"].store_id}, report)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id is None
        assert factory.item_count(cart.id) == 1
        assert report.failures == [f"cart {cart.id}: changed or deleted concurrently, skipped"]

    def test_concurrent_sweep_of_same_zone_rejected(self, db, lock_service, redis_client, world):
        zone = world["zone"]
        redis_client.data[zone_sync_lock_key(zone.id)] = "someone-else"

        with pytest.raises(ConcurrencyConflict):
            ZoneMembershipSynchronizer(db, lock_service).sync(zone.id)

    def test_lock_released_after_sweep(self, db, lock_service, redis_client, world):
        ZoneMembershipSynchronizer(db, lock_service).sync(world["zone"].id)
        assert redis_client.data == {}

    def test_missing_zone(self, db, lock_service):
        with pytest.raises(NotFoundError):
            ZoneMembershipSynchronizer(db, lock_service).sync(999)

    def test_release_clears_zone_members(self, db, factory, lock_service, world):
        zone = world["zone"]
        factory.user(1, zone_id=zone.id, point=INSIDE)
        cart = factory.cart(zone_id=zone.id, point=INSIDE)
        factory.item(cart, world["roster_offer"])

        report = ZoneMembershipSynchronizer(db, lock_service).release(zone.id)

        db.expire_all()
        assert db.get(UserModel, 1).zone_id is None
        assert db.get(CartModel, cart.id).zone_id is None
        assert factory.item_count(cart.id) == 0
        assert report.users_cleared == 1
        assert report.carts_cleared == 1


class TestOverlappingZones:
    @pytest.fixture
    def nested(self, factory):
        """Duza strefa z mniejsza w srodku, kazda z wlasnym sklepem."""
        big_store = factory.store("Downtown")
        small_store = factory.store("Plateau")
        big = factory.zone("Montreal", store_ids=[big_store.id])
        small = factory.zone("Plateau", coords=SMALL, store_ids=[small_store.id])
        return {
            "big": big,
            "small": small,
            "big_offer": factory.offer(big_store, factory.product("Bagel"), "2.00"),
            "small_offer": factory.offer(small_store, factory.product("Coffee"), "4.00"),
        }

    def test_big_zone_sweep_leaves_small_zone_members(self, db, factory, lock_service, nested):
        small = nested["small"]
        user = factory.user(1, zone_id=small.id, point=INSIDE)
        cart = factory.cart(user_id=user.id, zone_id=small.id, point=INSIDE)
        factory.item(cart, nested["small_offer"])

        report = ZoneMembershipSynchronizer(db, lock_service).sync(nested["big"].id)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id == small.id
        assert db.get(UserModel, user.id).zone_id == small.id
        assert factory.item_count(cart.id) == 1
        assert report.items_removed == 0

    def test_big_zone_sweep_hands_members_to_small_zone(self, db, factory, lock_service, nested):
        big, small = nested["big"], nested["small"]
        user = factory.user(1, zone_id=big.id, point=INSIDE)
        cart = factory.cart(user_id=user.id, zone_id=big.id, point=INSIDE)
        factory.item(cart, nested["big_offer"])
        factory.item(cart, nested["small_offer"])

        report = ZoneMembershipSynchronizer(db, lock_service).sync(big.id)

        db.expire_all()
        assert db.get(UserModel, user.id).zone_id == small.id
        assert db.get(CartModel, cart.id).zone_id == small.id
        # przyciete do rosteru malej strefy
        assert factory.item_count(cart.id) == 1
        assert report.items_removed == 1

    def test_sweep_agrees_with_resolver(self, db, factory, lock_service, nested):
        cart = factory.cart(point=INSIDE)

        ZoneMembershipSynchronizer(db, lock_service).sync(nested["big"].id)

        db.expire_all()
        assert db.get(CartModel, cart.id).zone_id == ZoneResolver(db).resolve(*INSIDE).zone_id
