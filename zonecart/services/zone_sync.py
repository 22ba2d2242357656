# zonecart/services/zone_sync.py
"""
Synchronizacja przynaleznosci do strefy po edycji poligonu / rosteru sklepow.

Dwa kroki:
1. plan_zone_sync - czysta funkcja, liczy w pamieci kto wchodzi / wychodzi
2. ZoneMembershipSynchronizer.sync - aplikuje plan, kazdy user i kazdy
   koszyk we wlasnej transakcji (zmiana strefy + przyciecie pozycji razem)

Przeliczana jest tylko TA strefa, bez globalnego szukania innej strefy.
Wyjatek: punkt w tej strefie, ktory lezy tez w innej strefie wygrywajacej
nakladanie (zone_precedence), nalezy do tamtej strefy, tak jak w resolverze.
"""
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from zonecart.domain import geofence
from zonecart.domain.errors import NotFoundError
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.services.cart_zone_guard import CartZoneGuard
from zonecart.services.lock_service import LockService
from zonecart.services.zone_resolver import zone_precedence
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Member:
    """Migawka usera albo koszyka na potrzeby planu."""

    id: int
    zone_id: int | None
    latitude: float | None
    longitude: float | None
    version: int = 0

    @property
    def point(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class RivalZone:
    """Inna strefa z pokryciem, konkuruje o punkty lezace na nakladce."""

    id: int
    polygon: tuple
    rank: tuple


@dataclass(frozen=True)
class UserChange:
    user_id: int
    from_zone_id: int | None
    to_zone_id: int | None


@dataclass(frozen=True)
class CartChange:
    cart_id: int
    version: int
    from_zone_id: int | None
    to_zone_id: int | None

    @property
    def zone_changed(self) -> bool:
        return self.from_zone_id != self.to_zone_id


@dataclass
class ZoneSyncPlan:
    zone_id: int
    covered: bool
    users: list[UserChange] = field(default_factory=list)
    carts: list[CartChange] = field(default_factory=list)


@dataclass
class ZoneSyncReport:
    zone_id: int
    users_assigned: int = 0
    users_cleared: int = 0
    carts_assigned: int = 0
    carts_cleared: int = 0
    items_removed: int = 0
    failures: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "zone_id": self.zone_id,
            "users_assigned": self.users_assigned,
            "users_cleared": self.users_cleared,
            "carts_assigned": self.carts_assigned,
            "carts_cleared": self.carts_cleared,
            "items_removed": self.items_removed,
            "failures": list(self.failures),
        }


def _inside(member: Member, polygon: Sequence[tuple[float, float]]) -> bool:
    point = member.point
    return point is not None and geofence.contains(point, polygon)


def _owner(member: Member, zone_id: int, rank: tuple | None, rivals: Sequence[RivalZone]) -> int:
    """Strefa, ktora resolver wybralby dla punktu lezacego w tej strefie."""
    if rank is None or not rivals:
        return zone_id
    candidates = [(rank, zone_id)]
    candidates.extend((r.rank, r.id) for r in rivals if geofence.contains(member.point, r.polygon))
    return min(candidates)[1]


def plan_zone_sync(
    zone_id: int,
    polygon: Sequence[tuple[float, float]],
    users: Iterable[Member],
    carts: Iterable[Member],
    rank: tuple | None = None,
    rivals: Sequence[RivalZone] = (),
) -> ZoneSyncPlan:
    """
    Diff przed/po dla jednej strefy.

    Users: w srodku i nieprzypisany do strefy -> przypisz; poza i przypisany
    -> wyczysc; reszta bez zmian.
    Koszyki (tylko otwarte): w srodku -> strefa + przyciecie do rosteru (takze
    gdy strefa sie nie zmienila, bo mogl sie zmienic roster); poza
    i przypisany -> strefa NULL i wszystkie pozycje usuniete.

    Punkt w srodku, ktory wygrywa inna strefa z `rivals` (wedlug `rank`), nalezy
    do zwyciezcy: przypisany tam zostaje bez zmian, reszta przechodzi do niego.
    """
    covered = geofence.has_coverage(polygon)
    plan = ZoneSyncPlan(zone_id=zone_id, covered=covered)

    for user in users:
        if covered and _inside(user, polygon):
            owner = _owner(user, zone_id, rank, rivals)
            if user.zone_id != owner:
                plan.users.append(UserChange(user.id, user.zone_id, owner))
        elif user.zone_id == zone_id:
            plan.users.append(UserChange(user.id, zone_id, None))

    for cart in carts:
        if covered and _inside(cart, polygon):
            owner = _owner(cart, zone_id, rank, rivals)
            if owner == zone_id:
                plan.carts.append(CartChange(cart.id, cart.version, cart.zone_id, zone_id))
            elif cart.zone_id != owner:
                plan.carts.append(CartChange(cart.id, cart.version, cart.zone_id, owner))
        elif cart.zone_id == zone_id:
            plan.carts.append(CartChange(cart.id, cart.version, zone_id, None))

    return plan


class ZoneMembershipSynchronizer:
    def __init__(self, db: Session, lock_service: LockService):
        self.zones = ZoneRepo(db)
        self.users = UserRepo(db)
        self.carts = CartRepo(db)
        self.guard = CartZoneGuard(db, lock_service)
        self.lock_service = lock_service

    def sync(self, zone_id: int) -> ZoneSyncReport:
        """Jeden sweep na strefe naraz (lock w redisie), rozne strefy rownolegle."""
        with self.lock_service.zone_sync_lock(zone_id):
            return self.sync_held(zone_id)

    def sync_held(self, zone_id: int) -> ZoneSyncReport:
        """Jak sync, ale lock strefy trzyma juz wywolujacy (edycja strefy i sweep razem)."""
        zone = self.zones.get_zone(zone_id)
        if zone is None:
            raise NotFoundError(f"Strefa {zone_id} nie istnieje")

        polygon = zone.vertices
        roster = self.zones.list_store_ids_in_zone(zone_id)
        rivals = [
            RivalZone(z.id, tuple(z.vertices), zone_precedence(z))
            for z in self.zones.list_zones()
            if z.id != zone_id and geofence.has_coverage(z.vertices)
        ]
        logger.info(
            f"Zone {zone_id} sync started: {len(polygon)} vertices, {len(roster)} stores, "
            f"{len(rivals)} other zones"
        )
        report = self._run(zone_id, polygon, roster, zone_precedence(zone), rivals)

        logger.info(f"Zone {zone_id} sync finished: {report.as_dict()}")
        return report

    def release(self, zone_id: int) -> ZoneSyncReport:
        """Strefa znika: wszyscy przypisani traca strefe, ich otwarte koszyki sa czyszczone."""
        with self.lock_service.zone_sync_lock(zone_id):
            return self.release_held(zone_id)

    def release_held(self, zone_id: int) -> ZoneSyncReport:
        report = self._run(zone_id, [], set())
        logger.info(f"Zone {zone_id} released: {report.as_dict()}")
        return report

    def _run(
        self,
        zone_id: int,
        polygon: list,
        roster: set[int],
        rank: tuple | None = None,
        rivals: Sequence[RivalZone] = (),
    ) -> ZoneSyncReport:
        users = [
            Member(u.id, u.zone_id, u.latitude, u.longitude)
            for u in self.users.list_users_by_zone_or_with_coordinates(zone_id)
        ]
        carts = [
            Member(c.id, c.zone_id, c.latitude, c.longitude, c.version)
            for c in self.carts.list_open_carts_by_zone_or_with_coordinates(zone_id)
        ]

        plan = plan_zone_sync(zone_id, polygon, users, carts, rank, rivals)
        report = ZoneSyncReport(zone_id=zone_id)

        for change in plan.users:
            self._apply_user(change, report)
        for change in plan.carts:
            # koszyk oddany innej strefie przycinamy do jej rosteru
            target_roster = roster if change.to_zone_id == zone_id else None
            self._apply_cart(change, target_roster, report)
        return report

    def _apply_user(self, change: UserChange, report: ZoneSyncReport) -> None:
        try:
            rowcount = self.users.update_user_zone(change.user_id, change.to_zone_id, change.from_zone_id)
            if rowcount == 0:
                # usuniety albo zmieniony w miedzyczasie
                self.users.rollback()
                report.failures.append(f"user {change.user_id}: changed or deleted concurrently, skipped")
                return
            self.users.commit()
        except SQLAlchemyError as e:
            self.users.rollback()
            logger.warning(f"Zone sync: user {change.user_id} failed: {e}")
            report.failures.append(f"user {change.user_id}: {e.__class__.__name__}")
            return

        if change.to_zone_id is None:
            report.users_cleared += 1
        else:
            report.users_assigned += 1

    def _apply_cart(self, change: CartChange, roster: set[int] | None, report: ZoneSyncReport) -> None:
        try:
            removed = self.guard.prune_for_zone(change.cart_id, change.to_zone_id, roster)

            if change.zone_changed or removed:
                rowcount = self.carts.update_cart_zone_and_location(
                    cart_id=change.cart_id,
                    old_version=change.version,
                    zone_id=change.to_zone_id,
                )
                if rowcount == 0:
                    self.carts.rollback()
                    report.failures.append(f"cart {change.cart_id}: changed or deleted concurrently, skipped")
                    return
            self.carts.commit()
        except SQLAlchemyError as e:
            self.carts.rollback()
            logger.warning(f"Zone sync: cart {change.cart_id} failed: {e}")
            report.failures.append(f"cart {change.cart_id}: {e.__class__.__name__}")
            return

        report.items_removed += removed
        if change.zone_changed:
            if change.to_zone_id is None:
                report.carts_cleared += 1
            else:
                report.carts_assigned += 1
