# zonecart/services/zone_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from zonecart.data.models.zone import ZoneModel
from zonecart.domain import geofence
from zonecart.domain.errors import NotFoundError
from zonecart.domain.schemas import ZoneIn, ZoneUpdateIn
from zonecart.repos.cart_repo import CartRepo
from zonecart.repos.store_repo import StoreRepo
from zonecart.repos.user_repo import UserRepo
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.services.lock_service import LockService
from zonecart.services.zone_sync import ZoneMembershipSynchronizer, ZoneSyncReport
from zonecart.utils.settings import ZONE_SYNC_ASYNC
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


def normalize_translations(translations: Dict[str, str] | None) -> Dict[str, str]:
    """Klucze jezyka lowercase, puste nazwy wyrzucone."""
    result = {}
    for lang, value in (translations or {}).items():
        lang = (lang or "").strip().lower()
        value = (value or "").strip()
        if lang and value:
            result[lang] = value
    return result


def zone_to_dict(zone: ZoneModel) -> Dict[str, Any]:
    return {
        "id": zone.id,
        "name": zone.name,
        "name_translations": zone.name_translations or {},
        "coordinates": zone.coordinates or [],
        "store_ids": sorted(zone.store_ids),
        "created_at": zone.created_at,
    }


class ZoneService:
    """
    Admin: strefy i ich roster sklepow.
    Kazda zmiana poligonu albo rosteru odpala sweep przynaleznosci.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.db = db
        self.repo = ZoneRepo(db)
        self.stores = StoreRepo(db)
        self.users = UserRepo(db)
        self.carts = CartRepo(db)
        self.lock_service = lock_service
        self.synchronizer = ZoneMembershipSynchronizer(db, lock_service)

    #query
    def list_zones(self) -> list[Dict[str, Any]]:
        zones = sorted(self.repo.list_zones(), key=lambda z: (z.name.lower(), z.id))
        return [zone_to_dict(z) for z in zones]

    def get_zone_detail(self, zone_id: int) -> Dict[str, Any]:
        zone = self._get(zone_id)
        roster = zone.store_ids

        users = self.users.list_users_in_zone(zone_id)
        stats = {u.id: {"open": 0, "completed": 0} for u in users}
        for user_id, status in self.carts.count_carts_by_user(list(stats)):
            stats[user_id]["open" if status.is_open else "completed"] += 1

        return {
            "zone": zone_to_dict(zone),
            "stores": [
                {
                    "id": s.id,
                    "name": s.name,
                    "latitude": s.latitude,
                    "longitude": s.longitude,
                    "address": s.address,
                    "city": s.city,
                    "in_zone": s.id in roster,
                }
                for s in self.stores.list_all_stores()
            ],
            "users": [
                {
                    "id": u.id,
                    "name": u.name,
                    "email": u.email,
                    "city": u.city,
                    "open_carts": stats[u.id]["open"],
                    "completed_carts": stats[u.id]["completed"],
                }
                for u in users
            ],
        }

    #commands
    def create_zone(self, payload: ZoneIn) -> Dict[str, Any]:
        translations = normalize_translations(payload.translations or {"en": payload.name})
        name = translations.get("en") or (payload.name or "").strip() or "New Zone"
        polygon = geofence.normalize_polygon(payload.coordinates)

        zone = self.repo.create_zone(
            ZoneModel(
                name=name,
                name_translations=translations,
                coordinates=geofence.to_coordinates(polygon),
            )
        )
        logger.info(f"Zone {zone.id} '{zone.name}' created with {len(polygon)} vertices")

        result = {"zone": zone_to_dict(zone)}
        if geofence.has_coverage(polygon):
            result.update(self._trigger_sync(zone.id))
        return result

    def update_zone(self, zone_id: int, payload: ZoneUpdateIn) -> Dict[str, Any]:
        zone = self._get(zone_id)

        # edycja i sweep pod jednym lockiem, trwajacy sweep nie moze liczyc starego poligonu
        with self.lock_service.zone_sync_lock(zone_id):
            self.db.refresh(zone)

            if payload.translations is not None:
                translations = normalize_translations(payload.translations)
                zone.name_translations = translations
                zone.name = translations.get("en") or zone.name
            if payload.name is not None and payload.name.strip():
                zone.name = payload.name.strip()
                zone.name_translations = {**(zone.name_translations or {}), "en": zone.name}

            polygon_changed = False
            if payload.coordinates is not None:
                polygon = geofence.normalize_polygon(payload.coordinates)
                zone.coordinates = geofence.to_coordinates(polygon)
                polygon_changed = True

            self.repo.commit()
            logger.info(f"Zone {zone_id} updated (polygon changed: {polygon_changed})")

            result = {"zone": zone_to_dict(zone)}
            report = self._sweep_held(zone_id) if polygon_changed else None

        if polygon_changed:
            result.update(self._sync_result(zone_id, report))
        return result

    def delete_zone(self, zone_id: int) -> Dict[str, Any]:
        zone = self._get(zone_id)

        with self.lock_service.zone_sync_lock(zone_id):
            # najpierw wszyscy traca strefe (i otwarte koszyki pozycje), potem delete
            report = self.synchronizer.release_held(zone_id)
            self.carts.clear_zone(zone_id)
            self.users.clear_zone(zone_id)
            self.repo.delete_zone(zone)
            self.repo.commit()

        logger.info(f"Zone {zone_id} deleted")
        return {"success": True, "sync": report.as_dict()}

    def add_store(self, zone_id: int, store_id: int) -> Dict[str, Any]:
        self._get(zone_id)
        if not self.stores.get_store(store_id):
            raise NotFoundError("Sklep nie istnieje")

        with self.lock_service.zone_sync_lock(zone_id):
            if self.repo.add_store(zone_id, store_id):
                self.repo.commit()
                logger.info(f"Store {store_id} added to zone {zone_id}")
            report = self._sweep_held(zone_id)
        return self._sync_result(zone_id, report)

    def remove_store(self, zone_id: int, store_id: int) -> Dict[str, Any]:
        self._get(zone_id)

        with self.lock_service.zone_sync_lock(zone_id):
            removed = self.repo.remove_store(zone_id, store_id)
            self.repo.commit()
            if removed:
                logger.info(f"Store {store_id} removed from zone {zone_id}")
            report = self._sweep_held(zone_id)
        return self._sync_result(zone_id, report)

    def _get(self, zone_id: int) -> ZoneModel:
        zone = self.repo.get_zone(zone_id)
        if not zone:
            raise NotFoundError("Strefa nie istnieje")
        return zone

    def _sweep_held(self, zone_id: int) -> ZoneSyncReport | None:
        """Pod lockiem strefy. W trybie async None, task idzie dopiero po zwolnieniu locka."""
        if ZONE_SYNC_ASYNC:
            return None
        return self.synchronizer.sync_held(zone_id)

    def _sync_result(self, zone_id: int, report: ZoneSyncReport | None) -> Dict[str, Any]:
        if report is not None:
            return {"sync": report.as_dict(), "sync_task_id": None}

        # import tutaj, task importuje serwisy
        from zonecart.tasks.zone_sync import sync_zone_task

        task = sync_zone_task.delay(zone_id)
        logger.info(f"Zone {zone_id} sync dispatched as task {task.id}")
        return {"sync": None, "sync_task_id": task.id}

    def _trigger_sync(self, zone_id: int) -> Dict[str, Any]:
        report = None if ZONE_SYNC_ASYNC else self.synchronizer.sync(zone_id)
        return self._sync_result(zone_id, report)
