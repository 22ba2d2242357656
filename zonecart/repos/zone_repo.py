# zonecart/repos/zone_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session, selectinload

from zonecart.data.models.zone import ZoneModel, ZoneStoreModel


class ZoneRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_zones(self) -> list[ZoneModel]:
        # stala kolejnosc, niezalezna od silnika bazy
        return list(
            self.db.execute(
                select(ZoneModel)
                .options(selectinload(ZoneModel.stores))
                .order_by(ZoneModel.created_at, ZoneModel.id)
            ).scalars()
        )

    def get_zone(self, zone_id: int) -> ZoneModel | None:
        return self.db.get(ZoneModel, zone_id)

    def list_store_ids_in_zone(self, zone_id: int) -> set[int]:
        rows = self.db.execute(
            select(ZoneStoreModel.store_id).where(ZoneStoreModel.zone_id == zone_id)
        ).scalars()
        return set(rows)

    def create_zone(self, zone: ZoneModel) -> ZoneModel:
        self.db.add(zone)
        self.db.commit()
        self.db.refresh(zone)
        return zone

    def add_store(self, zone_id: int, store_id: int) -> bool:
        """Upsert, zwraca False jesli sklep juz byl w strefie."""
        existing = self.db.execute(
            select(ZoneStoreModel).where(
                ZoneStoreModel.zone_id == zone_id,
                ZoneStoreModel.store_id == store_id,
            )
        ).scalar_one_or_none()
        if existing:
            return False
        self.db.add(ZoneStoreModel(zone_id=zone_id, store_id=store_id))
        return True

    def remove_store(self, zone_id: int, store_id: int) -> int:
        result = self.db.execute(
            delete(ZoneStoreModel).where(
                ZoneStoreModel.zone_id == zone_id,
                ZoneStoreModel.store_id == store_id,
            )
        )
        return result.rowcount

    def delete_zone(self, zone: ZoneModel) -> None:
        # zone_stores leca kaskadowo z relacji
        self.db.delete(zone)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
