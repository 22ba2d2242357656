# zonecart/data/models/zone.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from zonecart.data.database import Base


class ZoneModel(Base):
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_translations = Column(JSON, nullable=False, default=dict)

    # [{"lat": .., "lng": ..}, ...] w kolejnosci obwodu
    coordinates = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    stores = relationship(
        "ZoneStoreModel",
        back_populates="zone",
        cascade="all, delete-orphan",
    )

    @property
    def vertices(self) -> list[tuple[float, float]]:
        return [(float(c["lat"]), float(c["lng"])) for c in (self.coordinates or [])]

    @property
    def store_ids(self) -> set[int]:
        return {zs.store_id for zs in self.stores}


class ZoneStoreModel(Base):
    __tablename__ = "zone_stores"

    id = Column(Integer, primary_key=True)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)

    zone = relationship("ZoneModel", back_populates="stores")
    store = relationship("StoreModel", back_populates="zones")

    __table_args__ = (UniqueConstraint("zone_id", "store_id", name="u_zone_store"),)
