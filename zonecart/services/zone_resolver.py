# zonecart/services/zone_resolver.py
from sqlalchemy.orm import Session

from zonecart.data.models.zone import ZoneModel
from zonecart.domain import geofence
from zonecart.domain.schemas import ZoneResult
from zonecart.repos.zone_repo import ZoneRepo
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)


def zone_precedence(zone: ZoneModel) -> tuple:
    """Nakladajace sie strefy: wygrywa najmniejsze pole, potem najstarsza, potem id.

    Ta sama kolejnosc obowiazuje resolver i sweep strefy.
    """
    return (geofence.polygon_area(zone.vertices), zone.created_at, zone.id)


class ZoneResolver:
    """
    Wspolrzedne -> strefa. Zawsze czyta aktualne strefy z bazy (bez cache),
    nieaktualny poligon = zla decyzja o dostawie.
    """

    def __init__(self, db: Session):
        self.repo = ZoneRepo(db)

    def find_zone_for_point(self, lat: float, lng: float) -> ZoneModel | None:
        matches = [
            zone
            for zone in self.repo.list_zones()
            if geofence.has_coverage(zone.vertices) and geofence.contains((lat, lng), zone.vertices)
        ]

        if not matches:
            logger.info(f"No zone covers ({lat}, {lng})")
            return None

        if len(matches) > 1:
            logger.warning(
                f"Point ({lat}, {lng}) is covered by overlapping zones "
                f"{[z.id for z in matches]}, picking the smallest"
            )
        return min(matches, key=zone_precedence)

    def resolve(self, lat: float, lng: float) -> ZoneResult:
        zone = self.find_zone_for_point(lat, lng)
        if zone is None:
            return ZoneResult.none()
        return ZoneResult(in_zone=True, zone_id=zone.id, zone_name=zone.name)
