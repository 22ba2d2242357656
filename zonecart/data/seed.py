# zonecart/data/seed.py
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from zonecart.data.database import SessionLocal
from zonecart.data.models import ZoneModel, ZoneStoreModel, StoreModel, OfferModel, ProductModel
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)

MONTREAL = [
    {"lat": 45.40, "lng": -73.98},
    {"lat": 45.40, "lng": -73.47},
    {"lat": 45.71, "lng": -73.47},
    {"lat": 45.71, "lng": -73.98},
]
QUEBEC = [
    {"lat": 46.70, "lng": -71.40},
    {"lat": 46.70, "lng": -71.15},
    {"lat": 46.90, "lng": -71.15},
    {"lat": 46.90, "lng": -71.40},
]


def seed():
    db = SessionLocal()
    try:
        # tylko pusta baza
        if db.query(ZoneModel).first():
            return

        mtl = ZoneModel(name="Montreal", name_translations={"en": "Montreal", "fr": "Montréal"}, coordinates=MONTREAL)
        qc = ZoneModel(name="Quebec City", name_translations={"en": "Quebec City", "fr": "Ville de Québec"}, coordinates=QUEBEC)

        plateau = StoreModel(name="Epicerie Plateau", address="4200 Rue Saint-Denis", city="Montreal", latitude=45.5225, longitude=-73.5790)
        verdun = StoreModel(name="Marche Verdun", address="4100 Rue Wellington", city="Montreal", latitude=45.4610, longitude=-73.5680)
        limoilou = StoreModel(name="Depanneur Limoilou", address="800 3e Avenue", city="Quebec", latitude=46.8270, longitude=-71.2240)

        coffee = ProductModel(name="Coffee beans 1kg", description="Medium roast")
        syrup = ProductModel(name="Maple syrup 540ml")
        bagels = ProductModel(name="Bagels (6)", valid_until=datetime.now(timezone.utc) + timedelta(days=3))

        db.add_all([mtl, qc, plateau, verdun, limoilou, coffee, syrup, bagels])
        db.flush()

        db.add_all(
            [
                ZoneStoreModel(zone_id=mtl.id, store_id=plateau.id),
                ZoneStoreModel(zone_id=mtl.id, store_id=verdun.id),
                ZoneStoreModel(zone_id=qc.id, store_id=limoilou.id),
                OfferModel(store_id=plateau.id, product_id=coffee.id, price=Decimal("24.99"), stock=10),
                OfferModel(store_id=verdun.id, product_id=coffee.id, price=Decimal("22.49"), stock=4),
                OfferModel(store_id=plateau.id, product_id=bagels.id, price=Decimal("7.50"), stock=30),
                OfferModel(store_id=limoilou.id, product_id=syrup.id, price=Decimal("12.99"), stock=15),
                OfferModel(store_id=limoilou.id, product_id=coffee.id, price=Decimal("26.00"), stock=5),
            ]
        )
        db.commit()
        logger.info("Seeded 2 zones, 3 stores, 3 products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
