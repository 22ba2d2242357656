# zonecart/data/models/address.py
from sqlalchemy import Column, String, Float

ADDRESS_FIELDS = ("address", "city", "state", "country", "postal_code")


class AddressColumnsMixin:
    """Adres + wspolrzedne, wspolne dla usera i koszyka."""

    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    def location_dict(self) -> dict:
        data = {f: getattr(self, f) for f in ADDRESS_FIELDS}
        data["latitude"] = self.latitude
        data["longitude"] = self.longitude
        return data
