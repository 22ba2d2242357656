from sqlalchemy import Column, Integer, String, ForeignKey

from zonecart.data.database import Base
from zonecart.data.models.address import AddressColumnsMixin


class UserModel(AddressColumnsMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)

    # strefa ktorej poligon zawiera wspolrzedne usera (albo NULL)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="SET NULL"), nullable=True, index=True)
