# zonecart/data/models/store.py
from sqlalchemy import Column, Integer, String, Float, Numeric, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from zonecart.data.database import Base


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_translations = Column(JSON, nullable=False, default=dict)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    zones = relationship("ZoneStoreModel", back_populates="store", cascade="all, delete-orphan")
    offers = relationship("OfferModel", back_populates="store", cascade="all, delete-orphan")


class OfferModel(Base):
    """Oferta sklepu dla produktu (cena + stan)."""

    __tablename__ = "store_products"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    store = relationship("StoreModel", back_populates="offers")
    product = relationship("ProductModel", back_populates="offers")

    __table_args__ = (UniqueConstraint("store_id", "product_id", name="u_store_product"),)
