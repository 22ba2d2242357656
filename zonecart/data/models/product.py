# zonecart/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from zonecart.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    offers = relationship("OfferModel", back_populates="product", cascade="all, delete-orphan")

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.valid_until is None:
            return False
        now = now or datetime.now(timezone.utc)
        valid_until = self.valid_until
        # sqlite zwraca naive datetime
        if valid_until.tzinfo is None:
            valid_until = valid_until.replace(tzinfo=timezone.utc)
        return valid_until <= now
