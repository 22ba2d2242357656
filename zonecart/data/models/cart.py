# zonecart/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship

from zonecart.data.database import Base
from zonecart.data.models.address import AddressColumnsMixin
from zonecart.domain.enums import CartStatus


class CartModel(AddressColumnsMixin, Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # NULL -> koszyk anonimowy, identyfikowany po id
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    status = Column(
        Enum(CartStatus, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CartStatus.SHOPPING,
    )
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="SET NULL"), nullable=True, index=True)

    # token optimistic locking, +1 przy kazdym zapisie dotykajacym strefy
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
    )
