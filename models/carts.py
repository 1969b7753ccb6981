from core.database import Base
from sqlalchemy import (Column, Integer, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class Cart(Base, CreatedAtMixin):
    """One cart per customer, created lazily on the first add."""
    __tablename__ = "carts"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    #relationships
    customer = relationship("User", back_populates="cart")
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan")
