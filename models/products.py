from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, Numeric, JSON)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Product(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "products"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    #relationships
    category = relationship("Category", back_populates="products")
    creator = relationship("User", back_populates="products")
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan")
    order_items = relationship("OrderItem", back_populates="product")

    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    # parallel lists: descriptions[i] describes sizes[i]
    sizes = Column(JSON, nullable=False, default=list)
    descriptions = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
