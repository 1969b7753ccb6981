from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, CheckConstraint, Index, func)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class CartItem(Base, CreatedAtMixin):
    __tablename__ = "cart_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    #relationships
    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", back_populates="cart_items")

    quantity = Column(Integer, nullable=False)
    size = Column(String, nullable=True)
    description = Column(String, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cart_id": self.cart_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "size": self.size,
            "description": self.description,
        }


# one line per (cart, product, size); NULL sizes must collide too
Index(
    "uq_cart_items_cart_product_size",
    CartItem.cart_id,
    CartItem.product_id,
    func.coalesce(CartItem.size, ""),
    unique=True,
)
