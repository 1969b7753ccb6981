from enum import Enum as PyEnum
from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, ForeignKey, Numeric, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin


class OrderStatus(str, PyEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Order(Base, CreatedAtMixin, UpdatedAtMixin):
    """An order placed for a customer, optionally recorded by a back-office admin."""
    __tablename__ = "orders"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    #relationships
    customer = relationship("User", back_populates="orders", foreign_keys=[customer_id])
    admin = relationship("User", back_populates="handled_orders", foreign_keys=[admin_id])
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.id")

    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda statuses: [s.value for s in statuses]),
        default=OrderStatus.PENDING,
        nullable=False
    )
