from core.database import Base
from core.roles import Role
from sqlalchemy import (Column, Integer, String, Boolean, Enum)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class User(Base, CreatedAtMixin):
    """
    Customers and back-office admins share this table; `role` tells them apart.
    """
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    cart = relationship("Cart", back_populates="customer", uselist=False, cascade="all, delete-orphan")
    products = relationship("Product", back_populates="creator")
    orders = relationship("Order", back_populates="customer", foreign_keys="Order.customer_id",
                          cascade="all, delete-orphan")
    handled_orders = relationship("Order", back_populates="admin", foreign_keys="Order.admin_id")

    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone_number = Column(String)
    hashed_password = Column(String, nullable=False)
    role = Column(
        Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        default=Role.CUSTOMER,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)
