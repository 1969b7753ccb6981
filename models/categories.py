from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, JSON)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class Category(Base, CreatedAtMixin):
    """Product grouping shown on the storefront; special categories are featured."""
    __tablename__ = "categories"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    products = relationship("Product", back_populates="category")

    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    pics = Column(JSON, nullable=False, default=list)
    special_category = Column(Boolean, nullable=False, default=False)
