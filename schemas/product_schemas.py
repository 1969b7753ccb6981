from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CategoryCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    pics: list[str] = Field(default=[], max_length=5)
    special_category: bool = Field(default=False, alias="specialCategory")


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    pics: list[str]
    special_category: bool


class ProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category_id: int = Field(alias="categoryId", gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    sizes: list[str] = []
    descriptions: list[str] = []
    images: list[str] = Field(min_length=1, max_length=2)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('sizes', 'descriptions')
    @classmethod
    def strip_entries(cls, value):
        return [entry.strip() for entry in value if entry and entry.strip()]

    @model_validator(mode='after')
    def descriptions_match_sizes(self):
        if self.descriptions and len(self.descriptions) != len(self.sizes):
            raise ValueError('descriptions must have one entry per size')
        return self


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category_id: int
    price: Decimal
    sizes: list[str]
    descriptions: list[str]
    images: list[str]
