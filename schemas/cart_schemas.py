from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_size_is_no_size(value):
    if value is not None and not value.strip():
        return None
    return value


class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId", gt=0)
    product_id: int = Field(alias="productId", gt=0)
    quantity: int = Field(ge=1)
    size: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator('size')
    @classmethod
    def blank_size_is_no_size(cls, value):
        return _blank_size_is_no_size(value)


class UpdateCartItemRequest(BaseModel):
    quantity: Optional[int] = Field(default=None, ge=1)
    size: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator('size')
    @classmethod
    def blank_size_is_no_size(cls, value):
        return _blank_size_is_no_size(value)


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    cart_id: int
    product_id: int
    quantity: int
    size: Optional[str] = None
    description: Optional[str] = None


class CartMutationResponse(BaseModel):
    message: str
    data: CartItemResponse
