from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from models.orders import OrderStatus


class OrderItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId", gt=0)
    quantity: int = Field(ge=1)
    size: Optional[str] = Field(default=None, max_length=50)

    @field_validator('size')
    @classmethod
    def blank_size_is_no_size(cls, value):
        if value is None:
            return None
        return value.strip() or None


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: int = Field(alias="customerId", gt=0)
    admin_id: Optional[int] = Field(default=None, alias="adminId", gt=0)
    # an empty list is rejected by the service with its own message
    items: list[OrderItemRequest] = []


class UpdateOrderStatusRequest(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    quantity: int
    size: Optional[str] = None
    price_at_time: Decimal
    subtotal: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    admin_id: Optional[int] = None
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    items: list[OrderItemResponse]


class OrderCreatedResponse(BaseModel):
    message: str
    order_id: int = Field(serialization_alias="orderId")
    data: OrderResponse
