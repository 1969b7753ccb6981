from fastapi import APIRouter, Depends, Path
from starlette import status
from utils.deps import db_dependency, user_dependency
from middleware.csrf import csrf_dependency, csrf_reusable_dependency
from schemas.order_schemas import (CreateOrderRequest, UpdateOrderStatusRequest,
                                   OrderResponse, OrderCreatedResponse)
from services.authorization import RequireOwnership, admin_dependency, ensure_owner
from services.order_service import OrderService
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)

_order_owner = RequireOwnership(OrderService.resolve_order_owner, param="id", resource="order")


@router.get("/", response_model=list[OrderResponse])
async def get_all_orders(user: user_dependency, db: db_dependency):
    """Admins see every order, customers only their own."""
    if user.is_admin:
        return OrderService.list_orders(db)
    return OrderService.list_orders(db, customer_id=user.id)


@router.get("/{id}", response_model=OrderResponse, dependencies=[Depends(_order_owner)])
async def get_order(db: db_dependency, id: int = Path(gt=0)):
    return OrderService.get_order(db, id)


@router.post("/", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(body: CreateOrderRequest, user: user_dependency,
                       _: csrf_reusable_dependency, db: db_dependency):
    """
    Customers order for themselves. Admins may order on behalf of any
    customer and are recorded as the handling admin.
    """
    ensure_owner(user, body.customer_id, "order", body.customer_id)

    admin_id = (body.admin_id or user.id) if user.is_admin else None
    order = OrderService.create_order(db, body.customer_id, body.items, admin_id=admin_id)

    return {"message": "Order created", "order_id": order.id, "data": OrderResponse.model_validate(order)}


@router.put("/{id}", response_model=OrderResponse)
async def update_order_status(body: UpdateOrderStatusRequest, admin: admin_dependency,
                              _: csrf_reusable_dependency, db: db_dependency, id: int = Path(gt=0)):
    return OrderService.update_status(db, id, body.status)


@router.delete("/{id}", status_code=status.HTTP_200_OK)
async def delete_order(admin: admin_dependency, _: csrf_dependency,
                       db: db_dependency, id: int = Path(gt=0)):
    OrderService.delete_order(db, id)

    logger.info("Order deleted", extra={"order_id": id, "admin_id": admin.id})
    return {"message": "Order deleted successfully"}
