from decimal import Decimal
from typing import Optional
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from starlette import status
from core.roles import Role
from models.orders import Order, OrderStatus
from models.order_items import OrderItem
from models.products import Product
from models.users import User
from utils.logger import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Orders snapshot the catalogue price of every line at creation time;
    later price changes do not touch existing orders.
    """

    @staticmethod
    def resolve_order_owner(db: Session, order_id: int) -> Optional[int]:
        """Customer id of an order, None if the order does not exist."""
        return db.execute(
            select(Order.customer_id).where(Order.id == order_id)
        ).scalar_one_or_none()

    @staticmethod
    def list_orders(db: Session, customer_id: Optional[int] = None) -> list[Order]:
        """All orders, newest first; restricted to one customer when customer_id is given."""
        query = select(Order).options(selectinload(Order.items))
        if customer_id is not None:
            query = query.where(Order.customer_id == customer_id)
        return list(db.execute(query.order_by(Order.created_at.desc(), Order.id.desc())).scalars())

    @staticmethod
    def get_order(db: Session, order_id: int) -> Order:
        order = db.get(Order, order_id)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    @staticmethod
    def create_order(db: Session, customer_id: int, items: list, admin_id: Optional[int] = None) -> Order:
        """
        Create an order and its lines in one transaction.

        Flow:
        1. Validate the lines and resolve every product (nothing is written on failure)
        2. Insert the order and its lines, priced from the catalogue
        3. Commit; any database error rolls everything back

        Args:
            items: objects with product_id, quantity and size attributes
        """
        if not items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Order must have at least one item")
        for item in items:
            if not item.product_id or not item.quantity or item.quantity < 1:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid order item")

        customer = db.get(User, customer_id)
        if customer is None or customer.role != Role.CUSTOMER:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

        product_ids = {item.product_id for item in items}
        products = {
            product.id: product
            for product in db.execute(select(Product).where(Product.id.in_(product_ids))).scalars()
        }
        missing = product_ids - products.keys()
        if missing:
            logger.info("Order rejected, unknown products",
                        extra={"customer_id": customer_id, "product_ids": sorted(missing)})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        order = Order(customer_id=customer_id, admin_id=admin_id, status=OrderStatus.PENDING)
        total = Decimal("0")
        for item in items:
            price = Decimal(products[item.product_id].price)
            subtotal = price * item.quantity
            total += subtotal
            order.items.append(OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                size=item.size,
                price_at_time=price,
                subtotal=subtotal
            ))
        order.total_amount = total

        try:
            db.add(order)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Order creation failed, transaction rolled back",
                         extra={"customer_id": customer_id}, exc_info=True)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                                detail="Failed to create order")

        db.refresh(order)
        logger.info("Order created",
                    extra={"order_id": order.id, "customer_id": customer_id, "items": len(items)})
        return order

    @staticmethod
    def update_status(db: Session, order_id: int, new_status: str) -> Order:
        try:
            parsed = OrderStatus(new_status)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid order status")

        order = OrderService.get_order(db, order_id)
        previous = order.status
        order.status = parsed
        db.commit()
        db.refresh(order)

        logger.info("Order status updated",
                    extra={"order_id": order_id, "from_status": previous.value, "to_status": parsed.value})
        return order

    @staticmethod
    def delete_order(db: Session, order_id: int) -> None:
        order = OrderService.get_order(db, order_id)
        db.delete(order)
        db.commit()
