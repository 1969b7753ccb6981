from typing import Optional
from fastapi import HTTPException
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status
from models.carts import Cart
from models.cart_items import CartItem
from models.categories import Category
from models.products import Product
from utils.logger import get_logger

logger = get_logger(__name__)


def _internal_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _normalize_size(size: Optional[str]) -> Optional[str]:
    """Blank sizes mean "no size"."""
    if size is None or not size.strip():
        return None
    return size.strip()


class CartService:
    """
    Cart engine: one cart per customer, one line per (product, size).

    Every mutation runs in a single transaction on the given session and
    either commits completely or rolls back completely.
    """

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    @staticmethod
    def resolve_item_owner(db: Session, item_id: int) -> Optional[int]:
        """Owning customer id of a cart item (cart_items -> carts), None if the item is gone."""
        return db.execute(
            select(Cart.customer_id)
            .join(CartItem, CartItem.cart_id == Cart.id)
            .where(CartItem.id == item_id)
        ).scalar_one_or_none()

    @staticmethod
    def _find_cart(db: Session, customer_id: int) -> Optional[Cart]:
        return db.execute(
            select(Cart).where(Cart.customer_id == customer_id)
        ).scalar_one_or_none()

    @staticmethod
    def _find_item(db: Session, cart_id: int, product_id: int, size: Optional[str]) -> Optional[CartItem]:
        size_clause = CartItem.size.is_(None) if size is None else CartItem.size == size
        return db.execute(
            select(CartItem).where(
                CartItem.cart_id == cart_id,
                CartItem.product_id == product_id,
                size_clause
            )
        ).scalar_one_or_none()

    @staticmethod
    def get_or_create_cart(db: Session, customer_id: int) -> Cart:
        """
        Find the customer's cart or create it.

        Two first-adds for the same customer can both see "no cart" under
        read committed; the loser hits the unique constraint on
        customer_id, rolls back its savepoint only and re-reads the
        winner's row.
        """
        cart = CartService._find_cart(db, customer_id)
        if cart is not None:
            return cart

        try:
            with db.begin_nested():
                cart = Cart(customer_id=customer_id)
                db.add(cart)
        except IntegrityError:
            logger.info("Concurrent cart creation detected, reusing existing cart",
                        extra={"customer_id": customer_id})
            cart = CartService._find_cart(db, customer_id)
            if cart is None:
                raise
        return cart

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------
    @staticmethod
    def add_to_cart(db: Session, customer_id: int, product_id: int, quantity: int,
                    size: Optional[str] = None, description: Optional[str] = None) -> tuple[CartItem, bool]:
        """
        Add a product to the customer's cart.

        Flow:
        1. Validate input (nothing touches the database on failure)
        2. Find or create the cart
        3. Same product and size already in the cart -> add to its quantity,
           otherwise insert a new line
        4. Commit; any database error rolls everything back

        Returns:
            (cart item, True if a new line was created)
        """
        size = _normalize_size(size)

        if not customer_id or not product_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="customerId and productId are required")
        if not _is_positive_int(quantity):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Quantity must be a positive integer")

        if db.get(Product, product_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        try:
            cart = CartService.get_or_create_cart(db, customer_id)
            item = CartService._find_item(db, cart.id, product_id, size)
            created = False

            if item is None:
                try:
                    with db.begin_nested():
                        item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity,
                                        size=size, description=description)
                        db.add(item)
                    created = True
                except IntegrityError:
                    # another request inserted the same line first
                    item = CartService._find_item(db, cart.id, product_id, size)
                    if item is None:
                        raise

            if not created:
                item.quantity = CartItem.quantity + quantity

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(
                "Add to cart failed, transaction rolled back",
                extra={"customer_id": customer_id, "product_id": product_id},
                exc_info=True
            )
            raise _internal_error("Failed to add item to cart")

        db.refresh(item)

        logger.info(
            "Cart item added" if created else "Cart item quantity updated",
            extra={"customer_id": customer_id, "cart_item_id": item.id, "quantity": item.quantity}
        )
        return item, created

    @staticmethod
    def get_cart(db: Session, customer_id: int) -> list[dict]:
        """Cart lines for a customer, newest first, enriched with product and category data."""
        rows = db.execute(
            select(CartItem, Product, Category.name)
            .join(Cart, CartItem.cart_id == Cart.id)
            .join(Product, CartItem.product_id == Product.id)
            .outerjoin(Category, Product.category_id == Category.id)
            .where(Cart.customer_id == customer_id)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        ).all()

        return [
            {
                **item.to_dict(),
                "created_at": item.created_at,
                "name": product.name,
                "price": float(product.price) if product.price is not None else None,
                "sizes": product.sizes or [],
                "images": product.images or [],
                "category_name": category_name,
            }
            for item, product, category_name in rows
        ]

    @staticmethod
    def update_cart_item(db: Session, item_id: int, quantity: Optional[int] = None,
                         size: Optional[str] = None, description: Optional[str] = None) -> CartItem:
        """
        Change quantity, size and/or description of one line.

        Moving a line onto a size that is already in the cart merges it
        into the existing line.
        """
        size = _normalize_size(size)

        if quantity is None and size is None and description is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
        if quantity is not None and not _is_positive_int(quantity):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Quantity must be at least 1")

        item = db.get(CartItem, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")

        try:
            if size is not None and size != item.size:
                twin = CartService._find_item(db, item.cart_id, item.product_id, size)
                if twin is not None:
                    twin.quantity = twin.quantity + (quantity if quantity is not None else item.quantity)
                    if description is not None:
                        twin.description = description
                    db.delete(item)
                    db.commit()
                    db.refresh(twin)
                    logger.info("Cart items merged",
                                extra={"merged_item_id": item_id, "cart_item_id": twin.id})
                    return twin
                item.size = size

            if quantity is not None:
                item.quantity = quantity
            if description is not None:
                item.description = description

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Cart item update failed", extra={"cart_item_id": item_id}, exc_info=True)
            raise _internal_error("Failed to update cart item")

        db.refresh(item)
        return item

    @staticmethod
    def remove_cart_item(db: Session, item_id: int) -> None:
        item = db.get(CartItem, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")

        try:
            db.delete(item)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Cart item removal failed", extra={"cart_item_id": item_id}, exc_info=True)
            raise _internal_error("Failed to remove cart item")

    @staticmethod
    def clear_cart(db: Session, customer_id: int) -> int:
        """Delete every line of the customer's cart. Clearing an empty (or missing) cart is fine."""
        try:
            result = db.execute(
                delete(CartItem)
                .where(CartItem.cart_id.in_(select(Cart.id).where(Cart.customer_id == customer_id)))
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Clearing cart failed", extra={"customer_id": customer_id}, exc_info=True)
            raise _internal_error("Failed to clear cart")

        db.expire_all()
        return result.rowcount
