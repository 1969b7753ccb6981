from models.users import User
from models.categories import Category
from models.products import Product
from models.carts import Cart
from models.cart_items import CartItem
from models.orders import Order, OrderStatus
from models.order_items import OrderItem
from models.password_reset_tokens import PasswordResetToken

__all__ = ["User", "Category", "Product", "Cart", "CartItem", "Order", "OrderStatus", "OrderItem",
           "PasswordResetToken"]
