# Models
from .product import Product
from .cart_item import CartItem
from .order import Order, OrderItem, OrderStatus
from .stock_logs import StockLog, ChangeType

__all__ = [
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "StockLog",
    "ChangeType",
]
