"""Schema exports."""

from canteen.schemas.cart import CartLine, LineKey, RemoteCart, RemoteCartItem, normalize_note
from canteen.schemas.menu import Category, MenuItem
from canteen.schemas.notification import Notification, NotificationCreate
from canteen.schemas.order import Order, OrderCustomer, OrderLine

__all__ = [
    "CartLine",
    "Category",
    "LineKey",
    "MenuItem",
    "Notification",
    "NotificationCreate",
    "Order",
    "OrderCustomer",
    "OrderLine",
    "RemoteCart",
    "RemoteCartItem",
    "normalize_note",
]
