from tableside.models.restaurant import Restaurant, Admin
from tableside.models.order import Order, OrderStatus
from tableside.models.staff import Staff
from tableside.models.food import Food
from tableside.models.table import Table
from tableside.models.notification import Notification

__all__ = ["Restaurant", "Admin", "Order", "OrderStatus", "Staff", "Food", "Table", "Notification"]
