from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey, Index
from sqlalchemy.sql import func
from tableside.core.database import Base
from enum import Enum as PyEnum

class OrderStatus(str, PyEnum):
    PENDING = "pending"
    COOKING = "cooking"
    SERVED = "served"
    COMPLETED = "completed"

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_restaurant_table", "restaurant_id", "table_no"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_no = Column(String, nullable=False)
    title = Column(String, nullable=False)
    category = Column(String, default="")
    food_id = Column(Integer, nullable=True)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    total = Column(Float, nullable=False)  # price * quantity when created, never recomputed
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    customer_name = Column(String, default="")
    customer_phone = Column(String, default="")
    image_url = Column(String, default="")
    description = Column(String, default="")
    ingredients = Column(String, default="")
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
