from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from tableside.core.database import Base

class Notification(Base):
    """Message shown in a restaurant admin's inbox."""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_restaurant_created", "restaurant_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id"), nullable=False)
    type = Column(String, nullable=False, default="admin_message")
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    priority = Column(String, nullable=False, default="normal")
    sender = Column(String, default="Super Admin")
    action_url = Column(String, default="")
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
