from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from tableside.core.database import Base

class Staff(Base):
    __tablename__ = "staff"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "mobile", name="uq_staff_restaurant_mobile"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    mobile = Column(String, nullable=False)  # login identifier
    password_hash = Column(String, nullable=False)
    designation = Column(String, default="")
    address = Column(String, default="")
    aadhaar = Column(String, default="")
    image_url = Column(String, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
