from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from tableside.core.database import Base
from tableside.config import settings

class Table(Base):
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "number", name="uq_tables_restaurant_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False, default=4)
    location = Column(String, default="")
    is_occupied = Column(Boolean, default=False)  # display flag only, not used for billing
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def qr_code(self) -> str:
        """Menu URL encoded in the printed table QR code."""
        base = settings.public_base_url.rstrip("/")
        return f"{base}/{self.restaurant_id}/customer/menu?table={self.number}"
