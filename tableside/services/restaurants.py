import logging
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session
from tableside.core.errors import NotFound, ValidationError
from tableside.core.security import hash_password
from tableside.models.food import Food
from tableside.models.notification import Notification
from tableside.models.order import Order
from tableside.models.restaurant import Admin, Restaurant
from tableside.models.staff import Staff
from tableside.models.table import Table
from tableside.models.schemas import RestaurantCreate

logger = logging.getLogger(__name__)


def list_restaurants(db: Session) -> List[Restaurant]:
    return db.query(Restaurant).order_by(Restaurant.created_at.desc(), Restaurant.id).all()


def get_restaurant(db: Session, tenant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, tenant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return restaurant


def create_restaurant(db: Session, data: RestaurantCreate) -> Tuple[Restaurant, Admin]:
    """New tenant together with its first admin account. Menu and staff start empty."""
    if db.get(Restaurant, data.id) is not None:
        raise ValidationError(f"Restaurant id '{data.id}' is taken")
    admin_email = data.admin_email.strip().lower()
    if db.query(Admin).filter(Admin.email == admin_email).first():
        raise ValidationError("Admin email already registered")

    restaurant = Restaurant(
        id=data.id,
        name=data.name,
        address=data.address,
        phone=data.phone,
        email=data.email,
        description=data.description,
        currency=data.currency,
        timezone=data.timezone,
    )
    admin = Admin(
        restaurant_id=data.id,
        email=admin_email,
        name=data.admin_name or data.name,
        password_hash=hash_password(data.admin_password),
    )
    db.add(restaurant)
    db.flush()
    db.add(admin)
    db.commit()
    db.refresh(restaurant)
    db.refresh(admin)
    logger.info("Restaurant %s created with admin %s", restaurant.id, admin.email)
    return restaurant, admin


def delete_restaurant(db: Session, tenant_id: str) -> Dict[str, int]:
    """Remove a tenant and every record under it. Returns rows deleted per table."""
    restaurant = get_restaurant(db, tenant_id)
    deleted = {}
    for model in (Order, Staff, Food, Notification, Table, Admin):
        deleted[model.__tablename__] = db.query(model).filter(model.restaurant_id == tenant_id) \
            .delete(synchronize_session=False)
    db.delete(restaurant)
    db.commit()
    logger.warning("Restaurant %s deleted with %d related rows", tenant_id, sum(deleted.values()))
    return deleted
