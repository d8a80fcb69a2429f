from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from tableside.api.deps import super_admin_only
from tableside.core.database import get_db
from tableside.models.schemas import (
    AdminLogin, BlockRequest, BulkNotificationCreate, NotificationCreate, NotificationOut,
    RestaurantCreate, RestaurantOut, to_wire,
)
from tableside.services import notifications
from tableside.services import restaurants as restaurant_service
from tableside.services.sessions import (
    SessionContext, authenticate_super_admin, block_restaurant, unblock_restaurant,
)
from tableside.utils.broadcast import broadcast_tenant_blocked

router = APIRouter(prefix="/super-admin")


@router.post("/login")
def super_admin_login(body: AdminLogin):
    token = authenticate_super_admin(body.email, body.password)
    return {"ok": True, "token": token}

@router.get("/restaurants")
def list_restaurants(session: SessionContext = Depends(super_admin_only), db: Session = Depends(get_db)):
    return {"restaurants": [to_wire(RestaurantOut, r) for r in restaurant_service.list_restaurants(db)]}

@router.post("/restaurants")
def create_restaurant(data: RestaurantCreate, session: SessionContext = Depends(super_admin_only),
                      db: Session = Depends(get_db)):
    restaurant, admin = restaurant_service.create_restaurant(db, data)
    return {
        "success": True,
        "restaurant": to_wire(RestaurantOut, restaurant),
        "admin": {"id": admin.id, "email": admin.email, "name": admin.name},
    }

@router.get("/restaurants/{tenant}")
def get_restaurant(tenant: str, session: SessionContext = Depends(super_admin_only),
                   db: Session = Depends(get_db)):
    return {"restaurant": to_wire(RestaurantOut, restaurant_service.get_restaurant(db, tenant))}

@router.post("/restaurants/{tenant}/block")
async def block(tenant: str, body: Optional[BlockRequest] = None,
                session: SessionContext = Depends(super_admin_only), db: Session = Depends(get_db)):
    """Block a tenant. Its live views are cut off immediately, tokens fail on next use."""
    restaurant = block_restaurant(db, tenant, body.reason if body else None)
    await broadcast_tenant_blocked(tenant)
    return {"success": True, "restaurant": to_wire(RestaurantOut, restaurant)}

@router.post("/restaurants/{tenant}/unblock")
def unblock(tenant: str, session: SessionContext = Depends(super_admin_only), db: Session = Depends(get_db)):
    restaurant = unblock_restaurant(db, tenant)
    return {"success": True, "restaurant": to_wire(RestaurantOut, restaurant)}

@router.delete("/restaurants/{tenant}")
async def delete_restaurant(tenant: str, session: SessionContext = Depends(super_admin_only),
                            db: Session = Depends(get_db)):
    """Delete the tenant with its menu, staff, tables, orders, notifications and admins."""
    deleted = restaurant_service.delete_restaurant(db, tenant)
    await broadcast_tenant_blocked(tenant)
    return {"success": True, "deleted": deleted, "message": f"Restaurant {tenant} deleted"}

@router.post("/restaurants/{tenant}/notifications")
def notify_restaurant(tenant: str, data: NotificationCreate, session: SessionContext = Depends(super_admin_only),
                      db: Session = Depends(get_db)):
    notification = notifications.send_notification(db, tenant, data)
    return {"success": True, "notification": to_wire(NotificationOut, notification)}

@router.post("/notifications")
def notify_all(data: BulkNotificationCreate, session: SessionContext = Depends(super_admin_only),
               db: Session = Depends(get_db)):
    sent = notifications.send_bulk(db, data)
    return {"success": True, "sent": len(sent), "restaurantIds": [n.restaurant_id for n in sent]}
