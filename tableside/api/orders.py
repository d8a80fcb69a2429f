from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from tableside.api.deps import admin_only, staff_or_admin
from tableside.core.database import get_db
from tableside.models.schemas import OrderCreate, OrderOut, OrderStatusUpdate, OrderUpdate, to_wire
from tableside.services import order_store, transitions
from tableside.services.sessions import SessionContext
from tableside.utils.broadcast import broadcast_order_change
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- admin ----------

@router.get("/{tenant}/admin/orders")
def list_admin_orders(tenant: str, status: Optional[str] = None, table: Optional[str] = None,
                      session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    """Admin panel: every order of the restaurant, newest first"""
    orders = order_store.list_orders(db, tenant, status=status, table_no=table)
    return {"orders": [to_wire(OrderOut, o) for o in orders]}

@router.post("/{tenant}/admin/orders")
async def create_admin_order(tenant: str, data: OrderCreate,
                             session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    order, change = order_store.create_order(db, tenant, data)
    await broadcast_order_change(change)
    return {
        "success": True,
        "orderId": order.id,
        "order": to_wire(OrderOut, order),
        "message": "Order created successfully",
    }

@router.put("/{tenant}/admin/orders/{order_id}")
async def update_admin_order(tenant: str, order_id: int, changes: OrderUpdate,
                             session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    """Full-record edit. total keeps its creation value even if price changes."""
    order, change = order_store.update_order(db, tenant, order_id, changes)
    await broadcast_order_change(change)
    return {"success": True, "order": to_wire(OrderOut, order), "message": "Order updated successfully"}

@router.delete("/{tenant}/admin/orders/{order_id}")
async def delete_admin_order(tenant: str, order_id: int,
                             session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    return await _remove(db, tenant, order_id)


# ---------- kitchen ----------

@router.get("/{tenant}/kitchen/orders")
def list_kitchen_orders(tenant: str, status: Optional[str] = None,
                        session: SessionContext = Depends(staff_or_admin), db: Session = Depends(get_db)):
    """Kitchen display endpoint, also the page-load fallback for the live feed"""
    orders = order_store.list_orders(db, tenant, status=status)
    return {"orders": [to_wire(OrderOut, o) for o in orders]}

@router.patch("/{tenant}/kitchen/orders/{order_id}/status")
async def update_order_status(tenant: str, order_id: int, status_update: OrderStatusUpdate,
                              session: SessionContext = Depends(staff_or_admin), db: Session = Depends(get_db)):
    """Kitchen status updates"""
    order, change = transitions.transition(db, tenant, order_id, status_update.status,
                                           expected_version=status_update.version)
    await broadcast_order_change(change)
    return {
        "success": True,
        "orderId": order.id,
        "newStatus": order.status.value,
        "order": to_wire(OrderOut, order),
    }

@router.delete("/{tenant}/kitchen/orders/{order_id}")
async def delete_kitchen_order(tenant: str, order_id: int,
                               session: SessionContext = Depends(staff_or_admin), db: Session = Depends(get_db)):
    return await _remove(db, tenant, order_id)


async def _remove(db: Session, tenant: str, order_id: int) -> dict:
    deleted, change = transitions.remove(db, tenant, order_id)
    await broadcast_order_change(change)
    return {
        "success": True,
        "deleted": deleted,
        "message": "Order deleted successfully" if deleted else "Order already removed",
    }
