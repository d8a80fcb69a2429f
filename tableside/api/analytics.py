from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from tableside.api.deps import admin_only
from tableside.core.database import get_db
from tableside.models.food import Food
from tableside.models.order import OrderStatus
from tableside.models.schemas import OrderOut, to_wire
from tableside.models.staff import Staff
from tableside.services import order_store
from tableside.services.sessions import SessionContext
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
import copy
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

DAYS = 7

# Served when stats cannot be computed so the dashboard still renders
FALLBACK_STATS: Dict[str, Any] = {
    "totalSales": 0,
    "totalOrders": 0,
    "totalInventory": 0,
    "totalStaff": 0,
    "totalCategories": 0,
    "statusCounts": {s.value: 0 for s in OrderStatus},
    "daily": {
        "dates": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
        "revenue": [0] * DAYS,
        "customers": [0] * DAYS,
    },
    "inventory": [],
    "orders": [],
    "fallback": True,
}

def compute_stats(db: Session, tenant: str) -> Dict[str, Any]:
    """Owner dashboard numbers for one restaurant"""
    order_store.require_restaurant(db, tenant)

    foods = db.query(Food).filter(Food.restaurant_id == tenant).order_by(Food.name).all()
    staff_count = db.query(Staff).filter(Staff.restaurant_id == tenant, Staff.is_active.is_(True)).count()
    orders = [OrderOut.model_validate(o) for o in order_store.list_orders(db, tenant)]

    status_counts = {s.value: 0 for s in OrderStatus}
    for order in orders:
        status_counts[order.status.value] += 1

    categories = {f.category.strip() for f in foods if f.category and f.category.strip()}

    today = datetime.now(timezone.utc).date()
    days = [today - timedelta(days=offset) for offset in range(DAYS - 1, -1, -1)]
    revenue = {day: 0.0 for day in days}
    customers = {day: set() for day in days}
    for order in orders:
        if order.created_at is None:
            continue
        day = order.created_at.date()
        if day in revenue:
            revenue[day] += order.total
            customers[day].add(order.customer_phone or f"table-{order.table_no}")

    return {
        "totalSales": round(sum(o.total for o in orders), 2),
        "totalOrders": len(orders),
        "totalInventory": len(foods),
        "totalStaff": staff_count,
        "totalCategories": len(categories),
        "statusCounts": status_counts,
        "daily": {
            "dates": [day.strftime("%a") for day in days],
            "revenue": [round(revenue[day], 2) for day in days],
            "customers": [len(customers[day]) for day in days],
        },
        "inventory": [
            {"id": f.id, "name": f.name, "stock": f.stock or 0, "category": f.category or "General"}
            for f in foods[:10]
        ],
        "orders": [o.model_dump(by_alias=True, mode="json") for o in orders[:10]],
        "fallback": False,
    }

@router.get("/{tenant}/admin/stats")
def get_stats(tenant: str, session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    """Never fails the page: any error degrades to FALLBACK_STATS"""
    try:
        return compute_stats(db, tenant)
    except Exception:
        logger.exception("Stats failed for %s, serving fallback", tenant)
        return copy.deepcopy(FALLBACK_STATS)
