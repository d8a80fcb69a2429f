"""Customer ordering path: QR table login, menu, checkout and order status.

Everything under ``/{tenant}/customer/`` needs the signed table cookie. The
middleware in ``tableside.main`` redirects cookieless requests to the table
login; ``table_session`` re-reads the cookie to know which table is ordering.
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from tableside.api.deps import table_session
from tableside.config import settings
from tableside.core.database import get_db
from tableside.core.errors import NotFound, Forbidden
from tableside.models.food import Food
from tableside.models.schemas import CheckoutRequest, FoodOut, OrderOut, TableLogin, to_wire
from tableside.models.table import Table
from tableside.services import order_store
from tableside.services.sessions import TABLE_COOKIE, issue_table_cookie
from tableside.services.table_view import load_table_view
from tableside.utils.broadcast import broadcast_order_change

router = APIRouter()


@router.get("/{tenant}/table-login")
def table_login_page(tenant: str):
    return {"message": "Scan the table QR code to start ordering", "tenant": tenant}

@router.post("/{tenant}/table-login")
def table_login(tenant: str, body: TableLogin, response: Response, db: Session = Depends(get_db)):
    restaurant = order_store.require_restaurant(db, tenant)
    if restaurant.is_blocked:
        raise Forbidden("Restaurant is not taking orders right now")
    table = db.query(Table).filter(Table.restaurant_id == tenant, Table.number == body.table_number).first()
    if not table or not table.is_active:
        raise NotFound("Table not found")

    response.set_cookie(
        TABLE_COOKIE,
        issue_table_cookie(tenant, table.number),
        max_age=settings.table_session_max_age,
        httponly=True,
        samesite="lax",
    )
    return {"ok": True, "tableNo": str(table.number), "restaurantId": tenant}

@router.get("/{tenant}/customer/menu")
def customer_menu(tenant: str, table_no: str = Depends(table_session), db: Session = Depends(get_db)):
    foods = db.query(Food).filter(
        Food.restaurant_id == tenant,
        Food.is_available.is_(True),
    ).order_by(Food.category, Food.name).all()
    return {"tableNo": table_no, "foods": [to_wire(FoodOut, f) for f in foods]}

@router.post("/{tenant}/customer/checkout")
async def customer_checkout(tenant: str, request: CheckoutRequest, table_no: str = Depends(table_session),
                            db: Session = Depends(get_db)):
    """Place the cart. Payment is not collected here."""
    orders, changes = order_store.checkout(db, tenant, table_no, request)
    for change in changes:
        await broadcast_order_change(change)
    return {
        "success": True,
        "tableNo": table_no,
        "orders": [to_wire(OrderOut, o) for o in orders],
        "totalAmount": sum(o.total for o in orders),
    }

@router.get("/{tenant}/customer/order-status")
def customer_order_status(tenant: str, table_no: str = Depends(table_session), db: Session = Depends(get_db)):
    view = load_table_view(db, tenant, table_no)
    return view.model_dump(by_alias=True, mode="json")
