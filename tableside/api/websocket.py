from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Optional
from tableside.core.database import SessionLocal
from tableside.core.errors import TablesideError
from tableside.models.order import OrderStatus
from tableside.models.restaurant import Restaurant
from tableside.services.sessions import (
    ROLE_ADMIN, ROLE_KITCHEN, TABLE_COOKIE, SessionContext, read_table_cookie, validate_session,
)
from tableside.services.table_view import resolve_table_view
from tableside.utils.broadcast import OrderFilter, order_feed
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSE_UNAUTHORIZED = 4401
CLOSE_FORBIDDEN = 4403
CLOSE_BAD_FILTER = 4400


def _check_token(token: Optional[str], tenant: str, *roles: str) -> Optional[SessionContext]:
    db = SessionLocal()
    try:
        session = validate_session(db, token)
    except TablesideError:
        return None
    finally:
        db.close()
    if session.role not in roles or session.tenant_id != tenant:
        return None
    return session

def _tenant_open(tenant: str) -> bool:
    db = SessionLocal()
    try:
        restaurant = db.get(Restaurant, tenant)
    finally:
        db.close()
    return restaurant is not None and not restaurant.is_blocked

async def _stream(websocket: WebSocket, order_filter: OrderFilter, push) -> None:
    """Hold one live subscription for the lifetime of the socket"""

    async def close():
        # tenant blocked: drop the viewer, nothing further is sent
        await websocket.close(code=CLOSE_FORBIDDEN)

    subscription = await order_feed.subscribe(order_filter, push, on_close=close)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()

@router.websocket("/ws/{tenant}/tables/{table_no}")
async def websocket_table(websocket: WebSocket, tenant: str, table_no: str):
    """Customer order-status page: the resolved table view on every change"""
    if read_table_cookie(websocket.cookies.get(TABLE_COOKIE), tenant) != table_no:
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return
    if not _tenant_open(tenant):
        await websocket.close(code=CLOSE_FORBIDDEN)
        return
    await websocket.accept()

    async def push(snapshot):
        view = resolve_table_view(snapshot, table_no=table_no)
        await websocket.send_json({"event": "table_view", "data": view.model_dump(by_alias=True, mode="json")})

    await _stream(websocket, OrderFilter(tenant, table_no=table_no), push)

@router.websocket("/ws/{tenant}/kitchen")
async def websocket_kitchen(websocket: WebSocket, tenant: str, token: Optional[str] = None,
                            status: Optional[str] = None):
    if _check_token(token, tenant, ROLE_KITCHEN, ROLE_ADMIN) is None:
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return
    if status is not None and status not in {s.value for s in OrderStatus}:
        await websocket.close(code=CLOSE_BAD_FILTER)
        return
    await websocket.accept()
    await _stream(websocket, OrderFilter(tenant, status=status), _order_pusher(websocket))

@router.websocket("/ws/{tenant}/orders")
async def websocket_admin(websocket: WebSocket, tenant: str, token: Optional[str] = None):
    if _check_token(token, tenant, ROLE_ADMIN) is None:
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return
    await websocket.accept()
    await _stream(websocket, OrderFilter(tenant), _order_pusher(websocket))

def _order_pusher(websocket: WebSocket):
    async def push(snapshot):
        await websocket.send_json({
            "event": "orders",
            "data": [o.model_dump(by_alias=True, mode="json") for o in snapshot],
        })
    return push
