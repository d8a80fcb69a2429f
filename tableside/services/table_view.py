"""What a customer sees for their table.

Every food line is its own order record, but the customer page shows one
logical ticket: all not-yet-served orders of the table together, with the
status of the newest one as the table's progress.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from tableside.models.order import OrderStatus
from tableside.models.schemas import CamelModel, OrderOut
from tableside.services.order_store import list_orders

# served and completed orders are resolved from the customer's point of view
ACTIVE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.COOKING})

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class TableViewItem(OrderOut):
    inactive: bool = False


class TableView(CamelModel):
    table_no: Optional[str] = None
    found: bool = False
    status: Optional[OrderStatus] = None
    order_id: Optional[int] = None
    order_time: Optional[datetime] = None
    total_amount: float = 0.0
    items: List[TableViewItem] = []
    orders: List[TableViewItem] = []


def _created(order: OrderOut) -> datetime:
    if order.created_at is None:
        return _EPOCH
    if order.created_at.tzinfo is None:
        return order.created_at.replace(tzinfo=timezone.utc)
    return order.created_at


def newest_first(orders: Iterable[OrderOut]) -> List[OrderOut]:
    # id breaks created_at ties so two refreshes never disagree on order
    return sorted(orders, key=lambda o: (_created(o), o.id), reverse=True)


def resolve_table_view(orders: Iterable[OrderOut], table_no: Optional[str] = None) -> TableView:
    ordered = newest_first(orders)
    if not ordered:
        return TableView(table_no=table_no)

    latest_any = ordered[0]
    annotated = [
        TableViewItem(
            **o.model_dump(),
            inactive=o.status == OrderStatus.SERVED and o.id != latest_any.id,
        )
        for o in ordered
    ]
    active = [o for o in annotated if o.status in ACTIVE_STATUSES]
    table_no = table_no if table_no is not None else latest_any.table_no

    if not active:
        return TableView(table_no=table_no, orders=annotated)

    head = active[0]
    return TableView(
        table_no=table_no,
        found=True,
        status=head.status,
        order_id=head.id,
        order_time=head.created_at,
        total_amount=sum(o.price * o.quantity for o in active),
        items=active,
        orders=annotated,
    )


def load_table_view(db: Session, tenant_id: str, table_no: str) -> TableView:
    orders = list_orders(db, tenant_id, table_no=str(table_no))
    return resolve_table_view([OrderOut.model_validate(o) for o in orders], table_no=str(table_no))
