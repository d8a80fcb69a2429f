"""Order status lifecycle: pending -> cooking -> served -> completed.

Only forward edges exist. ``pending -> served`` is the one allowed skip (the
kitchen may serve straight from the queue). Concurrent writers are resolved
last-write-wins unless the caller supplies the version it read, in which case
the write is conditional on that version.
"""
import logging
from typing import Dict, FrozenSet, Optional, Tuple, Union
from sqlalchemy import func
from sqlalchemy.orm import Session
from tableside.core.errors import ConcurrentModification, InvalidTransition, NotFound, ValidationError
from tableside.models.order import Order, OrderStatus
from tableside.services.order_store import get_order, order_key
from tableside.utils.broadcast import OrderChange

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.COOKING, OrderStatus.SERVED}),
    OrderStatus.COOKING: frozenset({OrderStatus.SERVED}),
    OrderStatus.SERVED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown order status '{value}'")


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if not can_transition(current, requested):
        raise InvalidTransition(OrderStatus(current).value, OrderStatus(requested).value)


def transition(db: Session, tenant_id: str, order_id: int, requested_status: Union[str, OrderStatus],
               expected_version: Optional[int] = None) -> Tuple[Order, OrderChange]:
    requested = parse_status(requested_status)
    order = get_order(db, tenant_id, order_id)
    check_transition(order.status, requested)
    before = order_key(order)

    query = db.query(Order).filter(Order.id == order.id, Order.restaurant_id == tenant_id)
    if expected_version is not None:
        query = query.filter(Order.version == expected_version)
    updated = query.update(
        {Order.status: requested, Order.version: Order.version + 1, Order.updated_at: func.now()},
        synchronize_session=False,
    )
    if not updated:
        db.rollback()
        if expected_version is not None:
            raise ConcurrentModification("Order was changed by someone else, reload and try again")
        raise NotFound("Order not found")
    db.commit()
    db.refresh(order)

    logger.info("Order %s (%s): %s -> %s", order.id, tenant_id, before.status, requested.value)
    return order, OrderChange(tenant_id, order.id, before=before, after=order_key(order))


def remove(db: Session, tenant_id: str, order_id: int) -> Tuple[bool, Optional[OrderChange]]:
    """Delete an order. Removing an order that is already gone is a no-op."""
    order = db.query(Order).filter(Order.id == order_id, Order.restaurant_id == tenant_id).first()
    if order is None:
        logger.info("Order %s (%s) already removed", order_id, tenant_id)
        return False, None
    before = order_key(order)
    db.delete(order)
    db.commit()
    logger.info("Order %s (%s) removed", order_id, tenant_id)
    return True, OrderChange(tenant_id, order_id, before=before)
