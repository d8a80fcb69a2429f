import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from tableside.core.errors import NotFound, ValidationError, ConcurrentModification
from tableside.models.food import Food
from tableside.models.order import Order, OrderStatus
from tableside.models.restaurant import Restaurant
from tableside.models.schemas import CheckoutRequest, OrderCreate, OrderUpdate
from tableside.utils.broadcast import OrderChange, OrderKey

logger = logging.getLogger(__name__)

# Fields an admin full-record edit may touch. total is not one of them.
EDITABLE_FIELDS = (
    "table_no", "title", "category", "price", "quantity",
    "customer_name", "customer_phone", "image_url", "description", "ingredients",
)


def order_key(order: Order) -> OrderKey:
    return OrderKey(OrderStatus(order.status).value, str(order.table_no))


def require_restaurant(db: Session, tenant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, tenant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return restaurant


def get_order(db: Session, tenant_id: str, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.restaurant_id == tenant_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


def list_orders(db: Session, tenant_id: str, status: Optional[str] = None,
                table_no: Optional[str] = None) -> List[Order]:
    """Orders of one tenant, newest first. Ties on created_at fall back to id."""
    query = db.query(Order).filter(Order.restaurant_id == tenant_id)
    if status is not None:
        try:
            query = query.filter(Order.status == OrderStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown order status '{status}'")
    if table_no is not None:
        query = query.filter(Order.table_no == str(table_no))
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def create_order(db: Session, tenant_id: str, data: OrderCreate) -> Tuple[Order, OrderChange]:
    require_restaurant(db, tenant_id)
    order = Order(
        restaurant_id=tenant_id,
        table_no=data.table_no,
        title=data.title,
        category=data.category,
        food_id=data.food_id,
        price=data.price,
        quantity=data.quantity,
        total=data.price * data.quantity,
        status=OrderStatus.PENDING,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        image_url=data.image_url,
        description=data.description,
        ingredients=data.ingredients,
    )
    db.add(order)
    db.commit()
    db.refresh(order)  # created_at comes from the database clock
    logger.info("Order %s created for %s table %s", order.id, tenant_id, order.table_no)
    return order, OrderChange(tenant_id, order.id, after=order_key(order))


def checkout(db: Session, tenant_id: str, table_no: str,
             request: CheckoutRequest) -> Tuple[List[Order], List[OrderChange]]:
    """Turn a customer cart into orders, one per distinct food."""
    require_restaurant(db, tenant_id)
    if not request.items:
        raise ValidationError("Cart is empty")

    quantities: Dict[int, int] = {}
    for line in request.items:
        quantities[line.food_id] = quantities.get(line.food_id, 0) + line.quantity

    orders = []
    for food_id, quantity in quantities.items():
        food = db.query(Food).filter(Food.id == food_id, Food.restaurant_id == tenant_id).first()
        if not food or not food.is_available:
            raise NotFound(f"Menu item not found or unavailable: {food_id}")
        orders.append(Order(
            restaurant_id=tenant_id,
            table_no=str(table_no),
            title=food.name,
            category=food.category or "",
            food_id=food.id,
            price=food.price,
            quantity=quantity,
            total=food.price * quantity,
            status=OrderStatus.PENDING,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            image_url=food.image or "",
            description=food.description or "",
            ingredients=food.ingredients or "",
        ))

    db.add_all(orders)
    db.commit()
    for order in orders:
        db.refresh(order)
    logger.info("Checkout for %s table %s: %d orders", tenant_id, table_no, len(orders))
    return orders, [OrderChange(tenant_id, o.id, after=order_key(o)) for o in orders]


def update_order(db: Session, tenant_id: str, order_id: int, changes: OrderUpdate) -> Tuple[Order, OrderChange]:
    """Admin full-record edit. A status change still has to be a legal transition."""
    from tableside.services.transitions import check_transition, parse_status

    order = get_order(db, tenant_id, order_id)
    if changes.version is not None and changes.version != order.version:
        raise ConcurrentModification("Order was changed by someone else, reload and try again")
    before = order_key(order)

    fields = changes.model_dump(exclude_unset=True, include=set(EDITABLE_FIELDS))
    for name, value in fields.items():
        if value is not None:
            setattr(order, name, value)

    if changes.status is not None:
        requested = parse_status(changes.status)
        if requested != order.status:
            check_transition(order.status, requested)
            order.status = requested

    order.version = (order.version or 1) + 1
    db.commit()
    db.refresh(order)
    return order, OrderChange(tenant_id, order.id, before=before, after=order_key(order))
