import logging
from typing import List
from sqlalchemy.orm import Session
from tableside.core.errors import NotFound, ValidationError
from tableside.models.notification import Notification
from tableside.models.restaurant import Restaurant
from tableside.models.schemas import BulkNotificationCreate, NotificationCreate

logger = logging.getLogger(__name__)

SENDER = "Super Admin"


def _build(tenant_id: str, data: NotificationCreate) -> Notification:
    return Notification(
        restaurant_id=tenant_id,
        type=data.type,
        title=data.title.strip(),
        message=data.message.strip(),
        priority=data.priority,
        sender=SENDER,
        action_url=data.action_url,
        is_read=False,
    )


def send_notification(db: Session, tenant_id: str, data: NotificationCreate) -> Notification:
    if db.get(Restaurant, tenant_id) is None:
        raise NotFound("Restaurant not found")
    notification = _build(tenant_id, data)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info("Notification %s sent to %s", notification.id, tenant_id)
    return notification


def send_bulk(db: Session, data: BulkNotificationCreate) -> List[Notification]:
    """One notification per restaurant; every restaurant when no ids are given."""
    query = db.query(Restaurant)
    if data.restaurant_ids:
        query = query.filter(Restaurant.id.in_(data.restaurant_ids))
    restaurants = query.order_by(Restaurant.id).all()
    missing = set(data.restaurant_ids) - {r.id for r in restaurants}
    if missing:
        raise NotFound(f"Restaurant not found: {', '.join(sorted(missing))}")
    if not restaurants:
        raise ValidationError("No restaurants to notify")

    notifications = [_build(r.id, data) for r in restaurants]
    db.add_all(notifications)
    db.commit()
    for notification in notifications:
        db.refresh(notification)
    logger.info("Bulk notification '%s' sent to %d restaurants", data.title, len(notifications))
    return notifications


def list_notifications(db: Session, tenant_id: str) -> List[Notification]:
    return db.query(Notification).filter(Notification.restaurant_id == tenant_id) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def _get(db: Session, tenant_id: str, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.restaurant_id == tenant_id,
    ).first()
    if not notification:
        raise NotFound("Notification not found")
    return notification


def mark_read(db: Session, tenant_id: str, notification_id: int) -> Notification:
    notification = _get(db, tenant_id, notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def delete_notification(db: Session, tenant_id: str, notification_id: int) -> None:
    db.delete(_get(db, tenant_id, notification_id))
    db.commit()
