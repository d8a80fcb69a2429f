from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from tableside.api.deps import admin_only
from tableside.core.database import get_db
from tableside.models.schemas import NotificationOut, to_wire
from tableside.services import notifications
from tableside.services.sessions import SessionContext

router = APIRouter()


@router.get("/{tenant}/admin/notifications")
def list_notifications(tenant: str, session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    """Admin inbox, newest first"""
    items = notifications.list_notifications(db, tenant)
    return {
        "notifications": [to_wire(NotificationOut, n) for n in items],
        "unread": sum(1 for n in items if not n.is_read),
    }

@router.post("/{tenant}/admin/notifications/{notification_id}/read")
def mark_notification_read(tenant: str, notification_id: int, session: SessionContext = Depends(admin_only),
                           db: Session = Depends(get_db)):
    notification = notifications.mark_read(db, tenant, notification_id)
    return {"success": True, "notification": to_wire(NotificationOut, notification)}

@router.delete("/{tenant}/admin/notifications/{notification_id}")
def delete_notification(tenant: str, notification_id: int, session: SessionContext = Depends(admin_only),
                        db: Session = Depends(get_db)):
    notifications.delete_notification(db, tenant, notification_id)
    return {"success": True, "message": "Notification deleted"}
