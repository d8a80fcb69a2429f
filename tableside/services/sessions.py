"""Session tokens and the single validator that re-checks them.

Tokens are provisional: every request re-reads the backing records, so a
deactivated staff member or a blocked restaurant loses access on the very
next call, whatever the client still has cached.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from tableside.config import settings
from tableside.core.errors import Forbidden, NotFound, Unauthorized, ValidationError
from tableside.core.security import create_token, decode_token, verify_password
from tableside.models.restaurant import Admin, Restaurant
from tableside.models.staff import Staff

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_KITCHEN = "kitchen_staff"
ROLE_SUPER_ADMIN = "super_admin"

TABLE_COOKIE = "tableUser"


@dataclass
class SessionContext:
    role: str
    subject_id: str
    tenant_id: Optional[str] = None
    display_name: str = ""


def issue_token(role: str, subject_id, tenant_id: Optional[str] = None) -> str:
    return create_token({"sub": str(subject_id), "role": role, "tenant": tenant_id})


def validate_session(db: Session, token: Optional[str]) -> SessionContext:
    claims = decode_token(token) if token else None
    if not claims:
        raise Unauthorized("Session expired, please log in again")

    role, subject, tenant_id = claims.get("role"), claims.get("sub"), claims.get("tenant")
    if role == ROLE_SUPER_ADMIN:
        if subject != settings.super_admin_email:
            raise Unauthorized("Session expired, please log in again")
        return SessionContext(role, subject, None, "Super Admin")

    restaurant = db.get(Restaurant, tenant_id) if tenant_id else None
    if restaurant is None:
        raise Unauthorized("Restaurant no longer exists")
    if restaurant.is_blocked:
        raise Forbidden("Restaurant is blocked, contact support")

    try:
        subject_id = int(subject)
    except (TypeError, ValueError):
        raise Unauthorized("Session expired, please log in again")

    if role == ROLE_KITCHEN:
        staff = db.get(Staff, subject_id)
        if not staff or staff.restaurant_id != tenant_id or not staff.is_active:
            raise Unauthorized("Staff account is inactive")
        return SessionContext(role, subject, tenant_id, staff.full_name)
    if role == ROLE_ADMIN:
        admin = db.get(Admin, subject_id)
        if not admin or admin.restaurant_id != tenant_id or not admin.is_active:
            raise Unauthorized("Admin account is inactive")
        return SessionContext(role, subject, tenant_id, admin.name or admin.email)
    raise Unauthorized("Session expired, please log in again")


def _open_restaurant(db: Session, tenant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, tenant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    if restaurant.is_blocked:
        raise Forbidden("Restaurant is blocked, contact support")
    return restaurant


def authenticate_staff(db: Session, tenant_id: str, mobile: Optional[str],
                       password: Optional[str]) -> Tuple[Staff, str]:
    if not mobile or not password:
        raise ValidationError("Mobile & password required")
    _open_restaurant(db, tenant_id)

    staff = db.query(Staff).filter(
        Staff.restaurant_id == tenant_id,
        Staff.mobile == mobile.strip(),
        Staff.is_active.is_(True),
    ).first()
    if not staff:
        raise Unauthorized("Invalid mobile number or staff inactive")
    if not verify_password(password, staff.password_hash):
        logger.info("Bad password for staff %s at %s", staff.id, tenant_id)
        raise Unauthorized("Invalid password")
    return staff, issue_token(ROLE_KITCHEN, staff.id, tenant_id)


def authenticate_admin(db: Session, tenant_id: str, email: Optional[str],
                       password: Optional[str]) -> Tuple[Admin, str]:
    if not email or not password:
        raise ValidationError("Email & password required")
    _open_restaurant(db, tenant_id)

    admin = db.query(Admin).filter(
        Admin.restaurant_id == tenant_id,
        Admin.email == email.strip().lower(),
        Admin.is_active.is_(True),
    ).first()
    if not admin or not verify_password(password, admin.password_hash):
        raise Unauthorized("Invalid email or password")
    return admin, issue_token(ROLE_ADMIN, admin.id, tenant_id)


def authenticate_super_admin(email: Optional[str], password: Optional[str]) -> str:
    if not email or not password:
        raise ValidationError("Email & password required")
    if not settings.super_admin_password_hash:
        raise Unauthorized("Super admin login is not configured")
    if email.strip().lower() != settings.super_admin_email.lower() \
            or not verify_password(password, settings.super_admin_password_hash):
        raise Unauthorized("Invalid email or password")
    return issue_token(ROLE_SUPER_ADMIN, settings.super_admin_email)


def block_restaurant(db: Session, tenant_id: str, reason: Optional[str] = None) -> Restaurant:
    """Flag the tenant. Callers must also revoke its live subscriptions."""
    restaurant = db.get(Restaurant, tenant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    restaurant.is_blocked = True
    restaurant.blocked_at = datetime.now(timezone.utc)
    restaurant.blocked_reason = reason or "Blocked by Super Admin"
    db.commit()
    logger.warning("Restaurant %s blocked: %s", tenant_id, restaurant.blocked_reason)
    return restaurant


def unblock_restaurant(db: Session, tenant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, tenant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    restaurant.is_blocked = False
    restaurant.blocked_at = None
    restaurant.blocked_reason = None
    db.commit()
    logger.info("Restaurant %s unblocked", tenant_id)
    return restaurant


def issue_table_cookie(tenant_id: str, table_no) -> str:
    return create_token(
        {"kind": "table", "tenant": tenant_id, "table": str(table_no)},
        timedelta(seconds=settings.table_session_max_age),
    )


def read_table_cookie(value: Optional[str], tenant_id: str) -> Optional[str]:
    """Table number the cookie grants for this tenant, or None."""
    claims = decode_token(value) if value else None
    if not claims or claims.get("kind") != "table" or claims.get("tenant") != tenant_id:
        return None
    return claims.get("table")
