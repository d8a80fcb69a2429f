from typing import Optional
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session
from tableside.core.database import get_db
from tableside.core.errors import Forbidden, NotFound, TablesideError, Unauthorized
from tableside.models.restaurant import Restaurant
from tableside.services.sessions import (
    ROLE_ADMIN, ROLE_KITCHEN, ROLE_SUPER_ADMIN, TABLE_COOKIE,
    SessionContext, read_table_cookie, validate_session,
)


def bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else None


def require_roles(*roles: str):
    """Dependency that validates the bearer session for the tenant in the path."""

    def dependency(tenant: str, authorization: Optional[str] = Header(None),
                   db: Session = Depends(get_db)) -> SessionContext:
        landing = f"/{tenant}/staff-login" if ROLE_KITCHEN in roles else f"/{tenant}/admin/login"
        try:
            session = validate_session(db, bearer(authorization))
        except TablesideError as e:
            e.redirect = landing
            raise
        if session.role not in roles or session.tenant_id != tenant:
            raise Forbidden("You do not have access to this page", redirect=landing)
        return session

    return dependency


admin_only = require_roles(ROLE_ADMIN)
kitchen_only = require_roles(ROLE_KITCHEN)
staff_or_admin = require_roles(ROLE_ADMIN, ROLE_KITCHEN)


def super_admin_only(authorization: Optional[str] = Header(None),
                     db: Session = Depends(get_db)) -> SessionContext:
    try:
        session = validate_session(db, bearer(authorization))
    except TablesideError as e:
        e.redirect = "/super-admin/login"
        raise
    if session.role != ROLE_SUPER_ADMIN:
        raise Forbidden("Super admin only", redirect="/super-admin/login")
    return session


def table_session(tenant: str, request: Request, db: Session = Depends(get_db)) -> str:
    """Table number granted by the customer's table cookie, for a restaurant still taking orders."""
    table_no = read_table_cookie(request.cookies.get(TABLE_COOKIE), tenant)
    if table_no is None:
        raise Unauthorized("Scan the table QR code to start ordering", redirect=f"/{tenant}/table-login")
    restaurant = db.get(Restaurant, tenant)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    if restaurant.is_blocked:
        raise Forbidden("Restaurant is not taking orders right now")
    return table_no
