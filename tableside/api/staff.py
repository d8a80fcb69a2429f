import logging
import os
import uuid
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import Optional
from tableside.api.deps import admin_only, kitchen_only
from tableside.config import settings
from tableside.core.database import get_db
from tableside.core.errors import NotFound, ValidationError
from tableside.core.security import hash_password
from tableside.models.schemas import AdminLogin, StaffLogin, StaffOut, StaffUpdate, to_wire
from tableside.models.staff import Staff
from tableside.services import order_store
from tableside.services.sessions import SessionContext, authenticate_admin, authenticate_staff

logger = logging.getLogger(__name__)

router = APIRouter()

IMAGE_TYPES = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


def _staff_card(staff: Staff, tenant: str) -> dict:
    """What the kitchen client keeps as its local kitchen_staff marker."""
    return {
        "id": staff.id,
        "fullName": staff.full_name,
        "designation": staff.designation or "",
        "imageUrl": staff.image_url or "",
        "restaurantId": tenant,
    }

def _get_staff(db: Session, tenant: str, staff_id: int) -> Staff:
    staff = db.query(Staff).filter(Staff.id == staff_id, Staff.restaurant_id == tenant).first()
    if not staff:
        raise NotFound("Staff member not found")
    return staff

def _mobile_taken(db: Session, tenant: str, mobile: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Staff).filter(Staff.restaurant_id == tenant, Staff.mobile == mobile)
    if exclude_id is not None:
        query = query.filter(Staff.id != exclude_id)
    return query.first() is not None

async def _save_image(image: UploadFile) -> str:
    extension = IMAGE_TYPES.get(image.content_type or "")
    if extension is None:
        raise ValidationError("Image must be a JPEG, PNG or WebP file")
    folder = os.path.join(settings.media_dir, "staff")
    os.makedirs(folder, exist_ok=True)
    name = f"{uuid.uuid4().hex}{extension}"
    with open(os.path.join(folder, name), "wb") as f:
        f.write(await image.read())
    return f"/media/staff/{name}"


# ---------- logins ----------

@router.post("/{tenant}/api/staff/login")
def staff_login(tenant: str, body: StaffLogin, db: Session = Depends(get_db)):
    staff, token = authenticate_staff(db, tenant, body.mobile, body.password)
    logger.info("Staff %s logged in at %s", staff.id, tenant)
    return {"ok": True, "staff": _staff_card(staff, tenant), "token": token}

@router.post("/{tenant}/api/admin/login")
def admin_login(tenant: str, body: AdminLogin, db: Session = Depends(get_db)):
    admin, token = authenticate_admin(db, tenant, body.email, body.password)
    return {
        "ok": True,
        "admin": {"id": admin.id, "name": admin.name, "email": admin.email, "restaurantId": tenant},
        "token": token,
    }

@router.get("/{tenant}/kitchen/session")
def kitchen_session(tenant: str, session: SessionContext = Depends(kitchen_only), db: Session = Depends(get_db)):
    """Confirms the cached kitchen_staff marker against the store"""
    staff = _get_staff(db, tenant, int(session.subject_id))
    return {"ok": True, "role": session.role, "staff": _staff_card(staff, tenant)}


# ---------- admin staff management ----------

@router.get("/{tenant}/admin/staff")
def list_staff(tenant: str, session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    staff = db.query(Staff).filter(Staff.restaurant_id == tenant).order_by(Staff.full_name).all()
    return {"staff": [to_wire(StaffOut, s) for s in staff]}

@router.post("/{tenant}/admin/add-staff")
async def add_staff(
    tenant: str,
    full_name: str = Form("", alias="fullName"),
    mobile: str = Form(""),
    password: str = Form(""),
    address: str = Form(""),
    aadhaar: str = Form(""),
    designation: str = Form(""),
    image: Optional[UploadFile] = File(None),
    session: SessionContext = Depends(admin_only),
    db: Session = Depends(get_db),
):
    if not full_name.strip() or not mobile.strip() or not password.strip():
        raise ValidationError("fullName, mobile and password are required")
    order_store.require_restaurant(db, tenant)
    if _mobile_taken(db, tenant, mobile.strip()):
        raise ValidationError("Mobile number already registered")

    image_url = ""
    if image is not None and image.filename:
        image_url = await _save_image(image)

    staff = Staff(
        restaurant_id=tenant,
        full_name=full_name.strip(),
        mobile=mobile.strip(),
        password_hash=hash_password(password),
        address=address,
        aadhaar=aadhaar,
        designation=designation,
        image_url=image_url,
        is_active=True,
    )
    db.add(staff)
    db.commit()
    db.refresh(staff)
    logger.info("Staff %s added to %s", staff.id, tenant)
    return {"ok": True, "id": staff.id, "staff": to_wire(StaffOut, staff)}

@router.put("/{tenant}/admin/staff/{staff_id}")
def update_staff(tenant: str, staff_id: int, changes: StaffUpdate,
                 session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    staff = _get_staff(db, tenant, staff_id)
    data = changes.model_dump(exclude_unset=True)
    if data.get("mobile") and _mobile_taken(db, tenant, data["mobile"].strip(), exclude_id=staff.id):
        raise ValidationError("Mobile number already registered")

    password = data.pop("password", None)
    if password:
        staff.password_hash = hash_password(password)
    for name, value in data.items():
        if value is not None:
            setattr(staff, name, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(staff)
    return {"success": True, "staff": to_wire(StaffOut, staff), "message": "Staff member updated successfully"}

@router.delete("/{tenant}/admin/staff/{staff_id}")
def delete_staff(tenant: str, staff_id: int,
                 session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    """Deactivates the staff member; the record is kept"""
    staff = _get_staff(db, tenant, staff_id)
    staff.is_active = False
    db.commit()
    return {"success": True, "message": "Staff member deactivated successfully"}
