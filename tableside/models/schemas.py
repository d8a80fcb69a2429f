from pydantic import BaseModel, Field, BeforeValidator
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Literal, Optional
from datetime import datetime
from tableside.models.order import OrderStatus


def _blank(value):
    return "" if value is None else value


def _as_str(value):
    # table numbers arrive as ints from QR links and as strings from forms
    return str(value) if isinstance(value, int) else value


# Read-side string that was never set in the store
BlankStr = Annotated[str, BeforeValidator(_blank)]
TableNo = Annotated[str, BeforeValidator(_as_str)]


class CamelModel(BaseModel):
    """Wire shapes are camelCase; python attributes stay snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def to_wire(schema, obj) -> dict:
    """ORM row or model -> JSON-ready camelCase dict."""
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


# ---------- orders ----------

class OrderOut(CamelModel):
    """Normalized order record. Optional display fields are filled once here."""
    id: int
    table_no: TableNo
    title: str
    category: BlankStr = ""
    food_id: Optional[int] = None
    price: float
    quantity: int
    total: float
    status: OrderStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: Annotated[int, BeforeValidator(lambda v: 1 if v is None else v)] = 1
    customer_name: BlankStr = ""
    customer_phone: BlankStr = ""
    image_url: BlankStr = ""
    description: BlankStr = ""
    ingredients: BlankStr = ""


class OrderCreate(CamelModel):
    table_no: TableNo = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    category: str = ""
    food_id: Optional[int] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    customer_name: str = ""
    customer_phone: str = ""
    image_url: str = ""
    description: str = ""
    ingredients: str = ""


class OrderUpdate(CamelModel):
    table_no: Optional[TableNo] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[str] = None
    status: Optional[str] = None
    version: Optional[int] = None


class OrderStatusUpdate(CamelModel):
    status: str
    version: Optional[int] = None


class CheckoutLine(CamelModel):
    food_id: int
    quantity: int = Field(1, ge=1)


class CheckoutRequest(CamelModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    items: List[CheckoutLine] = []


# ---------- menu ----------

class FoodCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    image: str = ""
    ingredients: str = ""
    stock: int = Field(0, ge=0)
    is_available: bool = True


class FoodUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    ingredients: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None


class FoodOut(CamelModel):
    id: int
    name: str
    description: BlankStr = ""
    price: float
    category: str
    image: BlankStr = ""
    ingredients: BlankStr = ""
    stock: Annotated[int, BeforeValidator(lambda v: 0 if v is None else v)] = 0
    is_available: bool = True


# ---------- staff ----------

class StaffOut(CamelModel):
    id: int
    restaurant_id: str
    full_name: str
    mobile: str
    designation: BlankStr = ""
    address: BlankStr = ""
    aadhaar: BlankStr = ""
    image_url: BlankStr = ""
    is_active: bool = True


class StaffUpdate(CamelModel):
    full_name: Optional[str] = Field(None, min_length=1)
    mobile: Optional[str] = Field(None, min_length=1)
    designation: Optional[str] = None
    address: Optional[str] = None
    aadhaar: Optional[str] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=1)


class StaffLogin(BaseModel):
    mobile: Optional[str] = None
    password: Optional[str] = None


class AdminLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# ---------- tables ----------

class TableCreate(CamelModel):
    number: int = Field(..., ge=1)
    capacity: int = Field(4, ge=1)
    location: str = ""
    is_active: bool = True


class TableUpdate(CamelModel):
    number: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1)
    location: Optional[str] = None
    is_active: Optional[bool] = None
    is_occupied: Optional[bool] = None


class TableOut(CamelModel):
    id: int
    number: int
    capacity: int
    location: BlankStr = ""
    is_occupied: bool = False
    is_active: bool = True
    qr_code: str


class TableLogin(CamelModel):
    table_number: int = Field(..., ge=1)


# ---------- restaurants ----------

class RestaurantCreate(CamelModel):
    id: str = Field(..., min_length=2, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(..., min_length=1)
    address: str = ""
    phone: str = ""
    email: str = ""
    description: str = ""
    currency: str = "INR"
    timezone: str = "Asia/Kolkata"
    admin_email: str = Field(..., min_length=3)
    admin_password: str = Field(..., min_length=6)
    admin_name: str = ""


class RestaurantOut(CamelModel):
    id: str
    name: str
    address: BlankStr = ""
    phone: BlankStr = ""
    email: BlankStr = ""
    description: BlankStr = ""
    currency: str = "INR"
    timezone: str = "Asia/Kolkata"
    is_active: bool = True
    is_blocked: bool = False
    blocked_at: Optional[datetime] = None
    blocked_reason: Optional[str] = None


class BlockRequest(CamelModel):
    reason: Optional[str] = None


# ---------- notifications ----------

NotificationType = Literal["subscription_expiry", "plan_expired", "payment_reminder", "general", "admin_message"]
Priority = Literal["low", "normal", "medium", "high", "urgent"]


class NotificationCreate(CamelModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = "admin_message"
    priority: Priority = "normal"
    action_url: str = ""


class BulkNotificationCreate(NotificationCreate):
    # empty means every restaurant
    restaurant_ids: List[str] = []


class NotificationOut(CamelModel):
    id: int
    restaurant_id: str
    type: str
    title: str
    message: str
    priority: str
    sender: BlankStr = ""
    action_url: BlankStr = ""
    is_read: bool = False
    created_at: Optional[datetime] = None
