import os

import bcrypt

SUPER_ADMIN_EMAIL = "root@tableside.test"
SUPER_ADMIN_PASSWORD = "root-secret"

# Settings are read at import time, so the environment has to be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["REDIS_FANOUT"] = "false"
os.environ["SUPER_ADMIN_EMAIL"] = SUPER_ADMIN_EMAIL
os.environ["SUPER_ADMIN_PASSWORD_HASH"] = bcrypt.hashpw(
    SUPER_ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)
).decode("utf-8")

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tableside.core import redis_client as redis_module  # noqa: E402
from tableside.core.database import Base, SessionLocal, engine  # noqa: E402
from tableside.core.security import hash_password  # noqa: E402
from tableside.main import app  # noqa: E402
from tableside.models import Admin, Food, Restaurant, Staff, Table  # noqa: E402
from tableside.utils.broadcast import order_feed  # noqa: E402

TENANT = "spice-garden"
OTHER_TENANT = "blue-lagoon"
ADMIN_EMAIL = "owner@spice.test"
ADMIN_PASSWORD = "owner-pass"
STAFF_MOBILE = "9876543210"
STAFF_PASSWORD = "chef-pass"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    order_feed._subscriptions.clear()
    monkeypatch.setattr(redis_module, "redis_client", fakeredis.FakeRedis(decode_responses=True))
    yield
    order_feed._subscriptions.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def seed_restaurant(db, tenant=TENANT, admin_email=ADMIN_EMAIL):
    restaurant = Restaurant(id=tenant, name=tenant.replace("-", " ").title())
    db.add(restaurant)
    db.flush()
    db.add(Admin(restaurant_id=tenant, email=admin_email, name="Owner",
                 password_hash=hash_password(ADMIN_PASSWORD)))
    db.add(Staff(restaurant_id=tenant, full_name="Ravi Kumar", mobile=STAFF_MOBILE,
                 password_hash=hash_password(STAFF_PASSWORD), designation="Chef"))
    db.add_all([
        Food(restaurant_id=tenant, name="Paneer Tikka", price=220, category="Starters", stock=12),
        Food(restaurant_id=tenant, name="Dal Makhani", price=180, category="Mains", stock=20),
        Food(restaurant_id=tenant, name="Gulab Jamun", price=90, category="Desserts", is_available=False),
    ])
    db.add_all([
        Table(restaurant_id=tenant, number=1),
        Table(restaurant_id=tenant, number=2),
        Table(restaurant_id=tenant, number=9, is_active=False),
    ])
    db.commit()
    return restaurant


@pytest.fixture
def restaurant(db):
    return seed_restaurant(db)


@pytest.fixture
def other_restaurant(db):
    return seed_restaurant(db, tenant=OTHER_TENANT, admin_email="owner@lagoon.test")


@pytest.fixture
def foods(db, restaurant):
    return {f.name: f for f in db.query(Food).filter(Food.restaurant_id == TENANT).all()}


def login_admin(client, tenant=TENANT, email=ADMIN_EMAIL):
    response = client.post(f"/{tenant}/api/admin/login", json={"email": email, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def login_staff(client, tenant=TENANT):
    response = client.post(f"/{tenant}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": STAFF_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client, restaurant):
    return auth(login_admin(client))


@pytest.fixture
def staff_headers(client, restaurant):
    return auth(login_staff(client))


@pytest.fixture
def table_client(client, restaurant):
    """Client holding the table cookie for table 1."""
    response = client.post(f"/{TENANT}/table-login", json={"tableNumber": 1})
    assert response.status_code == 200, response.text
    return client
