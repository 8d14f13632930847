import os
import tempfile

# Settings are read at import time: point everything at a scratch directory first
_TMP_DIR = tempfile.mkdtemp(prefix="hotel_api_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = _TMP_DIR
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

import security
from api.main import app
from database import Base, Room, RoomType, Service, SessionLocal, User, engine
from schemas import CurrentUser

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    SessionLocal.remove()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        SessionLocal.remove()


@pytest.fixture
def client():
    return TestClient(app)


def make_user(db, username, role="customer", password=PASSWORD):
    user = User(
        username=username,
        email=f"{username}@mail.com",
        password=security.hash_password(password),
        full_name=username.title(),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def as_principal(user):
    return CurrentUser(id=user.id, role=user.role)


@pytest.fixture
def admin(db):
    return make_user(db, "admin", role="admin")


@pytest.fixture
def customer(db):
    return make_user(db, "alice")


@pytest.fixture
def other_customer(db):
    return make_user(db, "bob")


@pytest.fixture
def room_type(db):
    rt = RoomType(name="Standard", description="Queen bed", base_price=100.0, max_occupancy=2, amenities="WiFi, TV")
    db.add(rt)
    db.commit()
    return rt


@pytest.fixture
def room(db, room_type):
    r = Room(room_number="101", room_type_id=room_type.id, status="available", floor=1)
    db.add(r)
    db.commit()
    return r


@pytest.fixture
def second_room(db, room_type):
    r = Room(room_number="102", room_type_id=room_type.id, status="available", floor=1)
    db.add(r)
    db.commit()
    return r


@pytest.fixture
def service(db):
    s = Service(name="Breakfast", description="Continental breakfast", price=25.0, category="food", is_active=True)
    db.add(s)
    db.commit()
    return s


def login(client, user, password=PASSWORD):
    response = client.post("/api/v1/login", json={"email": user.email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client, admin):
    return login(client, admin)


@pytest.fixture
def customer_headers(client, customer):
    return login(client, customer)


@pytest.fixture
def other_headers(client, other_customer):
    return login(client, other_customer)
