import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldvisit.core.deps import get_db
from fieldvisit.crud.profile import create_profile
from fieldvisit.db.base import Base
from fieldvisit.db.session import init_db
from fieldvisit.main import app
from fieldvisit.schemas.enums import UserRole
from fieldvisit.services.identity import IdentityService
from fieldvisit.utils.rate_limiter import reset_limits

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MANAGER_PHONE = "9999999999"
AGENT_PHONE = "9876543210"
PASSWORD = "secret123"
LOAN_NUMBER = "123456789012345678901"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema and rate-limit counters for every test."""
    init_db(bind=engine)
    reset_limits()
    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


class Account:
    def __init__(self, id, name, phone, password, role):
        self.id = id
        self.name = name
        self.phone = phone
        self.password = password
        self.role = role
        self.access_token = None
        self.refresh_token = None

    @property
    def headers(self):
        return {"Authorization": f"Bearer {self.access_token}"}


@pytest.fixture
def make_account(db, client):
    """Create identity + profile directly, then log in through the API."""
    def _make(name, phone, role, password=PASSWORD, created_by=None, login=True):
        identity = IdentityService(db).create(phone, password)
        create_profile(db, profile_id=identity.id, name=name, phone=phone, role=role, created_by=created_by)
        account = Account(identity.id, name, phone, password, role)
        if login:
            response = client.post("/api/auth/login", json={"phone": phone, "password": password})
            assert response.status_code == 200, response.text
            account.access_token = response.json()["access_token"]
            account.refresh_token = response.json()["refresh_token"]
        return account
    return _make


@pytest.fixture
def manager(make_account):
    return make_account("Admin Manager", MANAGER_PHONE, UserRole.collection_manager)


@pytest.fixture
def agent(make_account):
    return make_account("Ravi Kumar", AGENT_PHONE, UserRole.field_agent)


@pytest.fixture
def visit_payload():
    return {
        "loan_number": LOAN_NUMBER,
        "person_visited": "Jane Roe",
        "status": "Received",
        "comments": "paid in full",
        "photo_urls": ["https://x/1.jpg"],
        "latitude": 12.97,
        "longitude": 77.59,
        "address": "MG Road",
    }
