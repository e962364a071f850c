import os
import tempfile

# Settings and the engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SESSION_SECRET", "test-secret")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="fleet-uploads-")
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "1000"

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
from main import app, DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from middleware.security import rate_limiter
from routers.kyc import get_submission_service
from services.kyc_workflow import KycSubmissionService
from services.object_storage import LocalObjectStorage

@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield
    app.dependency_overrides.clear()

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(root=str(tmp_path / "objects"), public_prefix="/uploads")

@pytest.fixture
def client(storage):
    app.dependency_overrides[get_submission_service] = lambda: KycSubmissionService(storage)
    with TestClient(app) as test_client:
        yield test_client

def signup(client, email="operator@example.com", password="secret123", full_name="Asha Rao"):
    return client.post("/api/auth/signup", json={"fullName": full_name, "email": email, "password": password})

def signin(client, email="operator@example.com", password="secret123"):
    return client.post("/api/auth/signin", json={"email": email, "password": password})

def auth_headers(client, email="operator@example.com", password="secret123"):
    signup(client, email=email, password=password)
    token = signin(client, email, password).json()["token"]
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def operator_headers(client):
    return auth_headers(client)

@pytest.fixture
def other_operator_headers(client):
    return auth_headers(client, email="second@example.com")

@pytest.fixture
def admin_headers(client):
    return auth_headers(client, email=DEFAULT_ADMIN_EMAIL, password=DEFAULT_ADMIN_PASSWORD)

def make_order(order_id="ORD-1", **overrides):
    order = {
        "order_id": order_id,
        "user_name": "Ravi Kumar",
        "user_phone": "9876543210",
        "company_name": "Acme Logistics",
        "booking_status": "confirmed",
        "order_status": "pending",
        "vehicle_type": "Truck",
        "material": "Cement",
        "destination_address": "Pune, Maharashtra",
    }
    order.update(overrides)
    return order
