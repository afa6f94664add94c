import os
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from garage_api.core.rate_limiter import rate_limiter
from garage_api.db.base import Base
from garage_api.db.models import Garage, RepairBay, Reservation, Service, User  # noqa: F401
from garage_api.db.session import get_db
from garage_api.main import app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "StrongPass123"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def auth_headers(client):
    """Register a user with the given role and return its bearer headers."""

    def _auth_headers(email: str, role: str = "user") -> dict[str, str]:
        register = client.post("/auth/register", json={"email": email, "password": PASSWORD, "role": role})
        assert register.status_code == 201, register.text
        login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _auth_headers


@pytest.fixture()
def future_day() -> str:
    return (datetime.now(UTC).date() + timedelta(days=10)).isoformat()


@pytest.fixture()
def garage_factory(client):
    def _create_garage(headers: dict[str, str], number_of_bays: int = 2, **overrides) -> dict:
        payload = {
            "name": "Central Garage",
            "address": "1 Main Street",
            "phone": "+33100000000",
            "opening_time": "08:00",
            "closing_time": "18:00",
            "number_of_bays": number_of_bays,
        }
        payload.update(overrides)
        response = client.post("/garages", headers=headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_garage


@pytest.fixture()
def reserve(client, future_day):
    def _reserve(headers: dict[str, str], garage_id: int, start_time: str, end_time: str, **extra) -> dict:
        payload = {"garage_id": garage_id, "date": future_day, "start_time": start_time, "end_time": end_time}
        payload.update(extra)
        response = client.post("/reservations", headers=headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _reserve
