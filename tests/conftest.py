# tests/conftest.py
import os
from datetime import timedelta

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_DEFAULT_PASSWORD", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic import models
from clinic.database import Base, get_db
from clinic.main import app


PATIENT = {
    "username": "pat",
    "email": "pat@example.com",
    "password": "Passw0rd",
    "firstName": "Pat",
    "lastName": "Jones",
    "phone": "555-0101",
    "gender": "",
}

DOCTOR = {
    "username": "drsmith",
    "email": "doc@example.com",
    "password": "Passw0rd",
    "firstName": "John",
    "lastName": "Smith",
    "phone": "555-0100",
    "specialization": "Cardiology",
    "licenseNumber": "LIC-001",
    "qualification": "MD",
    "experience": 10,
    "department": "Cardiology",
    "availableDays": ["Monday", "Friday"],
}

ADMIN = {
    "username": "boss",
    "email": "admin@example.com",
    "password": "Passw0rd",
    "firstName": "Ada",
    "lastName": "Admin",
    "phone": "555-0102",
    "employeeId": "EMP-001",
    "department": "Operations",
    "position": "Clinic Manager",
}

STAFF = {
    "username": "nurse",
    "email": "staff@example.com",
    "password": "Passw0rd",
    "firstName": "Nina",
    "lastName": "Nurse",
    "phone": "555-0103",
    "employeeId": "EMP-100",
    "department": "Ward A",
    "position": "Nurse",
}


class FakeClock:
    """Settable clock for SessionStore; starts at the real current time."""

    def __init__(self):
        self.now = models.utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, path, payload, **overrides):
    body = {**payload, **overrides}
    response = client.post(path, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email, password, variant="patient"):
    return client.post("/api/login", json={"email": email, "password": password, "userType": variant})


def login_session(client, email, password, variant="patient"):
    response = login(client, email, password, variant)
    assert response.status_code == 200, response.text
    return response.json()["sessionId"]
