# tests/test_auth_api.py
import json
import logging
from datetime import timedelta

from fastapi import Depends
from sqlalchemy.orm import Session

from clinic import models, security
from clinic.database import get_db
from clinic.main import app
from clinic.services.session_store import SessionStore

from conftest import ADMIN, DOCTOR, PATIENT, STAFF, login, login_session, register


def test_patient_register_login_profile_logout_flow(client):
    created = register(client, "/api/register", PATIENT)
    assert created["user"]["role"] == "patient"
    assert "password" not in created["user"] and "passwordHash" not in created["user"]

    response = login(client, "pat@example.com", "Passw0rd", "patient")
    assert response.status_code == 200
    session_id = response.json()["sessionId"]
    assert session_id

    profile = client.get("/api/profile", headers={"Session-Id": session_id})
    assert profile.status_code == 200
    user = profile.json()["user"]
    assert user["firstName"] == "Pat"
    assert user["lastName"] == "Jones"
    assert user["role"] == "patient"

    logout = client.post("/api/logout", json={"sessionId": session_id})
    assert logout.status_code == 200

    again = client.get("/api/profile", headers={"Session-Id": session_id})
    assert again.status_code == 401
    assert again.json() == {"error": "Invalid or expired session"}


def test_unknown_email_and_wrong_password_look_the_same(client):
    register(client, "/api/register", PATIENT)

    unknown = login(client, "nobody@example.com", "Passw0rd")
    wrong = login(client, "pat@example.com", "not-the-password")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json() == {"error": "Invalid email or password"}


def test_login_email_is_case_insensitive(client):
    register(client, "/api/register", PATIENT)
    response = login(client, "  PAT@Example.COM ", "Passw0rd")
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "pat@example.com"


def test_login_looks_only_inside_requested_variant(client):
    register(client, "/api/register/doctor", DOCTOR)
    assert login(client, "doc@example.com", "Passw0rd", "patient").status_code == 401
    response = login(client, "doc@example.com", "Passw0rd", "doctor")
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "doctor"


def test_login_defaults_to_patient_and_accepts_variant_key(client):
    register(client, "/api/register", PATIENT)
    no_type = client.post("/api/login", json={"email": "pat@example.com", "password": "Passw0rd"})
    assert no_type.status_code == 200
    by_variant = client.post(
        "/api/login", json={"email": "pat@example.com", "password": "Passw0rd", "variant": "patient"}
    )
    assert by_variant.status_code == 200


def test_login_requires_email_and_password(client):
    response = client.post("/api/login", json={"email": "pat@example.com"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation Error"


def test_each_variant_can_register_and_log_in(client):
    assert register(client, "/api/register/doctor", DOCTOR)["doctor"]["specialization"] == "Cardiology"
    admin = register(client, "/api/register/admin", ADMIN)["admin"]
    assert admin["accessLevel"] == "admin"
    assert register(client, "/api/register/staff", STAFF)["staff"]["role"] == "staff"

    for email, variant in (("doc@example.com", "doctor"), ("admin@example.com", "admin"),
                           ("staff@example.com", "staff")):
        response = login(client, email, "Passw0rd", variant)
        assert response.status_code == 200, variant
        assert response.json()["user"]["role"] == variant


def test_duplicate_registration_names_the_field(client):
    register(client, "/api/register", PATIENT)

    same_email = client.post("/api/register", json={**PATIENT, "username": "other"})
    assert same_email.status_code == 400
    assert same_email.json() == {"error": "Email already registered", "field": "email"}

    same_username = client.post("/api/register", json={**PATIENT, "email": "other@example.com"})
    assert same_username.status_code == 400
    assert same_username.json()["field"] == "username"


def test_duplicate_license_number_rejected(client):
    register(client, "/api/register/doctor", DOCTOR)
    response = client.post(
        "/api/register/doctor",
        json={**DOCTOR, "username": "drjones", "email": "jones@example.com"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "License number already registered", "field": "license_number"}


def test_same_email_allowed_across_variants(client):
    register(client, "/api/register", PATIENT)
    register(client, "/api/register/doctor", DOCTOR, email="pat@example.com")


def test_registration_validation_errors(client):
    missing = client.post("/api/register", json={"email": "pat@example.com", "password": "Passw0rd"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Validation Error"
    assert any("username" in d for d in missing.json()["details"])

    bad_email = client.post("/api/register", json={**PATIENT, "email": "not-an-email"})
    assert bad_email.status_code == 400

    bad_experience = client.post("/api/register/doctor", json={**DOCTOR, "experience": "a lot"})
    assert bad_experience.status_code == 400
    assert any("experience" in d for d in bad_experience.json()["details"])

    negative_fee = client.post("/api/register/doctor", json={**DOCTOR, "consultationFee": -5})
    assert negative_fee.status_code == 400


def test_logout_is_always_ok(client):
    assert client.post("/api/logout", json={"sessionId": "never-issued"}).status_code == 200
    assert client.post("/api/logout", json={}).status_code == 200
    assert client.post("/api/logout").status_code == 200


def test_logout_twice_is_a_no_op(client):
    register(client, "/api/register", PATIENT)
    session_id = login_session(client, "pat@example.com", "Passw0rd")

    assert client.post("/api/logout", json={"sessionId": session_id}).status_code == 200
    assert client.post("/api/logout", json={"sessionId": session_id}).status_code == 200
    assert client.get("/api/profile", headers={"Session-Id": session_id}).status_code == 401


def test_logout_accepts_session_header(client):
    register(client, "/api/register", PATIENT)
    session_id = login_session(client, "pat@example.com", "Passw0rd")
    assert client.post("/api/logout", headers={"Session-Id": session_id}).status_code == 200
    assert client.get("/api/profile", headers={"Session-Id": session_id}).status_code == 401


def test_profile_without_session(client):
    response = client.get("/api/profile")
    assert response.status_code == 401
    assert response.json() == {"error": "No session provided"}


def test_multiple_sessions_and_logout_everywhere(client):
    register(client, "/api/register", PATIENT)
    first = login_session(client, "pat@example.com", "Passw0rd")
    second = login_session(client, "pat@example.com", "Passw0rd")
    assert first != second

    listing = client.get("/api/sessions", headers={"Session-Id": first})
    assert listing.status_code == 200
    sessions = listing.json()["sessions"]
    assert len(sessions) == 2
    assert sum(1 for s in sessions if s["current"]) == 1

    closed = client.post("/api/logout/all", headers={"Session-Id": second})
    assert closed.status_code == 200
    assert closed.json()["sessionsClosed"] == 2
    for session_id in (first, second):
        assert client.get("/api/profile", headers={"Session-Id": session_id}).status_code == 401


def test_expired_session_rejected(client):
    register(client, "/api/register", PATIENT)
    session_id = login_session(client, "pat@example.com", "Passw0rd")

    def store_a_day_later(db: Session = Depends(get_db)):
        return SessionStore(db, clock=lambda: models.utcnow() + timedelta(hours=24, seconds=1))

    app.dependency_overrides[security.get_session_store] = store_a_day_later
    response = client.get("/api/profile", headers={"Session-Id": session_id})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired session"}


def test_failed_login_is_audited(client, caplog):
    with caplog.at_level(logging.INFO, logger="clinic.audit"):
        login(client, "ghost@example.com", "whatever")
    records = [r for r in caplog.records if r.name == "clinic.audit"]
    assert records and records[-1].levelno == logging.WARNING
    assert "ghost@example.com" in records[-1].getMessage()


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "connected"


def test_logout_audit_names_the_principal(client, caplog):
    created = register(client, "/api/register", PATIENT)
    session_id = login_session(client, "pat@example.com", "Passw0rd")

    with caplog.at_level(logging.INFO, logger="clinic.audit"):
        client.post("/api/logout", json={"sessionId": session_id})
    records = [r for r in caplog.records if r.name == "clinic.audit"]
    assert len(records) == 1
    entry = json.loads(records[0].getMessage())
    assert entry["action"] == "LOGOUT"
    assert entry["principal_id"] == created["user"]["id"]
    assert entry["variant"] == "patient"
    assert entry["email"] == "pat@example.com"


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found", "path": "/api/nope", "method": "GET"}


def test_wrong_method_uses_error_body(client):
    response = client.get("/api/login")
    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}
