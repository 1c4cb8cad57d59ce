# tests/test_startup.py
import logging

from clinic import models
from clinic.config import Settings
from clinic.core.logging import setup_logging
from clinic.database import check_connection
from clinic.security import verify_credentials
from clinic.seed import ensure_initial_admin


def _settings(**overrides):
    values = {
        "ADMIN_DEFAULT_USERNAME": "root",
        "ADMIN_DEFAULT_EMAIL": "Root@Example.com",
        "ADMIN_DEFAULT_PASSWORD": "S3curePass",
    }
    values.update(overrides)
    return Settings(**values)


def test_initial_admin_is_created_as_super_admin(db):
    admin = ensure_initial_admin(db, _settings())

    assert admin.email == "root@example.com"
    assert admin.access_level == models.AccessLevel.super_admin
    assert admin.has_permission("manage_settings")
    assert verify_credentials(db, "admin", "root@example.com", "S3curePass").id == admin.id


def test_initial_admin_password_follows_environment(db):
    ensure_initial_admin(db, _settings())
    admin = ensure_initial_admin(db, _settings(ADMIN_DEFAULT_PASSWORD="R0tatedPass"))

    assert db.query(models.Admin).count() == 1
    assert verify_credentials(db, "admin", "root@example.com", "R0tatedPass").id == admin.id


def test_initial_admin_skipped_without_password(db):
    assert ensure_initial_admin(db, _settings(ADMIN_DEFAULT_PASSWORD="")) is None
    assert db.query(models.Admin).count() == 0


def test_check_connection(engine):
    assert check_connection(engine) is True


def test_setup_logging_installs_one_handler():
    setup_logging()
    setup_logging()
    handlers = [h for h in logging.getLogger().handlers if getattr(h, "_clinic_handler", False)]
    assert len(handlers) == 1
