# Initial super admin, created or refreshed from the environment on startup.
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import models
from .config import Settings
from .hash_password import verify_password

logger = logging.getLogger(__name__)


def ensure_initial_admin(db: Session, settings: Settings):
    """
    Upsert the super admin named by ADMIN_DEFAULT_USERNAME / ADMIN_DEFAULT_EMAIL.

    Returns the admin, or None when ADMIN_DEFAULT_PASSWORD is not configured.
    """
    if not settings.admin_default_password:
        logger.warning("ADMIN_DEFAULT_PASSWORD not set. Skipping initial admin setup.")
        return None

    email = settings.admin_default_email.strip().lower()
    admin = db.query(models.Admin).filter(
        or_(models.Admin.username == settings.admin_default_username, models.Admin.email == email)
    ).first()

    if admin:
        admin.is_active = True
        admin.access_level = models.AccessLevel.super_admin
        # Only rehash if the configured password no longer matches
        if not verify_password(settings.admin_default_password, admin.password_hash):
            admin.password = settings.admin_default_password
            logger.info("Initial admin password updated to match environment.")
        action = "updated"
    else:
        admin = models.Admin(
            username=settings.admin_default_username,
            email=email,
            password=settings.admin_default_password,
            first_name="System",
            last_name="Administrator",
            phone="0000000000",
            employee_id="ADMIN-0001",
            department="Administration",
            position="Administrator",
            access_level=models.AccessLevel.super_admin,
        )
        db.add(admin)
        action = "created"

    db.commit()
    db.refresh(admin)
    logger.info(f"Initial admin {action}: username='{admin.username}', email='{admin.email}'")
    return admin
