# clinic/crud.py
import logging
import re
from typing import Dict, List, Optional, Type, Union

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .exceptions import DuplicateIdentity

logger = logging.getLogger(__name__)

Principal = Union[models.Patient, models.Doctor, models.Admin, models.Staff]

# Fields checked for uniqueness per variant, in the order conflicts are reported
UNIQUE_FIELDS = {
    models.PrincipalVariant.patient: ("email", "username"),
    models.PrincipalVariant.doctor: ("email", "username", "license_number"),
    models.PrincipalVariant.admin: ("email", "username", "employee_id"),
    models.PrincipalVariant.staff: ("email", "username", "employee_id"),
}


def model_for(variant: models.PrincipalVariant) -> Type[Principal]:
    return models.PRINCIPAL_MODELS[models.PrincipalVariant(variant)]


# ==================== PRINCIPAL LOOKUPS ====================

def get_principal(db: Session, variant: models.PrincipalVariant, principal_id: int) -> Optional[Principal]:
    model = model_for(variant)
    return db.query(model).filter(model.id == principal_id).first()

def get_principal_by_email(db: Session, variant: models.PrincipalVariant, email: str) -> Optional[Principal]:
    """Case-insensitive email lookup inside a single variant's table."""
    model = model_for(variant)
    return db.query(model).filter(model.email == email.strip().lower()).first()

def find_conflicting_field(db: Session, variant: models.PrincipalVariant, values: Dict[str, str]) -> Optional[str]:
    model = model_for(variant)
    fields = [f for f in UNIQUE_FIELDS[models.PrincipalVariant(variant)] if values.get(f)]
    if not fields:
        return None
    existing = db.query(model).filter(
        or_(*[getattr(model, f) == values[f] for f in fields])
    ).first()
    if not existing:
        return None
    for f in fields:
        if getattr(existing, f) == values[f]:
            return f
    return None


def _field_from_integrity_error(error: IntegrityError, variant: models.PrincipalVariant) -> Optional[str]:
    # sqlite: "UNIQUE constraint failed: patients.email"
    # postgres: 'Key (email)=(...) already exists'
    message = str(error.orig)
    for f in UNIQUE_FIELDS[models.PrincipalVariant(variant)]:
        if re.search(rf"(\.|\(){f}(\b|\))", message):
            return f
    return None


# ==================== REGISTRATION ====================

def create_principal(db: Session, variant: models.PrincipalVariant, payload: schemas.PrincipalCreate) -> Principal:
    """
    Insert a new principal of ``variant``.

    The pre-insert lookup gives a precise error for the common case; the unique
    indexes settle races between concurrent registrations, and the resulting
    IntegrityError is reported the same way.
    """
    variant = models.PrincipalVariant(variant)
    data = payload.model_dump()
    conflict = find_conflicting_field(db, variant, data)
    if conflict:
        logger.info(f"Registration rejected for {variant.value}: duplicate {conflict}")
        raise DuplicateIdentity(conflict)

    if "available_days" in data:
        data["available_days"] = [getattr(d, "value", d) for d in data["available_days"]]

    principal = model_for(variant)(**data)
    db.add(principal)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        field = _field_from_integrity_error(e, variant) or find_conflicting_field(db, variant, data) or "email"
        logger.info(f"Registration lost a uniqueness race for {variant.value}: duplicate {field}")
        raise DuplicateIdentity(field) from e
    db.refresh(principal)
    logger.info(f"Registered {variant.value} id={principal.id} email={principal.email}")
    return principal


# ==================== ADMIN ACCESS ====================

def update_admin_access(db: Session, admin: models.Admin, changes: schemas.AdminAccessUpdate) -> models.Admin:
    if changes.access_level is not None:
        admin.access_level = changes.access_level
    if changes.permissions is not None:
        admin.permissions = changes.permissions.model_dump()
    db.commit()
    db.refresh(admin)
    logger.info(f"Updated access for admin id={admin.id}: level={admin.access_level.value}")
    return admin


# ==================== DIRECTORY LISTINGS ====================

def get_active_principals(db: Session, variant: models.PrincipalVariant, skip: int = 0, limit: int = 100) -> List[Principal]:
    model = model_for(variant)
    return (
        db.query(model)
        .filter(model.is_active.is_(True))
        .order_by(model.id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_active_doctors(db: Session, skip: int = 0, limit: int = 100, specialization: str = None) -> List[models.Doctor]:
    query = db.query(models.Doctor).filter(models.Doctor.is_active.is_(True))
    if specialization:
        query = query.filter(models.Doctor.specialization == specialization)
    return query.order_by(models.Doctor.id).offset(skip).limit(limit).all()
