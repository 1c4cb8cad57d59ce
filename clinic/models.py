# clinic/models.py
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text, Numeric,
    Enum as SQLAlchemyEnum, Boolean, JSON, Index,
)
from sqlalchemy.orm import validates
from .database import Base
from .hash_password import get_password_hash
import enum


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column in this schema is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"
    staff = "staff"


class PrincipalVariant(str, enum.Enum):
    """Which principal table a session or login refers to."""
    patient = "patient"
    doctor = "doctor"
    admin = "admin"
    staff = "staff"


class AccessLevel(str, enum.Enum):
    super_admin = "super_admin"
    admin = "admin"
    manager = "manager"


class Gender(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"


DEFAULT_ADMIN_PERMISSIONS = {
    "manage_users": True,
    "manage_doctors": True,
    "manage_appointments": True,
    "view_reports": True,
    "manage_settings": False,
}


class PrincipalMixin:
    """Columns and password handling shared by every authenticable account."""

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plaintext: str):
        self.password_hash = get_password_hash(plaintext)

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @validates("username")
    def _strip_username(self, key, value):
        return value.strip() if value else value


class Patient(PrincipalMixin, Base):
    """Patient account; the default variant for the public registration form."""
    __tablename__ = "patients"

    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.patient, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(SQLAlchemyEnum(Gender, name='gender'), nullable=True)
    address = Column(Text, nullable=True)
    blood_group = Column(String(5), nullable=True)


class Doctor(PrincipalMixin, Base):
    __tablename__ = "doctors"
    __table_args__ = (
        Index('idx_doctors_active_specialization', 'is_active', 'specialization'),
    )

    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.doctor, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(SQLAlchemyEnum(Gender, name='gender'), nullable=True)
    specialization = Column(String(100), nullable=False)
    license_number = Column(String(50), unique=True, index=True, nullable=False)
    qualification = Column(String(255), nullable=False)
    experience = Column(Integer, nullable=False)
    department = Column(String(100), nullable=False)
    biography = Column(Text, nullable=True)
    consultation_fee = Column(Numeric(10, 2, asdecimal=False), default=0)
    available_days = Column(JSON, default=list)
    available_time_slots = Column(String(255), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)


class Admin(PrincipalMixin, Base):
    __tablename__ = "admins"

    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.admin, nullable=False)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)
    department = Column(String(100), nullable=False)
    position = Column(String(100), nullable=False)
    access_level = Column(SQLAlchemyEnum(AccessLevel, name='access_level'), default=AccessLevel.admin, nullable=False)
    permissions = Column(JSON, default=lambda: dict(DEFAULT_ADMIN_PERMISSIONS), nullable=False)

    def has_permission(self, flag: str) -> bool:
        if self.access_level == AccessLevel.super_admin:
            return True
        merged = {**DEFAULT_ADMIN_PERMISSIONS, **(self.permissions or {})}
        return bool(merged.get(flag, False))


class Staff(PrincipalMixin, Base):
    __tablename__ = "staff"

    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), default=UserRole.staff, nullable=False)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)
    department = Column(String(100), nullable=False)
    position = Column(String(100), nullable=False)


PRINCIPAL_MODELS = {
    PrincipalVariant.patient: Patient,
    PrincipalVariant.doctor: Doctor,
    PrincipalVariant.admin: Admin,
    PrincipalVariant.staff: Staff,
}


class LoginSession(Base):
    """One authenticated login. The primary key is the opaque token handed to the client."""
    __tablename__ = "login_sessions"
    __table_args__ = (
        Index('idx_login_sessions_principal', 'principal_variant', 'principal_id'),
        Index('idx_login_sessions_expires_at', 'expires_at'),
    )

    id = Column(String(64), primary_key=True)
    principal_id = Column(Integer, nullable=False)
    principal_variant = Column(SQLAlchemyEnum(PrincipalVariant, name='principal_variant'), nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(SQLAlchemyEnum(UserRole, name='user_role'), nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    login_time = Column(DateTime, nullable=False)
    logout_time = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
