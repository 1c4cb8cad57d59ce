import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from . import crud, models
from .config import get_settings
from .database import get_db
from .exceptions import Forbidden, InvalidCredentials, Unauthenticated
from .hash_password import DUMMY_HASH, get_password_hash, pwd_context, verify_password
from .services.session_store import ClientMeta, SessionStore

security_logger = logging.getLogger("security")


class AuditLogger:
    """Structured audit trail for authentication and access-control events"""

    def __init__(self):
        self.logger = logging.getLogger("clinic.audit")

    def log_access(self, action: str, principal_id: int = None, variant: str = None,
                   email: str = None, ip_address: str = None, user_agent: str = None,
                   success: bool = True, details: str = None):
        audit_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "principal_id": principal_id,
            "variant": variant,
            "email": email,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "success": success,
            "details": details,
        }
        if success:
            self.logger.info(json.dumps(audit_entry))
        else:
            self.logger.warning(json.dumps(audit_entry))


audit_logger = AuditLogger()


@dataclass
class AuthContext:
    """The resolved caller of an authenticated request."""
    principal: crud.Principal
    role: models.UserRole
    session: models.LoginSession

    @property
    def variant(self) -> models.PrincipalVariant:
        return self.session.principal_variant


# ==================== CREDENTIAL VERIFICATION ====================

def verify_credentials(db: Session, variant: models.PrincipalVariant, email: str, password: str) -> crud.Principal:
    """
    Return the principal for ``email`` in ``variant`` if ``password`` matches.

    Unknown email, wrong password and a deactivated account all raise the same
    InvalidCredentials so a caller cannot probe for registered addresses.
    """
    principal = crud.get_principal_by_email(db, variant, email)
    if principal is None:
        verify_password(password, DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, principal.password_hash):
        raise InvalidCredentials()
    if not principal.is_active:
        raise InvalidCredentials()
    if pwd_context.needs_update(principal.password_hash):
        principal.password = password
        db.commit()
    return principal


# ==================== AUTHORIZATION GATE ====================

def get_client_meta(request: Request) -> ClientMeta:
    return ClientMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return SessionStore(db, ttl=timedelta(hours=get_settings().session_ttl_hours))


def get_session_token(request: Request) -> Optional[str]:
    token = request.headers.get(get_settings().session_header)
    return token.strip() if token and token.strip() else None


def authenticate(store: SessionStore, session_token: Optional[str]) -> AuthContext:
    """Resolve a session token to its principal and the role captured at login."""
    if not session_token:
        raise Unauthenticated("No session provided")

    session = store.find_active(session_token)
    if session is None:
        raise Unauthenticated("Invalid or expired session")

    principal = crud.get_principal(store.db, session.principal_variant, session.principal_id)
    if principal is None or not principal.is_active:
        raise Unauthenticated("Invalid or expired session")

    return AuthContext(principal=principal, role=session.role, session=session)


def get_auth_context(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> AuthContext:
    try:
        return authenticate(store, get_session_token(request))
    except Unauthenticated:
        security_logger.info(f"Unauthenticated request to {request.url.path}")
        raise


def require_role(*allowed_roles: str):
    """Dependency factory for role-based access control on the session's role snapshot"""
    allowed = {models.UserRole(r) for r in allowed_roles}

    def role_dependency(request: Request, ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.role not in allowed:
            audit_logger.log_access(
                action="ACCESS_DENIED",
                principal_id=ctx.principal.id,
                variant=ctx.variant.value,
                ip_address=request.client.host if request.client else None,
                success=False,
                details=f"role {ctx.role.value} not in {sorted(r.value for r in allowed)}",
            )
            raise Forbidden(f"Access denied. Required roles: {', '.join(sorted(r.value for r in allowed))}")
        return ctx

    return role_dependency


def require_permission(permission: str):
    """Dependency factory enforcing an admin permission flag"""
    def permission_dependency(request: Request, ctx: AuthContext = Depends(require_role("admin"))) -> AuthContext:
        principal = ctx.principal
        if not isinstance(principal, models.Admin) or not principal.has_permission(permission):
            audit_logger.log_access(
                action="ACCESS_DENIED",
                principal_id=principal.id,
                variant=ctx.variant.value,
                ip_address=request.client.host if request.client else None,
                success=False,
                details=f"missing permission {permission}",
            )
            raise Forbidden(f"Access denied. Required permission: {permission}")
        return ctx

    return permission_dependency


# Specific role dependencies
require_admin = require_role("admin")
require_doctor = require_role("doctor")
require_patient = require_role("patient")
require_clinical_staff = require_role("admin", "doctor", "staff")


class Permissions:
    MANAGE_USERS = "manage_users"
    MANAGE_DOCTORS = "manage_doctors"
    MANAGE_APPOINTMENTS = "manage_appointments"
    VIEW_REPORTS = "view_reports"
    MANAGE_SETTINGS = "manage_settings"


__all__ = [
    "AuditLogger",
    "AuthContext",
    "audit_logger",
    "verify_password",
    "get_password_hash",
    "verify_credentials",
    "get_session_store",
    "get_session_token",
    "authenticate",
    "get_auth_context",
    "require_role",
    "require_permission",
    "require_admin",
    "require_doctor",
    "require_patient",
    "require_clinical_staff",
    "Permissions",
]
