# clinic/routers/auth.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..exceptions import InvalidCredentials
from ..services.session_store import SessionStore

import logging

logger = logging.getLogger(__name__)


router = APIRouter(
    tags=["Authentication"]
)


# ==================== REGISTRATION ====================

@router.post("/register", response_model=schemas.PatientRegistered, status_code=status.HTTP_201_CREATED)
def register_patient(payload: schemas.PatientCreate, db: Session = Depends(get_db)):
    patient = crud.create_principal(db, models.PrincipalVariant.patient, payload)
    return {"message": "User registered successfully", "user": patient}

@router.post("/register/doctor", response_model=schemas.DoctorRegistered, status_code=status.HTTP_201_CREATED)
def register_doctor(payload: schemas.DoctorCreate, db: Session = Depends(get_db)):
    doctor = crud.create_principal(db, models.PrincipalVariant.doctor, payload)
    return {"message": "Doctor registered successfully", "doctor": doctor}

@router.post("/register/admin", response_model=schemas.AdminRegistered, status_code=status.HTTP_201_CREATED)
def register_admin(payload: schemas.AdminCreate, db: Session = Depends(get_db)):
    admin = crud.create_principal(db, models.PrincipalVariant.admin, payload)
    return {"message": "Admin registered successfully", "admin": admin}

@router.post("/register/staff", response_model=schemas.StaffRegistered, status_code=status.HTTP_201_CREATED)
def register_staff(payload: schemas.StaffCreate, db: Session = Depends(get_db)):
    staff = crud.create_principal(db, models.PrincipalVariant.staff, payload)
    return {"message": "Staff registered successfully", "staff": staff}


# ==================== SESSIONS ====================

@router.post("/login", response_model=schemas.LoginResponse)
def login(
    request: Request,
    credentials: schemas.LoginRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(security.get_session_store),
):
    meta = security.get_client_meta(request)
    variant = credentials.user_type
    try:
        principal = security.verify_credentials(db, variant, credentials.email, credentials.password)
    except InvalidCredentials:
        security.audit_logger.log_access(
            action="LOGIN",
            variant=variant.value,
            email=credentials.email.strip().lower(),
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            success=False,
            details="invalid credentials",
        )
        raise

    session = store.create_session(principal, variant, principal.role, meta)
    security.audit_logger.log_access(
        action="LOGIN",
        principal_id=principal.id,
        variant=variant.value,
        email=principal.email,
        ip_address=meta.ip_address,
        user_agent=meta.user_agent,
    )
    logger.info(f"{variant.value} '{principal.email}' logged in")
    return {
        "message": "Login successful",
        "user": principal,
        "session_id": session.id,
        "expires_at": session.expires_at,
    }

@router.post("/logout", response_model=schemas.MessageResponse)
def logout(
    request: Request,
    body: Optional[schemas.LogoutRequest] = Body(None),
    store: SessionStore = Depends(security.get_session_store),
):
    """Close a session. Unknown or already-closed ids are accepted silently."""
    session_id = (body.session_id if body else None) or security.get_session_token(request)
    session = store.get(session_id)
    if session is not None and store.deactivate(session_id):
        security.audit_logger.log_access(
            action="LOGOUT",
            principal_id=session.principal_id,
            variant=session.principal_variant.value,
            email=session.email,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            details=f"session {session.id[:8]}",
        )
    return {"message": "Logout successful"}

@router.post("/logout/all", response_model=schemas.LogoutAllResponse)
def logout_everywhere(
    ctx: security.AuthContext = Depends(security.get_auth_context),
    store: SessionStore = Depends(security.get_session_store),
):
    closed = store.deactivate_all_for_principal(ctx.variant, ctx.principal.id)
    security.audit_logger.log_access(
        action="LOGOUT",
        principal_id=ctx.principal.id,
        variant=ctx.variant.value,
        details=f"closed {closed} sessions",
    )
    return {"message": "Logged out of all sessions", "sessions_closed": closed}

@router.get("/profile", response_model=schemas.ProfileResponse)
def read_profile(ctx: security.AuthContext = Depends(security.get_auth_context)):
    """The caller's account, with the role captured when the session was created."""
    summary = schemas.PrincipalSummary.model_validate(ctx.principal)
    return {"user": summary.model_copy(update={"role": ctx.role})}

@router.get("/sessions", response_model=schemas.SessionList)
def list_my_sessions(
    ctx: security.AuthContext = Depends(security.get_auth_context),
    store: SessionStore = Depends(security.get_session_store),
):
    sessions = store.list_for_principal(ctx.variant, ctx.principal.id)
    return {
        "sessions": [
            schemas.SessionInfo(
                login_time=s.login_time,
                expires_at=s.expires_at,
                ip_address=s.ip_address,
                user_agent=s.user_agent,
                current=s.id == ctx.session.id,
            )
            for s in sessions
        ]
    }
