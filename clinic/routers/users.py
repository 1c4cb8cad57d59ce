# clinic/routers/users.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..exceptions import NotFound

router = APIRouter(
    tags=["Users"],
    dependencies=[Depends(security.require_permission(security.Permissions.MANAGE_USERS))],
    responses={
        401: {"description": "Missing, invalid or expired session"},
        403: {"description": "Not an admin with the manage_users permission"},
    },
)

@router.get("/admins", response_model=schemas.AdminList)
def read_active_admins(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    admins = crud.get_active_principals(db, models.PrincipalVariant.admin, skip=skip, limit=limit)
    return {"admins": admins}

@router.get("/staff", response_model=schemas.StaffList)
def read_active_staff(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    staff = crud.get_active_principals(db, models.PrincipalVariant.staff, skip=skip, limit=limit)
    return {"staff": staff}

@router.put("/admins/{admin_id}/access", response_model=schemas.AdminPublic)
def update_admin_access(
    admin_id: int,
    changes: schemas.AdminAccessUpdate,
    request: Request,
    ctx: security.AuthContext = Depends(security.require_permission(security.Permissions.MANAGE_SETTINGS)),
    db: Session = Depends(get_db),
):
    """Change an admin's access level or permission flags. Not available through registration."""
    admin = crud.get_principal(db, models.PrincipalVariant.admin, admin_id)
    if admin is None:
        raise NotFound("Admin not found")
    admin = crud.update_admin_access(db, admin, changes)
    security.audit_logger.log_access(
        action="UPDATE_ADMIN_ACCESS",
        principal_id=ctx.principal.id,
        variant=ctx.variant.value,
        ip_address=request.client.host if request.client else None,
        details=f"admin {admin.id} now {admin.access_level.value}",
    )
    return admin
