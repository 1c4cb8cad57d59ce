# clinic/routers/doctors.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud, schemas, security
from ..database import get_db

router = APIRouter(
    tags=["Doctors"],
    dependencies=[Depends(security.get_auth_context)],
    responses={401: {"description": "Missing, invalid or expired session"}},
)


@router.get("/doctors", response_model=schemas.DoctorList)
def read_active_doctors(
    specialization: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    doctors = crud.get_active_doctors(db, skip=skip, limit=limit, specialization=specialization)
    return {"doctors": doctors}
