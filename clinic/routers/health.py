# clinic/routers/health.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .. import schemas
from ..config import get_settings
from ..database import get_db, check_connection

router = APIRouter(
    tags=["Health Checks"],
)

@router.get("/health", response_model=schemas.HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a round-trip to the database."""
    version = get_settings().app_version
    if not check_connection(db.get_bind()):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "database": "disconnected", "version": version},
        )
    return {"status": "ok", "database": "connected", "version": version}
