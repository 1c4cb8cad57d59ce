import time
import uvicorn
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from clinic.config import get_settings
from clinic.core.logging import setup_logging
from clinic.database import SessionLocal, check_connection, create_tables
from clinic.exceptions import register_exception_handlers
from clinic.routers import auth, doctors, users, health
from clinic.seed import ensure_initial_admin
from clinic.services.session_reaper import SessionReaper

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.app_version)

session_reaper = SessionReaper(
    SessionLocal,
    interval_seconds=settings.session_purge_interval_seconds,
)


@app.on_event("startup")
async def on_startup():
    log = setup_logging()
    # Refuse to serve without a reachable store
    if not check_connection():
        log.critical("database_unreachable", action="refusing to serve")
        raise RuntimeError("Database unreachable")
    log.info(
        "startup",
        app=settings.app_name,
        environment=settings.environment,
        session_ttl_hours=settings.session_ttl_hours,
    )
    create_tables()
    db = SessionLocal()
    try:
        ensure_initial_admin(db, settings)
    finally:
        db.close()
    session_reaper.start()

@app.on_event("shutdown")
async def on_shutdown():
    await session_reaper.stop()


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", settings.session_header],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms) ip={client_ip}")
    return response


register_exception_handlers(app)

app.include_router(auth.router, prefix="/api")
app.include_router(doctors.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(health.router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("clinic.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
