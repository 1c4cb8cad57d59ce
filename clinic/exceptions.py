"""
Error taxonomy for the auth core and the handlers that render it.

Every error here is terminal for the request. The body shape is always
``{"error": message}``, plus ``field`` for duplicates and ``details`` for
validation failures.
"""
import logging
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class ValidationError(ClinicError):
    default_message = "Validation Error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        super().__init__(message)
        self.details = details or []

    def to_body(self) -> dict:
        body = super().to_body()
        if self.details:
            body["details"] = self.details
        return body


class DuplicateIdentity(ClinicError):
    """A uniqueness check failed; ``field`` names the conflicting attribute."""

    FIELD_MESSAGES = {
        "email": "Email already registered",
        "username": "Username already taken",
        "license_number": "License number already registered",
        "employee_id": "Employee ID already registered",
    }

    def __init__(self, field: str):
        self.field = field
        super().__init__(self.FIELD_MESSAGES.get(field, "Duplicate entry"))

    def to_body(self) -> dict:
        return {"error": self.message, "field": self.field}


class InvalidCredentials(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class Unauthenticated(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired session"


class Forbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


async def clinic_error_handler(request: Request, exc: ClinicError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        # No route matched
        content = {"error": "Route not found", "path": request.url.path, "method": request.method}
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationError(details=details).to_body(),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClinicError, clinic_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
