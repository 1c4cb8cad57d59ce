# clinic/schemas.py
from datetime import datetime, date
from typing import List, Optional
from enum import Enum

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator,
)
from pydantic.alias_generators import to_camel

from .models import AccessLevel, Gender, PrincipalVariant, UserRole


class Weekday(str, Enum):
    Monday = "Monday"
    Tuesday = "Tuesday"
    Wednesday = "Wednesday"
    Thursday = "Thursday"
    Friday = "Friday"
    Saturday = "Saturday"
    Sunday = "Sunday"


# --- Base Schemas ---
class BaseSchema(BaseModel):
    """The browser client speaks camelCase; both spellings are accepted on input."""
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# --- Permissions Schema ---
class AdminPermissions(BaseSchema):
    manage_users: bool = True
    manage_doctors: bool = True
    manage_appointments: bool = True
    view_reports: bool = True
    manage_settings: bool = False


# --- Registration Schemas ---
class PrincipalCreate(BaseSchema):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class PatientCreate(PrincipalCreate):
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    blood_group: Optional[str] = Field(None, max_length=5)

    @field_validator("gender", "date_of_birth", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # Registration forms submit "" for untouched selects
        return None if v == "" else v


class DoctorCreate(PrincipalCreate):
    phone: str = Field(..., min_length=1, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    specialization: str = Field(..., min_length=1, max_length=100)
    license_number: str = Field(..., min_length=1, max_length=50)
    qualification: str = Field(..., min_length=1, max_length=255)
    experience: int = Field(..., ge=0)
    department: str = Field(..., min_length=1, max_length=100)
    biography: Optional[str] = None
    consultation_fee: float = Field(0, ge=0)
    available_days: List[Weekday] = Field(default_factory=list)
    available_time_slots: Optional[str] = Field(None, max_length=255)

    @field_validator("gender", "date_of_birth", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return None if v == "" else v

    @field_validator("license_number", mode="before")
    @classmethod
    def strip_license(cls, v):
        return v.strip() if isinstance(v, str) else v


class AdminCreate(PrincipalCreate):
    phone: str = Field(..., min_length=1, max_length=20)
    employee_id: str = Field(..., min_length=1, max_length=50)
    department: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)


class AdminAccessUpdate(BaseSchema):
    """Changes to an existing admin's access level or permission flags."""
    access_level: Optional[AccessLevel] = None
    permissions: Optional[AdminPermissions] = None


class StaffCreate(PrincipalCreate):
    phone: str = Field(..., min_length=1, max_length=20)
    employee_id: str = Field(..., min_length=1, max_length=50)
    department: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)


# --- Principal Summaries ---
class PrincipalSummary(BaseSchema):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole


class DoctorSummary(PrincipalSummary):
    specialization: str


class AdminSummary(PrincipalSummary):
    position: str
    access_level: AccessLevel


class StaffSummary(PrincipalSummary):
    position: str
    department: str


class DoctorPublic(DoctorSummary):
    phone: Optional[str] = None
    qualification: str
    experience: int
    department: str
    biography: Optional[str] = None
    consultation_fee: Optional[float] = None
    available_days: List[str] = Field(default_factory=list)
    available_time_slots: Optional[str] = None
    is_verified: bool = False


class AdminPublic(AdminSummary):
    phone: Optional[str] = None
    employee_id: str
    department: str
    permissions: AdminPermissions


class StaffPublic(StaffSummary):
    phone: Optional[str] = None
    employee_id: str


# --- Registration Responses ---
class PatientRegistered(BaseSchema):
    message: str
    user: PrincipalSummary


class DoctorRegistered(BaseSchema):
    message: str
    doctor: DoctorSummary


class AdminRegistered(BaseSchema):
    message: str
    admin: AdminSummary


class StaffRegistered(BaseSchema):
    message: str
    staff: StaffSummary


# --- Session Schemas ---
class LoginRequest(BaseSchema):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    user_type: PrincipalVariant = Field(
        PrincipalVariant.patient,
        validation_alias=AliasChoices("userType", "user_type", "variant"),
    )


class LoginResponse(BaseSchema):
    message: str = "Login successful"
    user: PrincipalSummary
    session_id: str
    expires_at: datetime


class LogoutRequest(BaseSchema):
    session_id: Optional[str] = None


class MessageResponse(BaseSchema):
    message: str


class ProfileResponse(BaseSchema):
    user: PrincipalSummary


class SessionInfo(BaseSchema):
    login_time: datetime
    expires_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    current: bool = False


class SessionList(BaseSchema):
    sessions: List[SessionInfo]


class LogoutAllResponse(BaseSchema):
    message: str
    sessions_closed: int


# --- Directory Listings ---
class DoctorList(BaseSchema):
    doctors: List[DoctorPublic]


class AdminList(BaseSchema):
    admins: List[AdminPublic]


class StaffList(BaseSchema):
    staff: List[StaffPublic]


class HealthResponse(BaseSchema):
    status: str
    database: str
    version: str
