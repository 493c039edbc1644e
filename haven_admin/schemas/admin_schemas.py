"""
Pydantic schemas for sign-in/sign-up, profiles and super-admin user management
"""

from pydantic import BaseModel, EmailStr
from typing import Dict, List, Optional
from datetime import datetime

from haven_admin.schemas.content_schemas import ArticleResponse, ModuleResponse
from haven_admin.schemas.scheduling_schemas import AppointmentResponse, PatientSummary


class SignInPayload(BaseModel):
    email: str
    password: str


class SignInResponse(BaseModel):
    success: bool = True
    redirect_to: str
    access_token: str


class SignUpPayload(BaseModel):
    """``role`` is THERAPIST or ADMIN (staff admin)"""
    email: EmailStr
    password: str
    full_name: str
    role: str = "THERAPIST"
    specialty: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    about: Optional[str] = None
    role: str
    specialty: Optional[str] = None
    status: str
    is_super_admin: bool = False
    is_therapist: bool = False
    availability: Optional[Dict[str, bool]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SignUpResponse(BaseModel):
    success: bool = True
    message: str
    profile: ProfileResponse


class ProfileUpdatePayload(BaseModel):
    full_name: Optional[str] = None
    specialty: Optional[str] = None
    about: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None


class ApprovePayload(BaseModel):
    """Role selections from the approvals queue, keyed by profile id"""
    role_edits: Dict[str, str] = {}


class RoleChangePayload(BaseModel):
    role: str


class StatsResponse(BaseModel):
    users: int
    therapists: int
    pending: int
    appointments: int


class UserDetailResponse(BaseModel):
    profile: ProfileResponse
    appointments: List[AppointmentResponse]
    patients: List[PatientSummary] = []
    modules: List[ModuleResponse] = []
    articles: List[ArticleResponse] = []
