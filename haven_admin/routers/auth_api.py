"""
Authentication API Router
Sign-up, sign-in with role-based landing, sign-out, and the ungated
login/sign-up landing pages that gate redirects point at.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from haven_admin.config import settings
from haven_admin.core.access_control import landing_path_for
from haven_admin.core.error_handling import AccessDenied
from haven_admin.database import get_db
from haven_admin.dependencies import get_identity_provider, get_session_token
from haven_admin.models.profile import Profile, Role
from haven_admin.schemas.admin_schemas import (
    ProfileResponse,
    SignInPayload,
    SignInResponse,
    SignUpPayload,
    SignUpResponse,
)
from haven_admin.schemas.content_schemas import ActionResult
from haven_admin.services.identity_service import IdentityProvider
from haven_admin.services.role_workflow import RoleWorkflowService, normalize_requested_role

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Authentication"])


@router.post("/auth/sign-up", response_model=SignUpResponse)
async def sign_up(
    payload: SignUpPayload,
    provider: IdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    """
    Register a therapist or staff admin. The profile stays pending until a
    super-admin approves it.
    """
    role = normalize_requested_role(payload.role)
    specialty = payload.specialty if role == Role.THERAPIST.value else None

    account = provider.sign_up(
        payload.email,
        payload.password,
        {"full_name": payload.full_name, "role": role, "specialty": specialty},
    )
    profile = RoleWorkflowService.register_pending_profile(db, account, payload.full_name, role, specialty)

    return SignUpResponse(
        message="Account created. An administrator will review your request.",
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/auth/sign-in", response_model=SignInResponse)
async def sign_in(
    payload: SignInPayload,
    response: Response,
    provider: IdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db)
):
    """
    Sign in and pick the dashboard for the caller's role. Callers without a
    dashboard are signed straight back out.
    """
    result = provider.sign_in(payload.email, payload.password)
    profile = db.query(Profile).filter(Profile.id == result.user.id).first()

    try:
        landing = landing_path_for(profile)
    except AccessDenied:
        provider.sign_out_session(result.session)
        logger.warning(f"Sign-in refused for account {result.user.id}")
        raise

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=result.access_token,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        max_age=settings.SESSION_TTL_MINUTES * 60,
    )
    return SignInResponse(redirect_to=landing, access_token=result.access_token)


@router.post("/auth/sign-out", response_model=ActionResult)
async def sign_out(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    provider: IdentityProvider = Depends(get_identity_provider)
):
    provider.sign_out(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return ActionResult(message="Signed out")


@router.get("/admin/login")
async def login_page(error: Optional[str] = None):
    return {"page": "login", "error": error}


@router.get("/admin/signup")
async def signup_page(error: Optional[str] = None):
    return {"page": "signup", "error": error}
